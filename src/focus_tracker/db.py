"""SQLite database layer for per-day focus usage."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .models import UsageRecord

logger = logging.getLogger(__name__)

DATE_FMT = "%Y-%m-%d"


def open_database(path: Path, *, timeout: float = 5.0) -> sqlite3.Connection:
    """Open (and initialize) the SQLite database."""
    conn = sqlite3.connect(
        path,
        timeout=timeout,
        isolation_level=None,
    )
    conn.row_factory = sqlite3.Row
    initialize_schema(conn)
    return conn


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS usage_log (
            day TEXT NOT NULL,
            identity TEXT NOT NULL,
            seconds INTEGER NOT NULL DEFAULT 0 CHECK (seconds >= 0),
            PRIMARY KEY (day, identity)
        );

        CREATE INDEX IF NOT EXISTS idx_usage_identity
            ON usage_log(identity);
        """
    )


def upsert_usage(conn: sqlite3.Connection, records: Iterable[UsageRecord]) -> None:
    """Add each record's seconds to the stored total for its key."""
    rows = [
        (record.day.strftime(DATE_FMT), record.identity, record.seconds)
        for record in records
    ]
    if not rows:
        return
    with _transaction(conn):
        conn.executemany(
            """
            INSERT INTO usage_log (day, identity, seconds)
            VALUES (?, ?, ?)
            ON CONFLICT (day, identity) DO UPDATE SET
                seconds = usage_log.seconds + excluded.seconds
            """,
            rows,
        )


def fetch_all_usage(conn: sqlite3.Connection) -> list[UsageRecord]:
    rows = conn.execute(
        "SELECT day, identity, seconds FROM usage_log ORDER BY day, identity"
    )
    records: list[UsageRecord] = []
    for row in rows:
        try:
            records.append(_row_to_record(row))
        except ValueError:
            logger.warning("Skipping usage row with invalid day %r", row["day"])
    return records


def fetch_usage_for_day(conn: sqlite3.Connection, day: date) -> list[UsageRecord]:
    """Return every identity's total for a day, largest first."""
    rows = conn.execute(
        """
        SELECT day, identity, seconds
        FROM usage_log
        WHERE day = ?
        ORDER BY seconds DESC, identity;
        """,
        (day.strftime(DATE_FMT),),
    )
    return [_row_to_record(row) for row in rows]


def fetch_usage_for_identity(
    conn: sqlite3.Connection, identity: str, day: date
) -> Optional[int]:
    row = conn.execute(
        "SELECT seconds FROM usage_log WHERE identity = ? AND day = ?",
        (identity, day.strftime(DATE_FMT)),
    ).fetchone()
    return None if row is None else int(row["seconds"])


def _row_to_record(row: sqlite3.Row) -> UsageRecord:
    try:
        seconds = max(int(row["seconds"]), 0)
    except (TypeError, ValueError):
        seconds = 0
    return UsageRecord(
        day=date.fromisoformat(row["day"]),
        identity=row["identity"],
        seconds=seconds,
    )


@contextmanager
def _transaction(conn: sqlite3.Connection) -> Iterator[None]:
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")
