"""Durable stores for usage records.

Both stores implement the same small interface: ``load_all`` once at start
up and ``upsert`` to add seconds to a ``(day, identity)`` total. Retryable
failures are raised as ``PersistenceError`` so the tracker can keep the
delta and try again on the next flush.
"""

from __future__ import annotations

import csv
import logging
import os
import sqlite3
import tempfile
from datetime import date
from pathlib import Path
from typing import Optional, Protocol

from . import db
from .config import TrackerSettings
from .durations import format_duration, parse_duration
from .errors import PersistenceError
from .models import UsageRecord
from .paths import get_csv_path, get_db_path

logger = logging.getLogger(__name__)

CSV_FIELDS = ("date", "identity", "duration")


class UsageStore(Protocol):
    location: Path

    def load_all(self) -> list[UsageRecord]:
        ...

    def upsert(self, record: UsageRecord) -> None:
        ...

    def usage_for(self, identity: str, day: date) -> Optional[int]:
        ...

    def usage_for_day(self, day: date) -> list[UsageRecord]:
        ...

    def close(self) -> None:
        ...


class SqliteUsageStore:
    """Incremental store backed by a single SQLite table."""

    def __init__(self, path: Path, *, timeout: float = 5.0) -> None:
        self.location = Path(path)
        self._conn = db.open_database(self.location, timeout=timeout)

    def load_all(self) -> list[UsageRecord]:
        return db.fetch_all_usage(self._conn)

    def upsert(self, record: UsageRecord) -> None:
        try:
            db.upsert_usage(self._conn, [record])
        except sqlite3.OperationalError as exc:
            raise PersistenceError(
                f"Failed to write {record.identity!r} for {record.day}: {exc}"
            ) from exc

    def usage_for(self, identity: str, day: date) -> Optional[int]:
        return db.fetch_usage_for_identity(self._conn, identity, day)

    def usage_for_day(self, day: date) -> list[UsageRecord]:
        return db.fetch_usage_for_day(self._conn, day)

    def close(self) -> None:
        self._conn.close()


class CsvUsageStore:
    """Human-readable table rewritten wholesale on every write."""

    def __init__(self, path: Path, *, legacy_durations: bool = False) -> None:
        self.location = Path(path)
        self.legacy_durations = legacy_durations
        self._rows: dict[tuple[date, str], int] = {}
        # Rows that could not be read are written back untouched.
        self._unparsed: list[tuple[str, str, str]] = []
        self._loaded = False

    def load_all(self) -> list[UsageRecord]:
        self._rows = self._read()
        self._loaded = True
        return [
            UsageRecord(day=day, identity=identity, seconds=seconds)
            for (day, identity), seconds in sorted(self._rows.items())
        ]

    def upsert(self, record: UsageRecord) -> None:
        if not self._loaded:
            self.load_all()
        rows = dict(self._rows)
        rows[record.key] = rows.get(record.key, 0) + record.seconds
        try:
            self._write(rows)
        except OSError as exc:
            raise PersistenceError(f"Failed to rewrite {self.location}: {exc}") from exc
        self._rows = rows

    def usage_for(self, identity: str, day: date) -> Optional[int]:
        if not self._loaded:
            self.load_all()
        return self._rows.get((day, identity))

    def usage_for_day(self, day: date) -> list[UsageRecord]:
        """Totals for ``day``, largest first."""
        if not self._loaded:
            self.load_all()
        records = [
            UsageRecord(day=key_day, identity=identity, seconds=seconds)
            for (key_day, identity), seconds in self._rows.items()
            if key_day == day
        ]
        return sorted(records, key=lambda record: (-record.seconds, record.identity))

    def close(self) -> None:
        self._loaded = False

    def _read(self) -> dict[tuple[date, str], int]:
        rows: dict[tuple[date, str], int] = {}
        self._unparsed = []
        try:
            handle = self.location.open(newline="", encoding="utf-8")
        except FileNotFoundError:
            return rows
        with handle:
            for line_no, row in enumerate(csv.DictReader(handle), start=2):
                raw = tuple(row.get(field) or "" for field in CSV_FIELDS)
                identity = raw[1].strip()
                try:
                    day = date.fromisoformat(raw[0].strip())
                except ValueError:
                    day = None
                if day is None or not identity:
                    logger.warning(
                        "Keeping unreadable row at %s line %d as is: %r",
                        self.location,
                        line_no,
                        raw,
                    )
                    self._unparsed.append(raw)
                    continue
                key = (day, identity)
                rows[key] = rows.get(key, 0) + _read_duration(row.get("duration"))
        return rows

    def _write(self, rows: dict[tuple[date, str], int]) -> None:
        self.location.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.location.name}.", dir=self.location.parent
        )
        try:
            with os.fdopen(fd, "w", newline="", encoding="utf-8") as handle:
                writer = csv.writer(handle)
                writer.writerow(CSV_FIELDS)
                for (day, identity), seconds in sorted(rows.items()):
                    duration = (
                        format_duration(seconds) if self.legacy_durations else seconds
                    )
                    writer.writerow((day.isoformat(), identity, duration))
                writer.writerows(self._unparsed)
            os.replace(tmp_name, self.location)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def _read_duration(value: Optional[str]) -> int:
    value = (value or "").strip()
    if value.isdigit():
        return int(value)
    return parse_duration(value)


def open_store(settings: TrackerSettings, data_dir: Optional[Path] = None) -> UsageStore:
    """Open the store selected by ``settings.backend``."""
    if settings.backend == "csv":
        return CsvUsageStore(
            get_csv_path(data_dir), legacy_durations=settings.legacy_durations
        )
    return SqliteUsageStore(
        get_db_path(data_dir), timeout=settings.write_timeout.total_seconds()
    )
