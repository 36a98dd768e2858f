"""Command-line interface for the focus tracker."""

from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import typer

from .config import BACKENDS, TrackerSettings
from .errors import DataDirectoryError
from .paths import get_csv_path, get_data_dir, get_db_path, get_log_path
from .storage import UsageStore, open_store

app = typer.Typer(help="Track how long focus stays on each application.")

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

DataDirOption = typer.Option(
    None, "--data-dir", path_type=Path, help="Directory holding the usage store."
)
BackendOption = typer.Option(
    "sqlite", "--backend", help=f"Storage backend: {', '.join(BACKENDS)}."
)


@app.callback(no_args_is_help=True)
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs."),
    log_file: bool = typer.Option(
        False, "--log-file", help="Also write logs to the data directory."
    ),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
    )
    if log_file:
        handler = logging.FileHandler(_resolve(get_log_path), encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(handler)


@app.command()
def track(
    data_dir: Optional[Path] = DataDirOption,
    backend: str = BackendOption,
    poll_ms: float = typer.Option(
        500.0,
        "--interval",
        min=50.0,
        help="Polling interval in milliseconds.",
    ),
    session_timeout: float = typer.Option(
        30.0,
        "--session-timeout",
        min=0.0,
        help="Seconds to wait for the Hyprland socket before polling.",
    ),
    require_session: bool = typer.Option(
        False,
        "--require-session/--no-require-session",
        help="Exit instead of polling when the Hyprland socket never appears.",
    ),
    split_at_midnight: bool = typer.Option(
        False,
        "--split-at-midnight",
        help="Split intervals that cross midnight between both days.",
    ),
    legacy_durations: bool = typer.Option(
        False,
        "--legacy-durations",
        help="Write CSV durations as HHh:MMm:SSs instead of seconds.",
    ),
) -> None:
    """Track the focused window until interrupted."""
    from .hyprland import wait_for_session
    from .tracker import FocusTracker

    settings = _settings(
        TrackerSettings.from_intervals,
        poll_ms,
        session_timeout,
        backend=backend,
        split_at_midnight=split_at_midnight,
        legacy_durations=legacy_durations,
    )
    ready = wait_for_session(
        settings.session_timeout.total_seconds(),
        settings.session_check_interval.total_seconds(),
    )
    if not ready:
        if require_session:
            typer.echo("Hyprland session is not available; giving up.", err=True)
            raise typer.Exit(code=1)
        logger.warning("Hyprland session not detected; polling anyway.")

    tracker = FocusTracker(store=_open(settings, data_dir), settings=settings)
    tracker.run_forever()


@app.command()
def summary(
    day: Optional[str] = typer.Option(
        None,
        "--date",
        help="Date (YYYY-MM-DD) to summarize. Defaults to today.",
    ),
    data_dir: Optional[Path] = DataDirOption,
    backend: str = BackendOption,
) -> None:
    """Print per-application totals for a day."""
    from .reporting import SummaryPrinter

    store = _open(_settings(TrackerSettings, backend=backend), data_dir)
    try:
        SummaryPrinter(store).print_daily_summary(_parse_day(day))
    finally:
        store.close()


@app.command()
def usage(
    identity: str = typer.Argument(..., help="Application identity, e.g. NeoVim."),
    day: Optional[str] = typer.Option(
        None, "--date", help="Date (YYYY-MM-DD). Defaults to today."
    ),
    data_dir: Optional[Path] = DataDirOption,
    backend: str = BackendOption,
) -> None:
    """Look up the time recorded for one application on one day."""
    from .reporting import SummaryPrinter

    store = _open(_settings(TrackerSettings, backend=backend), data_dir)
    try:
        SummaryPrinter(store).print_usage(identity, _parse_day(day))
    finally:
        store.close()


@app.command()
def records(
    data_dir: Optional[Path] = DataDirOption,
    backend: str = BackendOption,
) -> None:
    """Print every stored record."""
    from .reporting import SummaryPrinter

    store = _open(_settings(TrackerSettings, backend=backend), data_dir)
    try:
        SummaryPrinter(store).print_all_records()
    finally:
        store.close()


@app.command()
def paths(data_dir: Optional[Path] = DataDirOption) -> None:
    """Show where usage data and logs are kept."""
    typer.echo(f"Data directory: {_resolve(get_data_dir, data_dir)}")
    typer.echo(f"SQLite store:   {_resolve(get_db_path, data_dir)}")
    typer.echo(f"CSV store:      {_resolve(get_csv_path, data_dir)}")
    typer.echo(f"Log file:       {_resolve(get_log_path, data_dir)}")


def _settings(factory, *args, **kwargs) -> TrackerSettings:
    try:
        return factory(*args, **kwargs)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--backend") from exc


def _open(settings: TrackerSettings, data_dir: Optional[Path]) -> UsageStore:
    try:
        return open_store(settings, data_dir)
    except DataDirectoryError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    except sqlite3.Error as exc:
        typer.echo(f"Cannot open usage store: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _resolve(getter, data_dir: Optional[Path] = None) -> Path:
    try:
        return getter(data_dir)
    except DataDirectoryError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc


def _parse_day(value: Optional[str]) -> date:
    if not value:
        return date.today()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise typer.BadParameter("Expected YYYY-MM-DD", param_hint="--date") from exc
