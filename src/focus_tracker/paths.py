"""Helpers for locating application directories."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from platformdirs import PlatformDirs

from .errors import DataDirectoryError

APP_NAME = "focus-tracker"

logger = logging.getLogger(__name__)


def get_data_dir(override: Optional[Path] = None) -> Path:
    """Return the base directory for persistent data, creating it if needed."""
    if override is not None:
        path = Path(override).expanduser()
    else:
        path = PlatformDirs(appname=APP_NAME, appauthor=False).user_data_path
    if path.is_dir():
        return path
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DataDirectoryError(
            f"Failed to create data directory at {path}: {exc}"
        ) from exc
    logger.info("Created data directory at %s", path)
    return path


def get_db_path(data_dir: Optional[Path] = None) -> Path:
    return get_data_dir(data_dir) / "usage.sqlite3"


def get_csv_path(data_dir: Optional[Path] = None) -> Path:
    return get_data_dir(data_dir) / "usage.csv"


def get_log_path(data_dir: Optional[Path] = None) -> Path:
    return get_data_dir(data_dir) / "tracker.log"
