"""Exception types raised by the focus tracker."""

from __future__ import annotations


class FocusTrackerError(Exception):
    """Base class for focus tracker errors."""


class ActiveWindowError(FocusTrackerError):
    """The compositor could not be queried for the active window."""


class PersistenceError(FocusTrackerError):
    """A write to the usage store failed and may be retried."""


class DataDirectoryError(FocusTrackerError):
    """The per-user data directory could not be created or used."""
