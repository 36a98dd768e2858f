"""Configuration models and helpers for the focus tracker."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

BACKENDS = ("sqlite", "csv")


@dataclass(slots=True)
class TrackerSettings:
    """Runtime configuration for the focus tracker."""

    poll_interval: timedelta = timedelta(milliseconds=500)
    session_timeout: timedelta = timedelta(seconds=30)
    session_check_interval: timedelta = timedelta(seconds=2)
    provider_timeout: timedelta = timedelta(seconds=2)
    write_timeout: timedelta = timedelta(seconds=5)
    split_at_midnight: bool = False
    backend: str = "sqlite"
    legacy_durations: bool = False

    def __post_init__(self) -> None:
        if self.backend not in BACKENDS:
            raise ValueError(
                f"Unknown storage backend {self.backend!r}; expected one of {BACKENDS}"
            )

    @classmethod
    def from_intervals(
        cls,
        poll_ms: float,
        session_timeout_seconds: float,
        *,
        backend: str = "sqlite",
        split_at_midnight: bool = False,
        legacy_durations: bool = False,
        write_timeout_seconds: float | None = None,
    ) -> "TrackerSettings":
        write_timeout = (
            write_timeout_seconds
            if write_timeout_seconds is not None
            else max(poll_ms / 1000 * 10, 5.0)
        )
        return cls(
            poll_interval=timedelta(milliseconds=poll_ms),
            session_timeout=timedelta(seconds=session_timeout_seconds),
            write_timeout=timedelta(seconds=write_timeout),
            split_at_midnight=split_at_midnight,
            backend=backend,
            legacy_durations=legacy_durations,
        )
