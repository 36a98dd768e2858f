"""Domain models for recorded focus usage."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

EMPTY_IDENTITY = ""
"""Identity returned when a window carries neither a title nor a class."""


@dataclass(slots=True, frozen=True)
class WindowObservation:
    """The focused window as reported by the compositor for one poll."""

    title: str
    window_class: str
    pid: Optional[int] = None


@dataclass(slots=True, frozen=True)
class UsageRecord:
    """Seconds of focus credited to one identity on one day."""

    day: date
    identity: str
    seconds: int

    @property
    def key(self) -> tuple[date, str]:
        return (self.day, self.identity)
