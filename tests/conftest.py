from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Optional, Union

import pytest

from focus_tracker.config import TrackerSettings
from focus_tracker.errors import ActiveWindowError
from focus_tracker.models import WindowObservation
from focus_tracker.storage import SqliteUsageStore

Step = Union[WindowObservation, Exception, None]


class FakeProbe:
    """Replays observations; repeats the last one when exhausted."""

    def __init__(self, steps: Iterable[Step] = ()) -> None:
        self.steps = list(steps)
        self.calls = 0

    def push(self, *steps: Step) -> None:
        self.steps.extend(steps)

    def get_active_window(self) -> Optional[WindowObservation]:
        self.calls += 1
        if not self.steps:
            return None
        step = self.steps.pop(0) if len(self.steps) > 1 else self.steps[0]
        if isinstance(step, Exception):
            raise step
        return step


class FakeClock:
    """Wall clock plus a monotonic counter that only moves forward."""

    def __init__(self, start: datetime) -> None:
        self.now = start
        self.ticks = 1000.0

    def __call__(self) -> datetime:
        return self.now

    def monotonic(self) -> float:
        return self.ticks

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        self.ticks += seconds
        return self.now

    def shift_wall(self, seconds: float) -> datetime:
        """Move the wall clock only, as a DST change or NTP step does."""
        self.now += timedelta(seconds=seconds)
        return self.now


def window(title: str, window_class: str = "") -> WindowObservation:
    return WindowObservation(title=title, window_class=window_class)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 5, 6, 9, 0, 0))


@pytest.fixture
def settings() -> TrackerSettings:
    return TrackerSettings()


@pytest.fixture
def sqlite_store(tmp_path):
    store = SqliteUsageStore(tmp_path / "usage.sqlite3")
    yield store
    store.close()


@pytest.fixture
def provider_error() -> ActiveWindowError:
    return ActiveWindowError("hyprctl exited with 1")
