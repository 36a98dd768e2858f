"""Focus tracker: polls the active window and credits time per identity."""

from __future__ import annotations

import logging
import signal
import threading
import time
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Iterator, Optional, Protocol

from .config import TrackerSettings
from .errors import ActiveWindowError, PersistenceError
from .hyprland import HyprlandActiveWindowProbe
from .ledger import UsageLedger
from .models import EMPTY_IDENTITY, WindowObservation
from .normalization import matching_rule, normalize
from .storage import UsageStore

logger = logging.getLogger(__name__)


class ActiveWindowProvider(Protocol):
    def get_active_window(self) -> Optional[WindowObservation]:
        ...


@dataclass(slots=True)
class TrackerState:
    last_key: Optional[tuple[date, str]] = None
    last_switch: Optional[datetime] = None
    switch_anchor: Optional[float] = None

    @property
    def is_tracking(self) -> bool:
        return self.last_key is not None

    @property
    def identity(self) -> Optional[str]:
        return self.last_key[1] if self.last_key else None


class FocusTracker:
    """Polls the focused window and writes per-day totals to a store.

    The tracker is ``Idle`` until the first usable observation and then
    ``Tracking`` one identity at a time. Elapsed time is always measured
    on the monotonic clock from ``state.switch_anchor``; the wall clock
    only decides which day it is credited to. Time is credited only when focus moves to another
    ``(day, identity)`` or the tracker shuts down.
    """

    def __init__(
        self,
        store: UsageStore,
        settings: TrackerSettings,
        probe: Optional[ActiveWindowProvider] = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.settings = settings
        self._probe = probe or HyprlandActiveWindowProbe(
            timeout=settings.provider_timeout.total_seconds()
        )
        self._clock = clock
        self._monotonic = monotonic
        self.ledger = UsageLedger()
        self.ledger.seed(store.load_all())
        self.state = TrackerState()
        self._stop_event = threading.Event()
        self._closed = False

    def run_forever(self) -> None:
        """Run until SIGINT/SIGTERM, then commit the final interval."""
        self._install_signal_handlers()
        try:
            self.run_until_stopped(self._stop_event)
        except KeyboardInterrupt:
            logger.info("Tracker interrupted.")

    def run_until_stopped(self, stop_event: threading.Event) -> None:
        """Run the poll loop until the provided event is set."""
        try:
            self._run_loop(stop_event)
        finally:
            self.shutdown()

    def stop(self) -> None:
        self._stop_event.set()

    def poll_once(self) -> bool:
        """Run one poll cycle; return ``True`` if focus moved to a new identity."""
        try:
            observation = self._probe.get_active_window()
        except ActiveWindowError as exc:
            logger.debug("Active window unavailable: %s", exc)
            return False
        if observation is None:
            return False

        now = self._clock()
        anchor = self._monotonic()
        identity = normalize(observation.title, observation.window_class)
        if identity == EMPTY_IDENTITY:
            return False

        key = (now.date(), identity)
        if key == self.state.last_key:
            return False

        self._accrue_current(now, anchor)
        self.state.last_key = key
        self.state.last_switch = now
        self.state.switch_anchor = anchor
        logger.info("Switched to %s", identity)
        logger.debug(
            "Resolved %r (%s) via %s",
            observation.title,
            observation.window_class,
            matching_rule(observation.title, observation.window_class) or "title",
        )
        self.flush()
        return True

    def flush(self) -> bool:
        """Write pending deltas to the store; return ``True`` if none remain."""
        for record in self.ledger.pending():
            try:
                self.store.upsert(record)
            except PersistenceError as exc:
                logger.warning(
                    "Keeping %ds for %s until next flush: %s",
                    record.seconds,
                    record.identity,
                    exc,
                )
                continue
            self.ledger.acknowledge(record)
            logger.debug(
                "Upsert: %s %s +%ds", record.day, record.identity, record.seconds
            )
        return self.ledger.pending_seconds == 0

    def shutdown(self) -> None:
        """Commit the interval in progress, flush and close the store."""
        if self._closed:
            return
        self._closed = True
        try:
            self._accrue_current(self._clock(), self._monotonic())
            self.flush()
            if self.ledger.pending_seconds:
                logger.error(
                    "Failed to persist %ds of usage on shutdown.",
                    self.ledger.pending_seconds,
                )
            else:
                logger.info("Final usage data written.")
        finally:
            self.state = TrackerState()
            self.store.close()
            logger.info("Tracker stopped.")

    def _accrue_current(self, now: datetime, anchor: float) -> None:
        """Credit the interval in progress and restart it at ``now``.

        The anchor moves before anything is written, so an interval is never
        accrued twice even if the store raises.
        """
        state = self.state
        if not state.last_key or state.last_switch is None or state.switch_anchor is None:
            return
        _, identity = state.last_key
        total = max(int(anchor - state.switch_anchor), 0)
        allocation = list(self._allocate(state.last_switch, now, total))
        state.last_switch = now
        state.switch_anchor = anchor
        for day, seconds in allocation:
            self.ledger.accrue(day, identity, seconds)

    def _allocate(
        self, start: datetime, end: datetime, total: int
    ) -> Iterator[tuple[date, int]]:
        """Split ``total`` seconds between the calendar days from ``start`` to ``end``.

        Unless ``split_at_midnight`` is set, everything goes to the day on
        which the switch was detected.
        """
        if not self.settings.split_at_midnight or start.date() >= end.date():
            yield end.date(), total
            return
        credited = 0
        cursor = start
        while cursor.date() < end.date():
            midnight = datetime.combine(
                cursor.date() + timedelta(days=1), datetime.min.time(), cursor.tzinfo
            )
            elapsed = int((midnight - start).total_seconds())
            seconds = min(max(elapsed - credited, 0), total - credited)
            yield cursor.date(), seconds
            credited += seconds
            cursor = midnight
        yield end.date(), total - credited

    def _run_loop(self, stop_event: threading.Event) -> None:
        logger.info("Starting focus tracker; writing to %s", self.store.location)
        interval = self.settings.poll_interval.total_seconds()
        while not stop_event.is_set():
            self.poll_once()
            stop_event.wait(interval)

    def _install_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return

        def _request_stop(signum: int, _frame: object) -> None:
            logger.info("Received signal %d, shutting down...", signum)
            self._stop_event.set()

        signal.signal(signal.SIGINT, _request_stop)
        signal.signal(signal.SIGTERM, _request_stop)
