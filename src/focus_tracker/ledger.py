"""In-memory aggregate of accrued focus time."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Iterable

from .models import UsageRecord


class UsageLedger:
    """Totals of seconds per ``(day, identity)``.

    Every accrual is also kept as a pending delta until the store
    acknowledges it, so a failed write is retried on the next flush
    without losing or double counting time.
    """

    def __init__(self) -> None:
        self._totals: dict[tuple[date, str], int] = {}
        self._pending: defaultdict[tuple[date, str], int] = defaultdict(int)

    def __len__(self) -> int:
        return len(self._totals)

    def seed(self, records: Iterable[UsageRecord]) -> None:
        """Add persisted totals without scheduling them for another write."""
        for record in records:
            if record.seconds < 0:
                raise ValueError(f"Negative duration in {record!r}")
            self._totals[record.key] = self._totals.get(record.key, 0) + record.seconds

    def accrue(self, day: date, identity: str, seconds: int) -> None:
        if seconds < 0:
            raise ValueError(f"Cannot accrue a negative duration ({seconds}s)")
        if seconds == 0:
            return
        key = (day, identity)
        self._totals[key] = self._totals.get(key, 0) + seconds
        self._pending[key] += seconds

    def get(self, day: date, identity: str) -> int:
        return self._totals.get((day, identity), 0)

    def snapshot(self) -> list[UsageRecord]:
        return [
            UsageRecord(day=day, identity=identity, seconds=seconds)
            for (day, identity), seconds in sorted(self._totals.items())
        ]

    def pending(self) -> list[UsageRecord]:
        return [
            UsageRecord(day=day, identity=identity, seconds=seconds)
            for (day, identity), seconds in sorted(self._pending.items())
        ]

    def acknowledge(self, record: UsageRecord) -> None:
        """Forget a pending delta once the store has persisted it."""
        remaining = self._pending.get(record.key, 0) - record.seconds
        if remaining > 0:
            self._pending[record.key] = remaining
        else:
            self._pending.pop(record.key, None)

    @property
    def pending_seconds(self) -> int:
        return sum(self._pending.values())
