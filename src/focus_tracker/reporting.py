"""Simple reporting utilities for CLI output."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Iterable

from .durations import format_clock
from .models import UsageRecord
from .storage import UsageStore


class SummaryPrinter:
    """Render human-readable summaries in the console."""

    def __init__(self, store: UsageStore) -> None:
        self.store = store

    def print_daily_summary(self, day: date, limit: int = 15) -> None:
        records = self.store.usage_for_day(day)
        if not records:
            print("No activity recorded for the selected day.")
            return

        print(f"Summary for {day.isoformat()}")
        print("-" * 48)
        print(f"Tracked time: {format_clock(sum(r.seconds for r in records))}")
        print()
        print("Top activities:")
        for identity, seconds in aggregate_by_identity(records)[:limit]:
            print(f"  {identity[:36]:<36} {format_clock(seconds)}")

    def print_all_records(self) -> None:
        records = self.store.load_all()
        print("--- All Records ---")
        for record in records:
            print(
                f"{record.day.isoformat()}  {record.identity[:36]:<36} "
                f"{format_clock(record.seconds)}"
            )
        print("-" * 20)

    def print_usage(self, identity: str, day: date) -> None:
        seconds = self.store.usage_for(identity, day)
        if seconds is None:
            print(f"No usage recorded for {identity} on {day.isoformat()}.")
            return
        print(f"{identity} on {day.isoformat()}: {format_clock(seconds)}")


def aggregate_by_identity(records: Iterable[UsageRecord]) -> list[tuple[str, int]]:
    totals: defaultdict[str, int] = defaultdict(int)
    for record in records:
        totals[record.identity] += record.seconds
    return sorted(totals.items(), key=lambda item: (-item[1], item[0]))
