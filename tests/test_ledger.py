from __future__ import annotations

from datetime import date

import pytest

from focus_tracker.ledger import UsageLedger
from focus_tracker.models import UsageRecord

DAY = date(2024, 5, 6)


def test_accrue_sums_deltas_and_never_decreases():
    ledger = UsageLedger()
    seen = []
    for delta in (3, 0, 10, 1, 0, 7):
        ledger.accrue(DAY, "NeoVim", delta)
        seen.append(ledger.get(DAY, "NeoVim"))
    assert seen == sorted(seen)
    assert ledger.get(DAY, "NeoVim") == 21


def test_zero_delta_does_not_create_a_record():
    ledger = UsageLedger()
    ledger.accrue(DAY, "Discord", 0)
    assert len(ledger) == 0
    assert ledger.snapshot() == []


def test_negative_delta_is_rejected():
    ledger = UsageLedger()
    ledger.accrue(DAY, "Discord", 5)
    with pytest.raises(ValueError):
        ledger.accrue(DAY, "Discord", -1)
    assert ledger.get(DAY, "Discord") == 5


def test_snapshot_is_ordered_by_day_then_identity():
    ledger = UsageLedger()
    ledger.accrue(date(2024, 5, 7), "Alpha", 1)
    ledger.accrue(DAY, "Zed", 2)
    ledger.accrue(DAY, "Firefox", 3)
    assert [r.key for r in ledger.snapshot()] == [
        (DAY, "Firefox"),
        (DAY, "Zed"),
        (date(2024, 5, 7), "Alpha"),
    ]


def test_seeded_totals_are_not_pending():
    ledger = UsageLedger()
    ledger.seed([UsageRecord(DAY, "Firefox", 120)])
    ledger.accrue(DAY, "Firefox", 5)
    assert ledger.get(DAY, "Firefox") == 125
    assert ledger.pending() == [UsageRecord(DAY, "Firefox", 5)]


def test_acknowledge_clears_only_the_persisted_delta():
    ledger = UsageLedger()
    ledger.accrue(DAY, "Firefox", 5)
    persisted = ledger.pending()[0]
    ledger.accrue(DAY, "Firefox", 3)
    ledger.acknowledge(persisted)
    assert ledger.pending() == [UsageRecord(DAY, "Firefox", 3)]
    assert ledger.pending_seconds == 3
    assert ledger.get(DAY, "Firefox") == 8
