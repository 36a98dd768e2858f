"""Formatting and parsing of the legacy ``HHh:MMm:SSs`` duration strings.

Hours are zero-padded to two digits. Durations of 100 hours or more are
written with as many hour digits as needed; ``parse_duration`` reads them
back, but other tools expecting exactly two digits will not.
"""

from __future__ import annotations

import re

MAX_FIXED_WIDTH_SECONDS = 99 * 3600 + 59 * 60 + 59

_HOURS = re.compile(r"^(\d+)h$")
_MINUTES = re.compile(r"^([0-5]\d)m$")
_SECONDS = re.compile(r"^([0-5]\d)s$")


def format_duration(seconds: float) -> str:
    total_seconds = max(int(seconds), 0)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}h:{minutes:02d}m:{secs:02d}s"


def parse_duration(value: str) -> int:
    """Inverse of ``format_duration``; a malformed field counts as zero."""
    fields = value.strip().split(":")
    if len(fields) != 3:
        return 0
    hours, minutes, secs = (
        _parse_field(pattern, field)
        for pattern, field in zip((_HOURS, _MINUTES, _SECONDS), fields)
    )
    return hours * 3600 + minutes * 60 + secs


def _parse_field(pattern: re.Pattern[str], field: str) -> int:
    match = pattern.match(field.strip())
    return int(match.group(1)) if match else 0


def format_clock(seconds: float) -> str:
    """Render seconds as ``HH:MM:SS`` for console tables."""
    total_seconds = int(round(seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
