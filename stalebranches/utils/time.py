"""Elapsed-time helpers working on millisecond epoch timestamps."""
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Union

Timestamp = Union[int, float, datetime, str]

MS_PER_SECOND = 1_000
MS_PER_MINUTE = 60_000
MS_PER_HOUR = 3_600_000
MS_PER_DAY = 86_400_000


def to_millis(value: Timestamp) -> float:
    """Return ``value`` as milliseconds since the epoch.

    Accepts plain numbers (already milliseconds), ``datetime`` objects
    (naive values are taken as UTC) and ISO-8601 strings such as the
    ``2022-01-22T01:45:30Z`` dates GitHub returns.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp() * MS_PER_SECOND
    return float(value)


def now_millis() -> float:
    return datetime.now(timezone.utc).timestamp() * MS_PER_SECOND


def _round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; ages must round .5 up.
    return int(math.floor(value + 0.5))


def _elapsed(a: Timestamp, b: Timestamp, unit: int) -> int:
    return _round_half_up((to_millis(a) - to_millis(b)) / unit)


def days_between(a: Timestamp, b: Timestamp) -> int:
    """Whole days from ``b`` to ``a``; negative when ``a`` is earlier."""
    return _elapsed(a, b, MS_PER_DAY)


def hours_between(a: Timestamp, b: Timestamp) -> int:
    return _elapsed(a, b, MS_PER_HOUR)


def minutes_between(a: Timestamp, b: Timestamp) -> int:
    """Whole minutes from ``b`` to ``a``; negative when ``a`` is earlier."""
    return _elapsed(a, b, MS_PER_MINUTE)


def seconds_between(a: Timestamp, b: Timestamp) -> int:
    return _elapsed(a, b, MS_PER_SECOND)
