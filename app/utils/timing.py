"""
Attempt Timing Helpers

Pure functions over a start timestamp and a duration in minutes. Callers pass
`now` explicitly so the same instant is used for every check in a request.
"""

import math
from datetime import datetime, timezone, timedelta
from typing import Optional


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def _as_aware(value: datetime) -> datetime:
    # Rows read back from some drivers come without tzinfo; they are stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def elapsed_seconds(started_at: datetime, now: Optional[datetime] = None) -> float:
    """Seconds since `started_at` (never negative)."""
    now = now or utc_now()
    delta = (_as_aware(now) - _as_aware(started_at)).total_seconds()
    return max(0.0, delta)


def remaining_seconds(started_at: datetime, duration_minutes: int, now: Optional[datetime] = None) -> int:
    """Whole seconds left in the time limit, floored, never below zero."""
    remaining = duration_minutes * 60 - elapsed_seconds(started_at, now)
    return max(0, math.floor(remaining))


def is_time_expired(started_at: datetime, duration_minutes: int, now: Optional[datetime] = None) -> bool:
    """True once elapsed time is strictly greater than the duration."""
    return elapsed_seconds(started_at, now) > duration_minutes * 60


def deadline_for(started_at: datetime, duration_minutes: int) -> datetime:
    return _as_aware(started_at) + timedelta(minutes=duration_minutes)
