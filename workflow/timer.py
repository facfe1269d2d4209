"""Call timer helpers.

The on-screen timer is advisory client state. The server only ever derives a
duration from call_started_at, and clamps whatever the client submits to it.
"""
from datetime import datetime
from typing import Optional


def elapsed(started_at: Optional[datetime], now: Optional[datetime] = None) -> int:
    """Whole seconds since started_at (0 if the call never started)."""
    if started_at is None:
        return 0
    now = now or datetime.now()
    return max(0, int((now - started_at).total_seconds()))


def bounded_duration(
    submitted: Optional[int],
    started_at: Optional[datetime],
    now: Optional[datetime] = None,
) -> int:
    """Clamp a client-submitted duration to [0, elapsed]. None means elapsed."""
    limit = elapsed(started_at, now)
    if submitted is None:
        return limit
    return min(max(0, int(submitted)), limit)


def format_duration(seconds: int) -> str:
    """mm:ss, as the call screen shows it."""
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


def to_local_naive(value: datetime) -> datetime:
    """Aware datetimes become naive local wall-clock time; naive ones pass through."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value
