from __future__ import annotations

from datetime import date, datetime, timedelta


def as_date(x: date | datetime) -> date:
    """datetime -> its calendar date; plain dates pass through."""
    if isinstance(x, datetime):
        return x.date()
    return x


def naive_local(x: datetime) -> datetime:
    """Offset-aware datetimes -> naive local time; naive ones pass through."""
    if x.tzinfo is None:
        return x
    return x.astimezone().replace(tzinfo=None)


def days_between(start: date | datetime, end: date | datetime) -> int:
    """Whole calendar days from start to end (negative if end is earlier)."""
    return (as_date(end) - as_date(start)).days


def is_same_calendar_day(a: date | datetime, b: date | datetime) -> bool:
    return as_date(a) == as_date(b)


def elapsed_at_least(since: datetime, now: datetime, duration: timedelta | None) -> bool:
    """
    Fixed-duration comparison. A None duration never elapses.
    Naive and offset-aware inputs may be mixed; both compare in local time.
    """
    if duration is None:
        return False
    return naive_local(now) - naive_local(since) >= duration
