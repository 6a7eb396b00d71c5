"""
Date helpers shared by the intelligence services.

Every computation takes an explicit ``as_of`` instant so results are
reproducible in tests; these helpers normalize it to aware UTC.
"""

from calendar import monthrange
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

SECONDS_PER_DAY = 24 * 60 * 60


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (asyncpg returns TIMESTAMP columns naive)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_as_of(as_of: Optional[datetime]) -> datetime:
    return utc_now() if as_of is None else as_utc(as_of)


def whole_days_between(earlier: datetime, later: datetime) -> int:
    """Floor of the elapsed time in days."""
    elapsed = (as_utc(later) - as_utc(earlier)).total_seconds()
    return int(elapsed // SECONDS_PER_DAY)


def subtract_months(value: datetime, months: int) -> datetime:
    """
    Move back a number of calendar months, clamping the day to the target month.

    >>> subtract_months(datetime(2026, 3, 31), 1)
    datetime.datetime(2026, 2, 28, 0, 0)
    """
    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """Return [start, end) of a calendar month in UTC."""
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    end = start + timedelta(days=monthrange(year, month)[1])
    return start, end
