"""
Datetime helpers for booking windows.

Convention: naive datetimes are UTC. Aware datetimes are converted to
UTC and stripped so that comparisons never mix naive and aware values.
"""
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def as_utc_naive(value: datetime) -> datetime:
    """Return value as a naive UTC datetime."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def local_booking_date(start_time: datetime, tz_name: Optional[str]) -> date:
    """Calendar date of start_time in the unit's timezone (UTC if unknown)."""
    utc_value = as_utc_naive(start_time).replace(tzinfo=timezone.utc)
    try:
        tz = ZoneInfo(tz_name) if tz_name else timezone.utc
    except (ZoneInfoNotFoundError, ValueError):
        tz = timezone.utc
    return utc_value.astimezone(tz).date()


def sunday_based_weekday(day: date) -> int:
    """0=Sunday ... 6=Saturday"""
    return day.isoweekday() % 7
