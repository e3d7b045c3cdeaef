# dayos/utils/clock.py
"""
Time helpers. All instants are stored as naive UTC datetimes.
"""

from datetime import datetime, timezone, tzinfo, date
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Current instant as a naive UTC datetime"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values are assumed UTC already"""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def resolve_timezone(name: str) -> tzinfo:
    if not name or name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def local_date(value: datetime, tz: tzinfo) -> date:
    """Calendar date of a naive UTC instant as seen in ``tz``"""
    return value.replace(tzinfo=timezone.utc).astimezone(tz).date()


def same_calendar_day(a: datetime, b: datetime, tz: tzinfo = timezone.utc) -> bool:
    return local_date(a, tz) == local_date(b, tz)
