from datetime import datetime, timedelta, timezone
from typing import List, Optional

EDIT_DATETIME_FORMAT = "%Y-%m-%d %H:%M"


def utcnow() -> datetime:
    """Naive UTC timestamp, the representation stored in the database"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Naive values are assumed to already be UTC
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_edit_datetime(value: str) -> datetime:
    """Strictly parse a "YYYY-MM-DD HH:mm" string, raising ValueError otherwise"""
    return datetime.strptime(value, EDIT_DATETIME_FORMAT)


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def day_range(start: datetime, end: datetime) -> List[str]:
    """Calendar days touched by [start, end], as YYYY-MM-DD strings"""
    days = []
    current = start.date()
    while current <= end.date():
        days.append(current.isoformat())
        current += timedelta(days=1)
    return days


def short_date(value: datetime) -> str:
    return f"{value.strftime('%b')} {value.day}"
