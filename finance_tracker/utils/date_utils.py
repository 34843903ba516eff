"""Date manipulation utilities"""

from datetime import date, datetime, timedelta, timezone


def start_of_week(day: date) -> date:
    """Most recent Sunday on or before `day`"""
    # date.weekday() counts from Monday = 0; weeks here start on Sunday
    return day - timedelta(days=(day.weekday() + 1) % 7)


def in_current_week(value: date, today: date) -> bool:
    return start_of_week(today) <= value <= today


def in_same_month(value: date, today: date) -> bool:
    return value.year == today.year and value.month == today.month


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps coming back from the store as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
