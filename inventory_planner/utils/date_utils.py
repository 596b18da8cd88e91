# inventory_planner/utils/date_utils.py
from datetime import date, datetime, time, timedelta
from typing import Optional, Union
import calendar

DateLike = Union[date, datetime, str, None]


def to_date(value: DateLike) -> Optional[date]:
    """Normalize a date-like value to a calendar date.

    Accepts `date`, `datetime` (time of day dropped) and ISO-8601 strings
    (`YYYY-MM-DD`, optionally followed by a time part).

    Args:
        value: Date-like value

    Returns:
        Date object, or None if the value is empty or unparseable
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None

    return None


def to_datetime(value: DateLike) -> Optional[datetime]:
    """Normalize a date-like value to a naive datetime.

    Dates become midnight of that day; datetimes pass through unchanged.

    Args:
        value: Date-like value

    Returns:
        Datetime object, or None if the value is empty or unparseable
    """
    if isinstance(value, datetime):
        return value

    as_date = to_date(value)
    if as_date is None:
        return None
    return datetime.combine(as_date, time.min)


def to_iso(value: DateLike) -> str:
    """Format a date-like value as `YYYY-MM-DD`, or '' if it is empty."""
    as_date = to_date(value)
    return as_date.isoformat() if as_date else ''


def end_of_day(value: DateLike) -> Optional[datetime]:
    """Get the last representable instant of the given day."""
    as_date = to_date(value)
    if as_date is None:
        return None
    return datetime.combine(as_date, time.max)


def days_between(start: DateLike, end: DateLike) -> Optional[int]:
    """Absolute number of calendar days between two dates.

    Args:
        start: First date
        end: Second date

    Returns:
        Non-negative day count, or None if either date is missing
    """
    start_date = to_date(start)
    end_date = to_date(end)
    if start_date is None or end_date is None:
        return None
    return abs((end_date - start_date).days)


def signed_days_between(start: DateLike, end: DateLike) -> Optional[int]:
    """Number of days from start to end (negative if end is earlier)."""
    start_date = to_date(start)
    end_date = to_date(end)
    if start_date is None or end_date is None:
        return None
    return (end_date - start_date).days


def add_days(start_date: date, days: int) -> date:
    """Add days to a date.

    Args:
        start_date: Start date
        days: Number of days to add

    Returns:
        New date
    """
    return start_date + timedelta(days=days)


def subtract_months(value: Union[date, datetime], months: int) -> Union[date, datetime]:
    """Step back a number of calendar months.

    The day of month is clamped to the length of the target month, so
    31 May minus three months is 28 (or 29) February.

    Args:
        value: Date or datetime to step back from
        months: Number of months

    Returns:
        Value of the same type, `months` calendar months earlier
    """
    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)
