"""Calendar helpers: week starts, ISO week numbers and day-of-week conventions.

All schedule dates are date-only values (``datetime.date``), the UTC-midnight
normalisation used by the store, so they never carry a time-of-day.
"""

import re
from datetime import UTC, date, datetime, timedelta

from src.core.config import constants
from src.core.errors import InvalidDateFormatError, InvalidWeekStartError


_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date(value: str | date, *, field: str = "date") -> date:
    """Parse a strict YYYY-MM-DD string into a date.

    Args:
        value: Date string, or an already parsed date
        field: Field name reported in the error

    Raises:
        InvalidDateFormatError: If the value is not a real calendar date in YYYY-MM-DD form
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if not isinstance(value, str) or not _ISO_DATE_RE.match(value):
        msg = f"Invalid {field} format. Expected YYYY-MM-DD."
        raise InvalidDateFormatError(msg, field=field)

    try:
        return date.fromisoformat(value)
    except ValueError as e:
        msg = f"Invalid {field} format. Expected YYYY-MM-DD."
        raise InvalidDateFormatError(msg, field=field) from e


def parse_week_start_date(value: str | date) -> date:
    """Parse a week start date and require it to be a Monday.

    Raises:
        InvalidDateFormatError: If the value is not a YYYY-MM-DD date
        InvalidWeekStartError: If the date is not a Monday
    """
    week_start = parse_iso_date(value, field="week_start_date")
    if week_start.weekday() != 0:
        msg = "Week start date must be a Monday."
        raise InvalidWeekStartError(msg, field="week_start_date")
    return week_start


def iso_week_number(day: date) -> int:
    """ISO-8601 week number (1-53) of a date.

    The week is Monday-based and belongs to the year holding its Thursday, so
    2024-12-30 is week 1 of 2025.
    """
    return day.isocalendar().week


def day_of_week(day: date) -> int:
    """Day index with 0=Sunday ... 6=Saturday."""
    return (day.weekday() + 1) % 7


def week_dates(week_start: date) -> list[date]:
    """The seven dates of the week starting at ``week_start``."""
    return [week_start + timedelta(days=offset) for offset in range(constants.DAYS_PER_WEEK)]


def get_week_start_date(dt: datetime | date | None = None) -> date:
    """Get the Monday of the week containing ``dt`` (today in UTC if None)."""
    if dt is None:
        dt = datetime.now(UTC)
    day = dt.date() if isinstance(dt, datetime) else dt
    return day - timedelta(days=day.weekday())


def format_notification_date(day: date) -> str:
    """Human-readable date used in notifications, e.g. 'Monday, Jan 1'."""
    return f"{day:%A}, {day:%b} {day.day}"
