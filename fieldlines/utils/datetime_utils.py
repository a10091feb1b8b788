"""
Datetime utility functions.
Provides timezone-aware helpers shared by the services.
"""

from datetime import date, datetime
from typing import Optional, Union
import pytz


def utcnow() -> datetime:
    """
    Get current UTC datetime using pytz.UTC.

    Returns:
        Current UTC datetime with pytz timezone information
    """
    return datetime.now(pytz.UTC)


def ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes.

    Some database drivers (SQLite) hand back naive datetimes even for
    timezone-aware columns; comparisons against ``utcnow()`` need both sides aware.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value


def parse_date(date_input: Union[str, date, datetime]) -> date:
    """
    Parse a booking date.

    Accepts ISO dates ("2026-01-21"), ISO datetimes ("2026-01-21T00:00:00Z")
    or date/datetime objects.

    Raises:
        ValueError: If the string is not a recognizable date
    """
    if isinstance(date_input, datetime):
        return date_input.date()
    if isinstance(date_input, date):
        return date_input
    if not isinstance(date_input, str):
        raise ValueError(f"Expected string or date, got {type(date_input)}")

    date_str = date_input.strip()
    try:
        return datetime.strptime(date_str[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValueError(f"Invalid date: {date_input}")


def format_display_date(value: Optional[Union[str, date]]) -> str:
    """Format a date for emails, e.g. "Saturday, 21 March 2026"."""
    if not value:
        return ""
    value = parse_date(value)
    return f"{value.strftime('%A')}, {value.day} {value.strftime('%B %Y')}"


def start_of_day_utc(value: date) -> datetime:
    """Midnight UTC at the start of the given date."""
    return pytz.UTC.localize(datetime(value.year, value.month, value.day))
