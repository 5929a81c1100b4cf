"""
Date parsing and display formatting.

Exercise dates are calendar dates with no time of day. They come in as
YYYY-MM-DD strings and go out as Display Dates such as "Sun Jan 01 2023".
Nothing here touches timezones, so a date is never shifted by an offset.
"""

import re
from datetime import date, datetime
from typing import Optional, Union

from .errors import InvalidDateError

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Fixed English names so the output does not depend on the process locale
WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_NAMES = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

DateInput = Union[str, date, None]


def today() -> date:
    """Current date on the server clock."""
    return date.today()


def parse_date(value: Union[str, date]) -> date:
    """
    Parse a YYYY-MM-DD string into a date.

    Raises InvalidDateError for anything that is not a real calendar
    date in that exact shape, including rollover values like 2023-02-30.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not DATE_PATTERN.match(text):
        raise InvalidDateError(value)

    year, month, day = (int(part) for part in text.split("-"))
    try:
        return date(year, month, day)
    except ValueError:
        raise InvalidDateError(value)


def format_display_date(value: date) -> str:
    """Render a date as 'Www Mmm DD YYYY'."""
    return (
        f"{WEEKDAY_NAMES[value.weekday()]} "
        f"{MONTH_NAMES[value.month - 1]} "
        f"{value.day:02d} {value.year:04d}"
    )


def normalize_date(value: DateInput = None) -> date:
    """Parse the given date, or fall back to today when it is absent."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return today()
    return parse_date(value)


def normalize(value: DateInput = None) -> str:
    """Normalize a date input straight to its Display Date."""
    return format_display_date(normalize_date(value))


def parse_optional_date(value: DateInput) -> Optional[date]:
    """Like parse_date, but None and blank strings mean 'no date'."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_date(value)
