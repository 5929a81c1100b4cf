"""
Exercise log filtering.

Filtering never reorders: entries that survive keep their insertion order,
and a limit keeps the first N entries rather than the most recent ones.
"""

from typing import Iterable, Optional

from .dates import DateInput, parse_optional_date
from .durations import parse_duration
from .models import Exercise


def parse_limit(value) -> Optional[int]:
    """Return the limit as a non-negative int, or None if it should be ignored."""
    if isinstance(value, str) and not value.strip():
        return None
    limit = parse_duration(value)
    if limit is None or limit < 0:
        return None
    return limit


def filter_log(
    entries: Iterable[Exercise],
    from_date: DateInput = None,
    to_date: DateInput = None,
    limit=None,
    open_ended: bool = False,
) -> list[Exercise]:
    """
    Filter a log by date range, then truncate it.

    Both bounds are inclusive. When only one bound is given the range is
    ignored unless `open_ended` is set, in which case each bound applies
    on its own.

    Raises InvalidDateError if a bound is not a valid YYYY-MM-DD date.
    """
    start = parse_optional_date(from_date)
    end = parse_optional_date(to_date)

    result = list(entries)

    if start is not None and end is not None:
        result = [e for e in result if start <= e.date <= end]
    elif open_ended and start is not None:
        result = [e for e in result if e.date >= start]
    elif open_ended and end is not None:
        result = [e for e in result if e.date <= end]

    max_entries = parse_limit(limit)
    if max_entries is not None:
        result = result[:max_entries]

    return result
