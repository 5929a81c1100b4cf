"""
Duration validation.

Durations arrive as form strings or JSON numbers. They are read as whole
minutes: fractions are truncated, and a string is read up to the first
character that is not part of a leading integer.
"""

import math
import re
from typing import Optional

MIN_DURATION = 0
MAX_DURATION = 600

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_duration(value) -> Optional[int]:
    """
    Parse a value as an integer, or return None if it is not a number.

    "45" -> 45, "3.9" -> 3, "30min" -> 30, 12.7 -> 12, "abc" -> None
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, int):
        return value

    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)

    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def is_valid_duration(value) -> bool:
    """True if the value parses to a whole number of minutes in [0, 600]."""
    minutes = parse_duration(value)
    return minutes is not None and MIN_DURATION <= minutes <= MAX_DURATION
