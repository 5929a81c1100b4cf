"""
Exercise tracking logic.

Contains the domain models, date and duration validation, log filtering
and the tracking service.
"""

from .dates import format_display_date, normalize, normalize_date, parse_date
from .durations import is_valid_duration, parse_duration
from .errors import (
    DuplicateRecordError,
    InvalidDateError,
    InvalidDurationError,
    InvalidUserIdError,
    MissingFieldsError,
    StoreError,
    StoreUnavailableError,
    TrackerError,
    UserNotFoundError,
    ValidationError,
)
from .log_filter import filter_log
from .models import Exercise, ExerciseLog, User
from .service import ExerciseTracker, UserStore

__all__ = [
    "DuplicateRecordError",
    "Exercise",
    "ExerciseLog",
    "ExerciseTracker",
    "InvalidDateError",
    "InvalidDurationError",
    "InvalidUserIdError",
    "MissingFieldsError",
    "StoreError",
    "StoreUnavailableError",
    "TrackerError",
    "User",
    "UserNotFoundError",
    "UserStore",
    "ValidationError",
    "filter_log",
    "format_display_date",
    "is_valid_duration",
    "normalize",
    "normalize_date",
    "parse_date",
    "parse_duration",
]
