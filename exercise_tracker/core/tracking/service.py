"""
Exercise tracking service.

This is the use-case layer: it validates input, talks to a user
repository and returns domain objects. It doesn't know about HTTP or
Snowflake, so routes and scripts share the same rules.
"""

import logging
from typing import Optional, Protocol
from uuid import UUID

from .dates import DateInput, normalize_date
from .durations import is_valid_duration, parse_duration
from .errors import (
    InvalidDurationError,
    InvalidUserIdError,
    MissingFieldsError,
    UserNotFoundError,
    ValidationError,
)
from .log_filter import filter_log
from .models import Exercise, ExerciseLog, User

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class UserStore(Protocol):
    """
    Interface for user persistence.

    The service only needs these operations. Any object that provides
    them (Snowflake repository, in-memory fake) can back the service.
    """

    def create_user(self, user: User) -> User:
        """Persist a new user."""
        ...

    def list_users(self) -> list[User]:
        """All users in creation order, without their logs."""
        ...

    def get_user(self, user_id: UUID) -> Optional[User]:
        """Load a user with their full log, or None."""
        ...

    def append_exercise(self, user: User, exercise: Exercise) -> User:
        """Persist an exercise and append it to the user's log atomically."""
        ...


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_user_id(value) -> UUID:
    """Parse a user identifier, raising InvalidUserIdError if malformed."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise InvalidUserIdError()


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class ExerciseTracker:
    """
    Orchestrates the four tracking operations against a UserStore.

    Errors are raised as TrackerError subclasses. Callers decide how to
    present them.
    """

    def __init__(self, store: UserStore, open_ended_ranges: bool = False) -> None:
        self._store = store
        self._open_ended_ranges = open_ended_ranges

    def create_user(self, username) -> User:
        """Create a user. Usernames don't have to be unique."""
        if _is_blank(username):
            raise ValidationError("Username is required.")

        user = self._store.create_user(User(username=str(username).strip()))

        logger.info(
            "User created",
            extra={"user_id": str(user.id), "username": user.username}
        )
        return user

    def list_users(self) -> list[User]:
        return self._store.list_users()

    def add_exercise(
        self,
        user_id,
        description,
        duration,
        date: DateInput = None,
    ) -> tuple[User, Exercise]:
        """
        Record an exercise for a user.

        Fields are checked in order: date, presence, duration, user id,
        then the user lookup. An omitted date means today.
        """
        exercise_date = normalize_date(date)

        if _is_blank(description) or _is_blank(duration):
            raise MissingFieldsError()

        if not is_valid_duration(duration):
            raise InvalidDurationError(duration)

        uid = parse_user_id(user_id)

        user = self._store.get_user(uid)
        if user is None:
            raise UserNotFoundError()

        exercise = Exercise(
            user_id=user.id,
            description=str(description).strip(),
            duration=parse_duration(duration),
            date=exercise_date,
        )

        user = self._store.append_exercise(user, exercise)

        logger.info(
            "Exercise added",
            extra={
                "user_id": str(user.id),
                "exercise_id": str(exercise.id),
                "log_size": len(user.log),
            }
        )
        return user, exercise

    def get_log(
        self,
        user_id,
        from_date: DateInput = None,
        to_date: DateInput = None,
        limit=None,
    ) -> ExerciseLog:
        """Fetch a user's log filtered by date range and limit."""
        try:
            uid = parse_user_id(user_id)
        except InvalidUserIdError:
            raise UserNotFoundError()

        user = self._store.get_user(uid)
        if user is None:
            raise UserNotFoundError()

        entries = filter_log(
            user.log,
            from_date=from_date,
            to_date=to_date,
            limit=limit,
            open_ended=self._open_ended_ranges,
        )
        return ExerciseLog(user=user, entries=entries)
