"""
Unit tests for the ExerciseTracker service.

The service runs against UserRepository over the in-memory mock
connection, so these tests cover the same path the API uses in mock mode.
"""

from datetime import date
from uuid import uuid4

import pytest

from exercise_tracker.core.tracking.errors import (
    InvalidDateError,
    InvalidDurationError,
    InvalidUserIdError,
    MissingFieldsError,
    UserNotFoundError,
    ValidationError,
)
from exercise_tracker.core.tracking.service import ExerciseTracker, parse_user_id
from exercise_tracker.infrastructure.snowflake.client import MockSnowflakeConnection
from exercise_tracker.infrastructure.snowflake.repositories.users import UserRepository


@pytest.fixture
def repository() -> UserRepository:
    return UserRepository(MockSnowflakeConnection())


@pytest.fixture
def tracker(repository) -> ExerciseTracker:
    return ExerciseTracker(repository)


@pytest.fixture
def alice(tracker):
    return tracker.create_user("Alice")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class TestCreateUser:

    def test_returns_user_with_generated_id(self, tracker):
        user = tracker.create_user("Alice")
        assert user.username == "Alice"
        assert user.id is not None

    def test_duplicate_usernames_are_allowed(self, tracker):
        first = tracker.create_user("Alice")
        second = tracker.create_user("Alice")
        assert first.id != second.id

    @pytest.mark.parametrize("username", [None, "", "   "])
    def test_blank_username_is_rejected(self, tracker, username):
        with pytest.raises(ValidationError):
            tracker.create_user(username)


class TestListUsers:

    def test_lists_users_in_creation_order(self, tracker):
        names = ["Alice", "Bob", "Carol"]
        for name in names:
            tracker.create_user(name)

        assert [u.username for u in tracker.list_users()] == names

    def test_empty_store(self, tracker):
        assert tracker.list_users() == []


# ---------------------------------------------------------------------------
# Exercises
# ---------------------------------------------------------------------------

class TestAddExercise:

    def test_records_exercise(self, tracker, alice):
        user, exercise = tracker.add_exercise(alice.id, "run", 30, "2023-05-01")

        assert user.username == "Alice"
        assert exercise.description == "run"
        assert exercise.duration == 30
        assert exercise.date == date(2023, 5, 1)
        assert exercise.user_id == alice.id

    def test_accepts_string_id_and_duration(self, tracker, alice):
        _, exercise = tracker.add_exercise(str(alice.id), "swim", "45", None)
        assert exercise.duration == 45

    def test_missing_date_defaults_to_today(self, tracker, alice):
        _, exercise = tracker.add_exercise(alice.id, "walk", 20)
        assert exercise.date == date.today()

    def test_appends_to_log_and_bumps_version(self, tracker, alice):
        tracker.add_exercise(alice.id, "run", 30, "2023-05-01")
        user, _ = tracker.add_exercise(alice.id, "swim", 40, "2023-04-01")

        assert [e.description for e in user.log] == ["run", "swim"]
        assert user.version == 2
        assert tracker.list_users()[0].version == 2

    def test_zero_duration_is_accepted(self, tracker, alice):
        _, exercise = tracker.add_exercise(alice.id, "stretch", 0)
        assert exercise.duration == 0

    @pytest.mark.parametrize("description, duration", [
        (None, 30), ("", 30), ("run", None), ("run", ""),
    ])
    def test_missing_fields(self, tracker, alice, description, duration):
        with pytest.raises(MissingFieldsError, match="Missing fields."):
            tracker.add_exercise(alice.id, description, duration)

    @pytest.mark.parametrize("duration", ["601", -1, "abc"])
    def test_invalid_duration(self, tracker, alice, duration):
        with pytest.raises(InvalidDurationError, match="must be in minutes"):
            tracker.add_exercise(alice.id, "run", duration)

    def test_invalid_date(self, tracker, alice):
        with pytest.raises(InvalidDateError):
            tracker.add_exercise(alice.id, "run", 30, "05/01/2023")

    def test_date_is_checked_before_other_fields(self, tracker, alice):
        with pytest.raises(InvalidDateError):
            tracker.add_exercise(alice.id, None, "abc", "05/01/2023")

    def test_missing_fields_checked_before_duration(self, tracker, alice):
        with pytest.raises(MissingFieldsError):
            tracker.add_exercise(alice.id, "", "abc")

    def test_malformed_user_id(self, tracker):
        with pytest.raises(InvalidUserIdError, match="Invalid user ID."):
            tracker.add_exercise("not-an-id", "run", 30)

    def test_unknown_user(self, tracker):
        with pytest.raises(UserNotFoundError, match="User not found."):
            tracker.add_exercise(uuid4(), "run", 30)

    def test_failed_validation_writes_nothing(self, tracker, alice):
        with pytest.raises(InvalidDurationError):
            tracker.add_exercise(alice.id, "run", 9000)
        assert tracker.get_log(alice.id).count == 0


# ---------------------------------------------------------------------------
# Logs
# ---------------------------------------------------------------------------

class TestGetLog:

    @pytest.fixture
    def logged(self, tracker, alice):
        for description, day in [
            ("jan-15", "2023-01-15"),
            ("dec-31", "2022-12-31"),
            ("jan-02", "2023-01-02"),
            ("feb-01", "2023-02-01"),
        ]:
            tracker.add_exercise(alice.id, description, 30, day)
        return alice

    def test_full_log(self, tracker, logged):
        exercise_log = tracker.get_log(logged.id)
        assert exercise_log.count == 4
        assert exercise_log.user.username == "Alice"

    def test_range_and_limit(self, tracker, logged):
        exercise_log = tracker.get_log(logged.id, "2023-01-01", "2023-01-31", "1")
        assert [e.description for e in exercise_log.entries] == ["jan-15"]
        assert exercise_log.count == 1

    def test_lone_bound_ignored_by_default(self, tracker, logged):
        assert tracker.get_log(logged.id, from_date="2023-01-20").count == 4

    def test_lone_bound_open_range_when_configured(self, repository, logged):
        tracker = ExerciseTracker(repository, open_ended_ranges=True)
        exercise_log = tracker.get_log(logged.id, from_date="2023-01-20")
        assert [e.description for e in exercise_log.entries] == ["feb-01"]

    def test_unknown_user(self, tracker):
        with pytest.raises(UserNotFoundError):
            tracker.get_log(uuid4())

    def test_malformed_id_is_not_found(self, tracker):
        with pytest.raises(UserNotFoundError):
            tracker.get_log("garbage")


class TestParseUserId:

    def test_round_trips_uuid_string(self):
        uid = uuid4()
        assert parse_user_id(str(uid)) == uid

    def test_rejects_none(self):
        with pytest.raises(InvalidUserIdError):
            parse_user_id(None)
