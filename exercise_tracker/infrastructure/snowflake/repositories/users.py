"""
Snowflake repository for users and their exercise logs.

This module implements the repository pattern for tracking data.
The repository:
1. Translates between domain models and database rows
2. Encapsulates all SQL queries
3. Translates driver errors into tracking errors

Users live in the `users` table. Each exercise is a row in `exercises`
keyed by user_id, and a user's log is those rows in sequence order.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Protocol
from uuid import UUID

from snowflake.connector.errors import DatabaseError, IntegrityError

from exercise_tracker.core.tracking.errors import DuplicateRecordError, StoreError
from exercise_tracker.core.tracking.models import Exercise, User


logger = logging.getLogger(__name__)


class SnowflakeConnection(Protocol):
    """
    Protocol for Snowflake connections.

    Using a protocol means tests can provide a mock without
    opening a real connection.
    """

    def cursor(self): ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...


@dataclass
class SnowflakeConfig:
    """Configuration for Snowflake connection."""
    account: str
    user: str
    password: Optional[str] = None
    private_key_path: Optional[str] = None
    private_key_base64: Optional[str] = None
    database: str = "EXERCISE_TRACKER"
    schema: str = "TRACKING"
    warehouse: str = "COMPUTE_WH"
    role: Optional[str] = None
    login_timeout: int = 3


class UserRepository:
    """
    Repository for user and exercise persistence.

    Each method corresponds to something the tracker needs:
    - create_user: Insert a new user
    - list_users: All users, oldest first
    - get_user: One user with their full log
    - append_exercise: Insert an exercise and bump the user's version
    """

    def __init__(self, connection: SnowflakeConnection) -> None:
        self._conn = connection

    def create_user(self, user: User) -> User:
        """Insert a new user row."""
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO users (user_id, username, version, created_at)
                VALUES (%s, %s, %s, %s)
            """, (str(user.id), user.username, user.version, _now()))

            self._conn.commit()
            return user

        except IntegrityError as e:
            self._conn.rollback()
            logger.warning(
                "Duplicate user insert rejected",
                extra={"username": user.username, "error": str(e)}
            )
            raise DuplicateRecordError()

        except DatabaseError as e:
            self._conn.rollback()
            logger.error(
                "Failed to create user",
                extra={"username": user.username, "error": str(e)}
            )
            raise StoreError("Unable to create new user.")

        finally:
            cursor.close()

    def list_users(self) -> list[User]:
        """List every user. Logs are not loaded."""
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                SELECT user_id, username, version
                FROM users
                ORDER BY created_at
            """)

            return [self._build_user(row) for row in cursor.fetchall()]

        except DatabaseError as e:
            logger.error("Failed to list users", extra={"error": str(e)})
            raise StoreError("Unable to fetch all users.")

        finally:
            cursor.close()

    def get_user(self, user_id: UUID) -> Optional[User]:
        """Load a user and their log, or None if there is no such user."""
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                SELECT user_id, username, version
                FROM users
                WHERE user_id = %s
            """, (str(user_id),))

            row = cursor.fetchone()
            if not row:
                return None

            user = self._build_user(row)

            cursor.execute("""
                SELECT exercise_id, user_id, description, duration, exercise_date
                FROM exercises
                WHERE user_id = %s
                ORDER BY sequence_number, created_at
            """, (str(user_id),))

            user.log = [self._build_exercise(r) for r in cursor.fetchall()]
            return user

        except DatabaseError as e:
            logger.error(
                "Failed to load user",
                extra={"user_id": str(user_id), "error": str(e)}
            )
            raise StoreError("Unable to load user.")

        finally:
            cursor.close()

    def append_exercise(self, user: User, exercise: Exercise) -> User:
        """
        Persist an exercise and append it to the user's log.

        The insert and the version bump are committed together, so a
        failure leaves neither behind.
        """
        cursor = self._conn.cursor()

        try:
            # Next position is taken from the stored rows, not the caller's snapshot
            cursor.execute("""
                INSERT INTO exercises (
                    exercise_id, user_id, description, duration,
                    exercise_date, sequence_number, created_at
                )
                SELECT %s, %s, %s, %s, %s, COALESCE(MAX(sequence_number), 0) + 1, %s
                FROM exercises
                WHERE user_id = %s
            """, (
                str(exercise.id), str(user.id), exercise.description,
                exercise.duration, exercise.date, _now(), str(user.id),
            ))

            cursor.execute("""
                UPDATE users
                SET version = version + 1
                WHERE user_id = %s
            """, (str(user.id),))

            self._conn.commit()

        except DatabaseError as e:
            self._conn.rollback()
            logger.error(
                "Failed to append exercise",
                extra={"user_id": str(user.id), "error": str(e)}
            )
            raise StoreError("Unable to add exercise.")

        finally:
            cursor.close()

        user.add_exercise(exercise)
        return user

    def delete_users_matching(self, fragment: str) -> int:
        """
        Delete users whose username contains `fragment`, ignoring case.

        Maintenance only; the API never deletes. Returns the number of
        users removed.
        """
        pattern = f"%{fragment}%"
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                DELETE FROM exercises
                WHERE user_id IN (
                    SELECT user_id FROM users WHERE username ILIKE %s
                )
            """, (pattern,))

            cursor.execute("""
                DELETE FROM users WHERE username ILIKE %s
            """, (pattern,))

            deleted = cursor.rowcount
            self._conn.commit()

            logger.info(
                "Deleted users",
                extra={"pattern": pattern, "count": deleted}
            )
            return deleted

        except DatabaseError as e:
            self._conn.rollback()
            logger.error(
                "Failed to delete users",
                extra={"pattern": pattern, "error": str(e)}
            )
            raise StoreError("Unable to delete users.")

        finally:
            cursor.close()

    def ping(self) -> bool:
        """Run a trivial query to prove the connection works."""
        cursor = self._conn.cursor()
        try:
            cursor.execute("SELECT 1")
            return cursor.fetchone() is not None
        finally:
            cursor.close()

    # -----------------------------------------------------------------------
    # Private Methods
    # -----------------------------------------------------------------------

    def _build_user(self, row) -> User:
        return User(
            id=UUID(str(row[0])),
            username=row[1],
            version=row[2] or 0,
        )

    def _build_exercise(self, row) -> Exercise:
        exercise_date = row[4]
        if isinstance(exercise_date, datetime):
            exercise_date = exercise_date.date()

        return Exercise(
            id=UUID(str(row[0])),
            user_id=UUID(str(row[1])),
            description=row[2],
            duration=int(row[3]),
            date=exercise_date,
        )


def _now() -> datetime:
    return datetime.now(timezone.utc)
