"""
Snowflake database connection management.

Provides connection factory and context manager for Snowflake operations.
Includes mock mode with in-memory storage for local development.

Using the repository pattern means most code never touches this module
directly - it goes through UserRepository which handles the translation
between domain models and database rows.
"""

import base64
import logging
import re
from contextlib import contextmanager
from typing import Generator, Optional

from .repositories.users import SnowflakeConfig, SnowflakeConnection

logger = logging.getLogger(__name__)


class SnowflakeConnectionError(Exception):
    """Raised when Snowflake connection fails."""
    pass


def _load_private_key(key_bytes: bytes) -> bytes:
    """
    Convert a PEM private key into the DER bytes Snowflake expects.

    Snowflake requires the private key as a bytes object, not a file path.
    """
    from cryptography.hazmat.backends import default_backend
    from cryptography.hazmat.primitives import serialization

    private_key = serialization.load_pem_private_key(
        key_bytes,
        password=None,  # No password on the key
        backend=default_backend()
    )

    return private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )


def _build_connect_params(config: SnowflakeConfig) -> dict:
    """Assemble keyword arguments for snowflake.connector.connect."""
    connect_params = {
        'account': config.account,
        'user': config.user,
        'database': config.database,
        'schema': config.schema,
        'warehouse': config.warehouse,
        'role': config.role,
        'login_timeout': config.login_timeout,
    }

    if config.private_key_base64:
        logger.info("Using base64-encoded key-pair authentication for Snowflake")
        connect_params['private_key'] = _load_private_key(
            base64.b64decode(config.private_key_base64)
        )
    elif config.private_key_path:
        logger.info("Using key-pair authentication for Snowflake")
        with open(config.private_key_path, 'rb') as key_file:
            connect_params['private_key'] = _load_private_key(key_file.read())
    elif config.password:
        logger.info("Using password authentication for Snowflake")
        connect_params['password'] = config.password
    else:
        raise SnowflakeConnectionError(
            "Either password or a private key must be provided"
        )

    return connect_params


@contextmanager
def get_snowflake_connection(config: SnowflakeConfig) -> Generator[SnowflakeConnection, None, None]:
    """
    Provide Snowflake connection with automatic cleanup.

    Only connection setup is translated into SnowflakeConnectionError.
    Errors raised by the caller while the connection is open propagate
    unchanged, and the connection is closed either way.

    Usage:
        with get_snowflake_connection(config) as conn:
            cursor = conn.cursor()
            # do work
            conn.commit()
    """
    import snowflake.connector

    try:
        conn = snowflake.connector.connect(**_build_connect_params(config))
    except SnowflakeConnectionError:
        raise
    except snowflake.connector.errors.DatabaseError as e:
        logger.error(
            "Snowflake connection failed",
            extra={"error": str(e), "account": config.account}
        )
        raise SnowflakeConnectionError(f"Database connection failed: {e}")
    except Exception as e:
        logger.error(
            "Unexpected error connecting to Snowflake",
            extra={"error": str(e)}
        )
        raise SnowflakeConnectionError(f"Connection error: {e}")

    logger.debug(
        "Established Snowflake connection",
        extra={
            "account": config.account,
            "database": config.database,
            "schema": config.schema,
        }
    )

    try:
        yield conn
    finally:
        try:
            conn.close()
            logger.debug("Closed Snowflake connection")
        except Exception as e:
            logger.warning(
                "Error closing Snowflake connection",
                extra={"error": str(e)}
            )


# ---------------------------------------------------------------------------
# Mock Connection for Local Development
# ---------------------------------------------------------------------------

def _like_to_regex(pattern: str) -> re.Pattern:
    """Translate a SQL LIKE pattern into a case-insensitive regex."""
    parts = [re.escape(p) for p in pattern.split('%')]
    return re.compile('^' + '.*'.join(parts) + '$', re.IGNORECASE)


class MockSnowflakeCursor:
    """
    Mock Snowflake cursor for testing.

    Implements just enough of the cursor interface to support
    UserRepository operations without a real database. Queries are
    recognised by pattern matching on their text.
    """

    def __init__(self, storage: dict) -> None:
        self._storage = storage
        self._results: list = []
        self._rowcount: int = 0

    def execute(self, query: str, params: Optional[tuple] = None) -> 'MockSnowflakeCursor':
        """Execute a query against mock storage."""
        logger.debug(
            "Mock cursor execute",
            extra={"query": query[:100], "params": params}
        )

        query_upper = ' '.join(query.upper().split())
        self._results = []
        self._rowcount = 0

        if query_upper.startswith('INSERT INTO'):
            self._handle_insert(query_upper, params)

        elif query_upper.startswith('UPDATE USERS'):
            self._handle_update(params)

        elif query_upper.startswith('DELETE FROM'):
            self._handle_delete(query_upper, params)

        elif query_upper.startswith('SELECT'):
            self._handle_select(query_upper, params)

        return self

    def _handle_insert(self, query: str, params: Optional[tuple]) -> None:
        if not params:
            return

        if query.startswith('INSERT INTO USERS'):
            user_id, username, version, created_at = params
            self._storage['users'][user_id] = {
                'user_id': user_id,
                'username': username,
                'version': version,
                'created_at': created_at,
            }
            self._rowcount = 1

        elif query.startswith('INSERT INTO EXERCISES'):
            (exercise_id, user_id, description, duration,
             exercise_date, created_at, owner_id) = params
            sequence_number = 1 + max(
                (r['sequence_number'] for r in self._storage['exercises'].values()
                 if r['user_id'] == owner_id),
                default=0,
            )
            self._storage['exercises'][exercise_id] = {
                'exercise_id': exercise_id,
                'user_id': user_id,
                'description': description,
                'duration': duration,
                'exercise_date': exercise_date,
                'sequence_number': sequence_number,
                'created_at': created_at,
            }
            self._rowcount = 1

    def _handle_update(self, params: Optional[tuple]) -> None:
        """Only the version bump is supported."""
        user = self._storage['users'].get(params[0]) if params else None
        if user:
            user['version'] += 1
            self._rowcount = 1

    def _handle_delete(self, query: str, params: Optional[tuple]) -> None:
        regex = _like_to_regex(params[0])
        matching_ids = {
            user_id for user_id, user in self._storage['users'].items()
            if regex.match(user['username'])
        }

        if query.startswith('DELETE FROM EXERCISES'):
            table = self._storage['exercises']
            doomed = [k for k, row in table.items() if row['user_id'] in matching_ids]
        else:
            table = self._storage['users']
            doomed = list(matching_ids)

        for key in doomed:
            del table[key]
        self._rowcount = len(doomed)

    def _handle_select(self, query: str, params: Optional[tuple]) -> None:
        if query == 'SELECT 1':
            self._results = [(1,)]

        elif 'FROM EXERCISES' in query:
            user_id = params[0]
            rows = sorted(
                (r for r in self._storage['exercises'].values() if r['user_id'] == user_id),
                key=lambda r: (r['sequence_number'], r['created_at']),
            )
            self._results = [
                (r['exercise_id'], r['user_id'], r['description'],
                 r['duration'], r['exercise_date'])
                for r in rows
            ]

        elif 'FROM USERS' in query:
            users = self._storage['users'].values()
            if 'WHERE' in query:
                users = [u for u in users if u['user_id'] == params[0]]
            self._results = [
                (u['user_id'], u['username'], u['version'])
                for u in users
            ]

    def fetchone(self):
        """Fetch one row from results."""
        if not self._results:
            return None
        return self._results[0]

    def fetchall(self) -> list:
        """Fetch all rows from results."""
        return self._results

    def close(self) -> None:
        """Close cursor (no-op for mock)."""
        pass

    @property
    def rowcount(self) -> int:
        """Return number of rows affected."""
        return self._rowcount


class MockSnowflakeConnection:
    """
    Mock Snowflake connection for local development.

    Stores data in memory using a simple dictionary structure. Dicts keep
    insertion order, which stands in for ORDER BY created_at.

    Not suitable for production, but perfect for:
    - Local development
    - Unit tests
    - CI/CD environments
    """

    def __init__(self) -> None:
        # In-memory storage: {table_name: {id: row_dict}}
        self._storage: dict[str, dict[str, dict]] = {
            'users': {},
            'exercises': {},
        }

        logger.info("Initialized mock Snowflake connection (in-memory)")

    def cursor(self) -> MockSnowflakeCursor:
        """Create a mock cursor."""
        return MockSnowflakeCursor(self._storage)

    def commit(self) -> None:
        """Commit transaction (no-op for mock, always auto-commits)."""
        logger.debug("Mock connection commit")

    def rollback(self) -> None:
        """Rollback transaction (no-op for mock)."""
        logger.debug("Mock connection rollback")

    def close(self) -> None:
        """Close connection (no-op for mock)."""
        logger.debug("Mock connection close")


@contextmanager
def get_mock_snowflake_connection() -> Generator[MockSnowflakeConnection, None, None]:
    """Provide a fresh in-memory connection."""
    conn = MockSnowflakeConnection()
    try:
        yield conn
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

@contextmanager
def create_snowflake_connection(
    config: Optional[SnowflakeConfig] = None,
    mock_mode: bool = False,
) -> Generator[SnowflakeConnection, None, None]:
    """
    Create Snowflake connection based on configuration.

    Factory function that returns either a real or mock connection
    depending on mock_mode flag.

    Args:
        config: Snowflake configuration (required if not mock_mode)
        mock_mode: If True, return mock connection for testing

    Yields:
        SnowflakeConnection implementation (real or mock)
    """
    if mock_mode:
        with get_mock_snowflake_connection() as conn:
            yield conn
    else:
        if config is None:
            raise ValueError("config is required when not in mock mode")

        with get_snowflake_connection(config) as conn:
            yield conn
