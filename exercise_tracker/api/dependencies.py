"""
FastAPI dependency injection.

Dependencies provide the record store and the tracking service to route
handlers. Using dependency injection means:
- Routes don't open their own connections (easier to test)
- Tests swap in an in-memory store with app.dependency_overrides
- Connection lifecycle is owned by one place

Each dependency is a function that FastAPI calls when needed.
"""

import logging
from typing import Annotated, Generator

from fastapi import Depends, Request

from ..config.settings import Settings, get_settings
from ..core.tracking.errors import StoreUnavailableError
from ..core.tracking.service import ExerciseTracker
from ..infrastructure.snowflake.client import (
    MockSnowflakeConnection,
    SnowflakeConnectionError,
    create_snowflake_connection,
)
from ..infrastructure.snowflake.repositories.users import (
    SnowflakeConfig,
    UserRepository,
)

logger = logging.getLogger(__name__)


def build_snowflake_config(settings: Settings) -> SnowflakeConfig:
    """Translate application settings into a connection config."""
    return SnowflakeConfig(
        account=settings.snowflake_account,
        user=settings.snowflake_user,
        password=settings.snowflake_password or None,
        private_key_path=settings.snowflake_private_key_path,
        private_key_base64=settings.snowflake_private_key_base64,
        database=settings.snowflake_database,
        schema=settings.snowflake_schema,
        warehouse=settings.snowflake_warehouse,
        role=settings.snowflake_role,
        login_timeout=settings.snowflake_login_timeout,
    )


def get_mock_connection(request: Request) -> MockSnowflakeConnection:
    """
    Return the application's shared in-memory connection.

    The lifespan normally creates it; if the app is used without
    running the lifespan it is created on first use.
    """
    state = request.app.state
    if getattr(state, "mock_connection", None) is None:
        state.mock_connection = MockSnowflakeConnection()
        logger.info("Created shared mock Snowflake connection")
    return state.mock_connection


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_user_repository(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> Generator[UserRepository, None, None]:
    """
    Provide UserRepository with a database connection.

    This is a generator function (yields instead of returns) because
    we need to manage the connection lifecycle:
    1. Open connection
    2. Yield repository (FastAPI injects it)
    3. Close connection (cleanup after request)

    In mock mode the same in-memory connection serves every request so
    data persists for the life of the process.
    """
    if settings.snowflake_mock_mode:
        yield UserRepository(get_mock_connection(request))
        return

    # Only connection setup raises SnowflakeConnectionError
    try:
        with create_snowflake_connection(config=build_snowflake_config(settings)) as conn:
            logger.debug("Created UserRepository with Snowflake connection")
            yield UserRepository(conn)
    except SnowflakeConnectionError as e:
        raise StoreUnavailableError() from e


def get_tracker(
    repository: Annotated[UserRepository, Depends(get_user_repository)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ExerciseTracker:
    """Provide the tracking service over the request's repository."""
    return ExerciseTracker(
        repository,
        open_ended_ranges=settings.log_open_ended_ranges,
    )


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
UserRepositoryDep = Annotated[UserRepository, Depends(get_user_repository)]
TrackerDep = Annotated[ExerciseTracker, Depends(get_tracker)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
