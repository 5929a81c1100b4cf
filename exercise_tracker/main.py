"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because:
- Easier to test with different configurations
- Explicit about initialization order
- Can create multiple app instances if needed (e.g., for testing)

For local development:
    SNOWFLAKE_MOCK_MODE=true uvicorn exercise_tracker.main:app --reload

For production:
    gunicorn exercise_tracker.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api.dependencies import build_snowflake_config
from .api.errors import tracker_error_response
from .api.routes import health, users
from .config.settings import get_settings
from .core.tracking.errors import TrackerError
from .infrastructure.snowflake.client import (
    MockSnowflakeConnection,
    create_snowflake_connection,
)
from .infrastructure.snowflake.repositories.users import UserRepository

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=get_settings().log_level.upper(),
)

logger = logging.getLogger(__name__)


def probe_store(settings) -> bool:
    """
    Try one connection to the record store.

    Failure is logged, not raised: the service still starts and requests
    report the store as unavailable until it comes back.
    """
    try:
        with create_snowflake_connection(config=build_snowflake_config(settings)) as conn:
            UserRepository(conn).ping()
    except Exception as e:
        logger.error("Unable to connect to Snowflake", extra={"error": str(e)})
        return False

    logger.info("Connected to Snowflake")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    On startup this owns the store handle: in mock mode it creates the
    shared in-memory connection, otherwise it probes Snowflake once.
    On shutdown it releases the mock connection.
    """
    settings = get_settings()

    logger.info(
        "Exercise Tracker API starting",
        extra={
            "version": settings.api_version,
            "mock_mode": settings.snowflake_mock_mode,
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    if settings.snowflake_mock_mode:
        app.state.mock_connection = MockSnowflakeConnection()
    elif not missing_fields:
        probe_store(settings)

    yield

    mock_connection = getattr(app.state, "mock_connection", None)
    if mock_connection is not None:
        mock_connection.close()
        app.state.mock_connection = None

    logger.info("Exercise Tracker API shutting down")


def create_app() -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Exercise tracking API.

        ## Workflow

        1. **Create a user**: `POST /api/users` with `username`
        2. **Log exercises**: `POST /api/users/{id}/exercises` with
           `description`, `duration` (minutes) and optional `date` (YYYY-MM-DD)
        3. **Review history**: `GET /api/users/{id}/logs?from=&to=&limit=`
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.cors_origins_list != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        users.router,
        prefix="/api/users",
        tags=["Users"],
    )

    # Root endpoint
    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": "Exercise Tracker API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    @app.exception_handler(TrackerError)
    async def tracker_exception_handler(request, exc: TrackerError):
        """Tracking errors raised outside a route body, e.g. store unavailable."""
        logger.warning(
            "Tracker error",
            extra={
                "path": request.url.path,
                "kind": exc.kind,
                "error": exc.message,
            }
        )
        return tracker_error_response(exc, get_settings())

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """
        Catch-all exception handler.

        Logs the full error server-side and returns a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error."}
        )

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
        }
    )

    return app


# Create the application instance
# This is what uvicorn/gunicorn will import
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "exercise_tracker.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower(),
    )
