"""
User and exercise log endpoints.

Four operations:
- POST /api/users: create a user
- GET /api/users: list users
- POST /api/users/{user_id}/exercises: add an exercise
- GET /api/users/{user_id}/logs: read a filtered exercise log

Request bodies may be JSON or form-encoded, since the tracker is often
driven straight from an HTML form.
"""

import logging
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ...core.tracking.dates import format_display_date
from ...core.tracking.errors import TrackerError
from ..dependencies import SettingsDep, TrackerDep
from ..errors import tracker_error_response

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------

class UserResponse(BaseModel):
    """A newly created user."""
    username: str = Field(description="Username as submitted")
    id: str = Field(serialization_alias="_id", description="User identifier")


class UserListItem(BaseModel):
    """One entry in the user list."""
    username: str = Field(description="Username")
    id: str = Field(serialization_alias="_id", description="User identifier")
    version: int = Field(serialization_alias="__v", description="Store version counter")


class ExerciseResponse(BaseModel):
    """The user merged with the exercise that was just added."""
    id: str = Field(serialization_alias="_id", description="User identifier")
    username: str = Field(description="Username")
    description: str = Field(description="What was done")
    duration: int = Field(description="Minutes")
    date: str = Field(description="Display date, e.g. 'Mon May 01 2023'")


class LogEntry(BaseModel):
    """One exercise in a log."""
    description: str
    duration: int
    date: str


class ExerciseLogResponse(BaseModel):
    """A user's filtered exercise log."""
    id: str = Field(serialization_alias="_id", description="User identifier")
    username: str = Field(description="Username")
    count: int = Field(description="Number of entries returned")
    log: list[LogEntry] = Field(description="Entries in the order they were added")


async def read_payload(request: Request) -> dict[str, Any]:
    """Read a JSON or form body into a dict. A missing body is an empty dict."""
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        return dict(form)

    return {}


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    summary="Create user",
    description="Create a user from a username. Usernames need not be unique.",
)
async def create_user(
    request: Request,
    tracker: TrackerDep,
    settings: SettingsDep,
):
    payload = await read_payload(request)

    try:
        user = tracker.create_user(payload.get("username"))
    except TrackerError as e:
        logger.warning("Unable to create new user", extra={"error": str(e)})
        # Legacy clients only know the duplicate and the generic message
        legacy_message = None if e.kind == "duplicate" else "Unable to create new user."
        return tracker_error_response(
            e,
            settings,
            fallback="Unable to create new user.",
            as_object=True,
            legacy_message=legacy_message,
        )

    return UserResponse(username=user.username, id=str(user.id))


@router.get(
    "",
    response_model=list[UserListItem],
    status_code=status.HTTP_200_OK,
    summary="List users",
)
async def list_users(
    tracker: TrackerDep,
    settings: SettingsDep,
):
    try:
        users = tracker.list_users()
    except TrackerError as e:
        logger.error("Unable to fetch all users", extra={"error": str(e)})
        return tracker_error_response(e, settings, fallback="Unable to fetch all users.")

    return [
        UserListItem(username=user.username, id=str(user.id), version=user.version)
        for user in users
    ]


@router.post(
    "/{user_id}/exercises",
    response_model=ExerciseResponse,
    status_code=status.HTTP_200_OK,
    summary="Add exercise",
    description="Add an exercise to a user's log. Date defaults to today.",
)
async def add_exercise(
    user_id: str,
    request: Request,
    tracker: TrackerDep,
    settings: SettingsDep,
):
    """
    Add an exercise to a user.

    Body fields: description and duration (required), date as
    YYYY-MM-DD (optional). The response is the user merged with the
    new exercise.
    """
    payload = await read_payload(request)

    try:
        user, exercise = tracker.add_exercise(
            user_id,
            description=payload.get("description"),
            duration=payload.get("duration"),
            date=payload.get("date"),
        )
    except TrackerError as e:
        logger.warning(
            "Error adding exercise",
            extra={"user_id": user_id, "error": str(e)}
        )
        return tracker_error_response(e, settings, fallback="Unable to add exercise.")

    return ExerciseResponse(
        id=str(user.id),
        username=user.username,
        description=exercise.description,
        duration=exercise.duration,
        date=format_display_date(exercise.date),
    )


@router.get(
    "/{user_id}/logs",
    response_model=ExerciseLogResponse,
    status_code=status.HTTP_200_OK,
    summary="Get exercise log",
    description="Retrieve a user's exercises, optionally filtered by from/to (YYYY-MM-DD) and limit.",
)
async def get_log(
    user_id: str,
    tracker: TrackerDep,
    settings: SettingsDep,
    from_date: Annotated[Optional[str], Query(alias="from")] = None,
    to_date: Annotated[Optional[str], Query(alias="to")] = None,
    limit: Optional[str] = None,
):
    try:
        exercise_log = tracker.get_log(
            user_id,
            from_date=from_date,
            to_date=to_date,
            limit=limit,
        )
    except TrackerError as e:
        logger.warning(
            "Error fetching exercise log",
            extra={"user_id": user_id, "error": str(e)}
        )
        return tracker_error_response(e, settings, fallback="Unable to fetch exercise log.")

    return ExerciseLogResponse(
        id=str(exercise_log.user.id),
        username=exercise_log.user.username,
        count=exercise_log.count,
        log=[
            LogEntry(
                description=entry.description,
                duration=entry.duration,
                date=format_display_date(entry.date),
            )
            for entry in exercise_log.entries
        ],
    )
