"""
Translation of tracking errors into HTTP responses.

Two styles are supported:
- Status codes (default): each error kind maps to a status code and the
  message goes in the usual {"detail": ...} body.
- Legacy: everything is HTTP 200 and the body is just the message, the
  contract older clients of the tracker were written against.
"""

from typing import Optional

from fastapi import status
from fastapi.responses import JSONResponse

from ..config.settings import Settings
from ..core.tracking.errors import TrackerError


STATUS_BY_KIND = {
    "validation": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "duplicate": status.HTTP_409_CONFLICT,
    "unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
    "store": status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Kinds whose message comes from the endpoint rather than the error
_GENERIC_KINDS = {"store", "unavailable"}


def status_for(error: TrackerError) -> int:
    return STATUS_BY_KIND.get(error.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_message(error: TrackerError, fallback: Optional[str] = None) -> str:
    """User-facing text for an error, preferring the endpoint fallback for store failures."""
    if fallback and error.kind in _GENERIC_KINDS:
        return fallback
    return error.message


def tracker_error_response(
    error: TrackerError,
    settings: Settings,
    fallback: Optional[str] = None,
    as_object: bool = False,
    legacy_message: Optional[str] = None,
) -> JSONResponse:
    """
    Turn a TrackerError into a response.

    Args:
        error: The error raised by the service
        settings: Decides between legacy and status-code mode
        fallback: Message to show for store failures
        as_object: Wrap the legacy body as {"message": ...}
        legacy_message: Replaces the message in legacy mode only
    """
    message = error_message(error, fallback)

    if not settings.legacy_error_responses:
        return JSONResponse(
            status_code=status_for(error),
            content={"detail": message},
        )

    if legacy_message is not None:
        message = legacy_message

    content = {"message": message} if as_object else message
    return JSONResponse(status_code=status.HTTP_200_OK, content=content)
