"""
Error types for exercise tracking.

Every error carries a `kind` tag and a user-facing message. The API layer
maps the tag to a response (status code or legacy body) without having to
know about individual error classes.
"""


class TrackerError(Exception):
    """Base class for all tracking errors."""

    kind = "store"
    message = "Unexpected error."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(TrackerError):
    """Input failed validation."""
    kind = "validation"
    message = "Invalid input."


class MissingFieldsError(ValidationError):
    """A required field was absent or empty."""
    message = "Missing fields."


class InvalidDurationError(ValidationError):
    """Duration is not an integer number of minutes in range."""

    def __init__(self, value) -> None:
        self.value = value
        super().__init__(f'The duration "{value}" is not valid; must be in minutes')


class InvalidDateError(ValidationError):
    """Date string is not a real YYYY-MM-DD calendar date."""

    def __init__(self, value) -> None:
        self.value = value
        super().__init__(f'The date "{value}" is not in the correct format.')


class InvalidUserIdError(ValidationError):
    """User identifier is not well formed."""
    message = "Invalid user ID."


class UserNotFoundError(TrackerError):
    """No user exists with the requested identifier."""
    kind = "not_found"
    message = "User not found."


class DuplicateRecordError(TrackerError):
    """The store rejected an insert as a uniqueness conflict."""
    kind = "duplicate"
    message = "Duplicate record."


class StoreUnavailableError(TrackerError):
    """The store could not be reached."""
    kind = "unavailable"
    message = "Record store unavailable."


class StoreError(TrackerError):
    """The store failed while executing an operation."""
    kind = "store"
    message = "Record store error."
