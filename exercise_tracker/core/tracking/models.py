"""
Domain models for exercise tracking.

A User owns an ordered log of Exercise entries. Both are plain dataclasses
with no knowledge of how they are stored or rendered.
"""

from dataclasses import dataclass, field
from datetime import date
from uuid import UUID, uuid4


@dataclass(frozen=True)
class Exercise:
    """
    A single logged exercise.

    Frozen because exercises are never edited once recorded.
    """
    user_id: UUID
    description: str
    duration: int  # minutes
    date: date
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        if not self.description.strip():
            raise ValueError("Exercise description cannot be empty")
        if not 0 <= self.duration <= 600:
            raise ValueError("Exercise duration must be between 0 and 600 minutes")


@dataclass
class User:
    """
    A person whose exercises are tracked.

    The log is append-only and kept in insertion order. `version` is
    bumped by the store on every append.
    """
    username: str
    id: UUID = field(default_factory=uuid4)
    log: list[Exercise] = field(default_factory=list)
    version: int = 0

    def __post_init__(self) -> None:
        if not self.username.strip():
            raise ValueError("Username cannot be empty")

    def add_exercise(self, exercise: Exercise) -> None:
        """Append an exercise owned by this user."""
        if exercise.user_id != self.id:
            raise ValueError("Exercise belongs to a different user")
        self.log.append(exercise)
        self.version += 1


@dataclass
class ExerciseLog:
    """A user's log after range and limit filtering."""
    user: User
    entries: list[Exercise] = field(default_factory=list)

    @property
    def count(self) -> int:
        """Number of entries returned, not the size of the full log."""
        return len(self.entries)
