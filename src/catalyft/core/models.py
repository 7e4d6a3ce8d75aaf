"""
Data models for catalyft.

Dataclasses describing one live workout: the exercise references taken from
the catalog, the prescribed sets, the actual performance recorded for each
completed set, and the session that owns the cursor and the clock.
"""

import secrets
import time
from dataclasses import dataclass, field
from typing import Literal

from .config import DEFAULT_SESSION_NAME, EFFORT_RATING_MAX, EFFORT_RATING_MIN

SessionStatus = Literal["planned", "active", "paused", "completed", "partial"]

SESSION_STATUSES: tuple[str, ...] = ("planned", "active", "paused", "completed", "partial")


def new_session_id() -> str:
    """Return a fresh session identifier, e.g. ``workout_1760851200000_k3x9a0q2``."""
    return f"workout_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


@dataclass(frozen=True)
class Exercise:
    """
    Read-only exercise reference owned by the catalog.

    Sessions point at these but never mutate them.
    """

    exercise_id: str
    name: str
    muscles: tuple[str, ...] = ()
    equipment: str = "bodyweight"
    category: str = "strength"

    def __post_init__(self) -> None:
        if not self.exercise_id.strip():
            raise ValueError("exercise_id must be non-empty")
        if not self.name.strip():
            raise ValueError("name must be non-empty")


@dataclass(frozen=True)
class Performance:
    """What was actually lifted on a completed set."""

    weight: float
    reps: int
    effort_rating: int | None = None  # RPE, 1-10

    def __post_init__(self) -> None:
        if self.weight < 0:
            raise ValueError("weight must be non-negative")
        if self.reps < 0:
            raise ValueError("reps must be non-negative")
        if self.effort_rating is not None and not (
            EFFORT_RATING_MIN <= self.effort_rating <= EFFORT_RATING_MAX
        ):
            raise ValueError(
                f"effort_rating must be between {EFFORT_RATING_MIN} and {EFFORT_RATING_MAX}"
            )

    @property
    def volume(self) -> float:
        """Weight moved on this set (weight × reps)."""
        return self.weight * self.reps


@dataclass
class SetRecord:
    """
    A single set within an exercise.

    ``weight`` and ``reps`` are the prescription and never change.
    ``actual`` stays None until the set is completed.
    """

    set_number: int  # 1-based
    weight: float = 0.0
    reps: int = 0
    completed: bool = False
    actual: Performance | None = None
    completed_at: str | None = None  # ISO timestamp

    def __post_init__(self) -> None:
        """Validate set data."""
        if self.set_number < 1:
            raise ValueError("set_number must be >= 1")
        if self.weight < 0:
            raise ValueError("weight must be non-negative")
        if self.reps < 0:
            raise ValueError("reps must be non-negative")
        if self.completed and self.actual is None:
            raise ValueError("completed sets must carry actual performance")


@dataclass
class ExerciseProgress:
    """An exercise inside a session together with its ordered sets."""

    exercise: Exercise
    sets: list[SetRecord] = field(default_factory=list)
    rest_seconds: int | None = None  # overrides the default rest after each set
    notes: str | None = None

    def __post_init__(self) -> None:
        if not self.sets:
            raise ValueError(f"Exercise '{self.exercise.exercise_id}' has no sets")
        if self.rest_seconds is not None and self.rest_seconds <= 0:
            raise ValueError("rest_seconds must be positive")

    @property
    def completed(self) -> bool:
        """True once every set of this exercise has been recorded."""
        return all(s.completed for s in self.sets)


@dataclass
class WorkoutSession:
    """
    In-memory state of one live workout.

    The cursor (current_exercise_index, current_set_index) always points at
    an existing set.  Mutation goes through WorkoutEngine; nothing else
    should write to a session while an engine owns it.
    """

    exercises: list[ExerciseProgress]
    name: str = DEFAULT_SESSION_NAME
    session_id: str = field(default_factory=new_session_id)
    current_exercise_index: int = 0
    current_set_index: int = 0
    total_duration: int = 0  # seconds
    is_active: bool = False
    status: SessionStatus = "planned"
    started_at: str | None = None
    ended_at: str | None = None

    def __post_init__(self) -> None:
        """Validate session shape and cursor bounds."""
        if not self.exercises:
            raise ValueError("A workout session needs at least one exercise")
        if self.status not in SESSION_STATUSES:
            raise ValueError(f"Invalid status: {self.status}")
        if self.total_duration < 0:
            raise ValueError("total_duration must be non-negative")
        if not 0 <= self.current_exercise_index < len(self.exercises):
            raise ValueError(f"current_exercise_index out of range: {self.current_exercise_index}")
        n_sets = len(self.exercises[self.current_exercise_index].sets)
        if not 0 <= self.current_set_index < n_sets:
            raise ValueError(f"current_set_index out of range: {self.current_set_index}")

    @property
    def current_exercise(self) -> ExerciseProgress:
        return self.exercises[self.current_exercise_index]

    @property
    def current_set(self) -> SetRecord:
        return self.current_exercise.sets[self.current_set_index]

    @property
    def all_sets_completed(self) -> bool:
        return all(ex.completed for ex in self.exercises)

    def find_exercise(self, exercise_id: str) -> int | None:
        """Return the index of the first exercise with ``exercise_id``, or None."""
        for i, progress in enumerate(self.exercises):
            if progress.exercise.exercise_id == exercise_id:
                return i
        return None
