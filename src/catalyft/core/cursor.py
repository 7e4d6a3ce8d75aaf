"""
Set/exercise cursor.

Pure functions over a WorkoutSession: move the (exercise, set) cursor and
answer "is this the last set / last exercise".  Moves at either end of the
sequence are no-ops and report where the cursor stopped instead of raising.
"""

from enum import Enum

from .models import WorkoutSession


class CursorMove(str, Enum):
    """Outcome of a cursor move."""

    MOVED = "moved"
    SEQUENCE_COMPLETE = "sequence_complete"  # already on the last set of the last exercise
    AT_START = "at_start"  # already on the first set of the first exercise


def is_last_set(session: WorkoutSession) -> bool:
    """True if the cursor is on the last set of the current exercise."""
    return session.current_set_index == len(session.current_exercise.sets) - 1


def is_last_exercise(session: WorkoutSession) -> bool:
    """True if the cursor is on the last exercise of the session."""
    return session.current_exercise_index == len(session.exercises) - 1


def is_final_position(session: WorkoutSession, exercise_index: int, set_index: int) -> bool:
    """True if (exercise_index, set_index) is the last set of the last exercise."""
    return (
        exercise_index == len(session.exercises) - 1
        and set_index == len(session.exercises[exercise_index].sets) - 1
    )


def move_to_next_set(session: WorkoutSession) -> CursorMove:
    """
    Advance the cursor by one set.

    Crosses into the first set of the next exercise after the last set of
    the current one.  At the final set of the final exercise nothing
    changes.

    Args:
        session: Session whose cursor is moved in place

    Returns:
        CursorMove.MOVED or CursorMove.SEQUENCE_COMPLETE
    """
    if not is_last_set(session):
        session.current_set_index += 1
        return CursorMove.MOVED

    if not is_last_exercise(session):
        session.current_exercise_index += 1
        session.current_set_index = 0
        return CursorMove.MOVED

    return CursorMove.SEQUENCE_COMPLETE


def move_to_previous_set(session: WorkoutSession) -> CursorMove:
    """
    Move the cursor back by one set.

    From the first set of an exercise the cursor lands on the last set of
    the previous exercise.  At the very first set nothing changes.

    Args:
        session: Session whose cursor is moved in place

    Returns:
        CursorMove.MOVED or CursorMove.AT_START
    """
    if session.current_set_index > 0:
        session.current_set_index -= 1
        return CursorMove.MOVED

    if session.current_exercise_index > 0:
        session.current_exercise_index -= 1
        session.current_set_index = len(session.current_exercise.sets) - 1
        return CursorMove.MOVED

    return CursorMove.AT_START
