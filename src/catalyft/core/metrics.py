"""
Pure metric computation functions over a workout session.

Used for the end-of-workout summary that travels with the final
persistence write and for the CLI history views.
"""

from typing import Any

from .models import SetRecord, WorkoutSession


def _all_sets(session: WorkoutSession) -> list[SetRecord]:
    return [s for ex in session.exercises for s in ex.sets]


def total_sets(session: WorkoutSession) -> int:
    """Number of prescribed sets in the session."""
    return len(_all_sets(session))


def completed_sets(session: WorkoutSession) -> int:
    """Number of sets with recorded performance."""
    return sum(1 for s in _all_sets(session) if s.completed)


def completion_rate(session: WorkoutSession) -> float:
    """
    Percentage of prescribed sets completed.

    Returns:
        0.0 to 100.0 (0.0 for a session without sets)
    """
    n = total_sets(session)
    if n == 0:
        return 0.0
    return completed_sets(session) / n * 100


def total_reps(session: WorkoutSession) -> int:
    """Sum of actual reps over completed sets."""
    return sum(s.actual.reps for s in _all_sets(session) if s.actual is not None)


def total_volume(session: WorkoutSession) -> float:
    """
    Total weight moved: Σ actual weight × actual reps over completed sets.

    Args:
        session: Session to summarise

    Returns:
        Volume in the session's weight unit (kg)
    """
    return sum(s.actual.volume for s in _all_sets(session) if s.actual is not None)


def average_effort(session: WorkoutSession) -> float | None:
    """Mean effort rating over completed sets that reported one, or None."""
    ratings = [
        s.actual.effort_rating
        for s in _all_sets(session)
        if s.actual is not None and s.actual.effort_rating is not None
    ]
    if not ratings:
        return None
    return sum(ratings) / len(ratings)


def session_summary(session: WorkoutSession) -> dict[str, Any]:
    """Summary dict attached to the end-of-session write."""
    avg = average_effort(session)
    return {
        "total_sets": total_sets(session),
        "completed_sets": completed_sets(session),
        "completion_rate": round(completion_rate(session), 1),
        "total_reps": total_reps(session),
        "total_volume": round(total_volume(session), 2),
        "average_effort": round(avg, 2) if avg is not None else None,
        "duration_minutes": session.total_duration // 60,
    }
