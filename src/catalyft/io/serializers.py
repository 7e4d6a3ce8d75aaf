"""
JSON serialization for workout session models.

Handles conversion between dataclasses and JSON-compatible dicts, and
parsing of the compact set prescriptions used in plan files.
"""

import json
import re
from typing import Any

from ..core.models import (
    SESSION_STATUSES,
    Exercise,
    ExerciseProgress,
    Performance,
    SetRecord,
    WorkoutSession,
)


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is non-negative.

    Args:
        value: Value to validate
        name: Name for error message

    Returns:
        The value if valid

    Raises:
        ValidationError: If value is negative
    """
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def validate_positive(value: int | float, name: str) -> int | float:
    """
    Validate that a value is positive.

    Raises:
        ValidationError: If value is not positive
    """
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")
    return value


def _require(data: dict[str, Any], key: str, where: str) -> Any:
    if key not in data:
        raise ValidationError(f"{where} is missing '{key}'")
    return data[key]


def exercise_to_dict(exercise: Exercise) -> dict[str, Any]:
    """Convert an Exercise reference to a JSON-compatible dict."""
    return {
        "exercise_id": exercise.exercise_id,
        "name": exercise.name,
        "muscles": list(exercise.muscles),
        "equipment": exercise.equipment,
        "category": exercise.category,
    }


def dict_to_exercise(data: dict[str, Any]) -> Exercise:
    """
    Convert dict to Exercise.

    Raises:
        ValidationError: If data is invalid
    """
    try:
        return Exercise(
            exercise_id=str(_require(data, "exercise_id", "exercise")),
            name=str(_require(data, "name", "exercise")),
            muscles=tuple(str(m) for m in data.get("muscles") or ()),
            equipment=str(data.get("equipment", "bodyweight")),
            category=str(data.get("category", "strength")),
        )
    except ValueError as e:
        raise ValidationError(f"Invalid exercise: {e}") from e


def performance_to_dict(performance: Performance) -> dict[str, Any]:
    return {
        "weight": performance.weight,
        "reps": performance.reps,
        "effort_rating": performance.effort_rating,
    }


def dict_to_performance(data: dict[str, Any]) -> Performance:
    """
    Convert dict to Performance.

    Raises:
        ValidationError: If data is invalid
    """
    validate_non_negative(data.get("weight", 0), "weight")
    validate_non_negative(data.get("reps", 0), "reps")
    rating = data.get("effort_rating")
    try:
        return Performance(
            weight=float(data.get("weight", 0.0)),
            reps=int(data.get("reps", 0)),
            effort_rating=int(rating) if rating is not None else None,
        )
    except ValueError as e:
        raise ValidationError(f"Invalid performance: {e}") from e


def set_record_to_dict(set_record: SetRecord) -> dict[str, Any]:
    """
    Convert SetRecord to JSON-compatible dict.

    Compact form: ``actual`` and ``completed_at`` are only written for
    completed sets.
    """
    d: dict[str, Any] = {
        "set_number": set_record.set_number,
        "weight": set_record.weight,
        "reps": set_record.reps,
        "completed": set_record.completed,
    }
    if set_record.actual is not None:
        d["actual"] = performance_to_dict(set_record.actual)
    if set_record.completed_at is not None:
        d["completed_at"] = set_record.completed_at
    return d


def dict_to_set_record(data: dict[str, Any]) -> SetRecord:
    """
    Convert dict to SetRecord.

    Raises:
        ValidationError: If data is invalid
    """
    validate_positive(_require(data, "set_number", "set"), "set_number")
    validate_non_negative(data.get("weight", 0), "weight")
    validate_non_negative(data.get("reps", 0), "reps")

    actual = dict_to_performance(data["actual"]) if data.get("actual") is not None else None
    completed = bool(data.get("completed", actual is not None))
    if completed and actual is None:
        raise ValidationError(f"Set {data['set_number']} is completed but has no actual values")

    return SetRecord(
        set_number=int(data["set_number"]),
        weight=float(data.get("weight", 0.0)),
        reps=int(data.get("reps", 0)),
        completed=completed,
        actual=actual,
        completed_at=data.get("completed_at"),
    )


def exercise_progress_to_dict(progress: ExerciseProgress) -> dict[str, Any]:
    d: dict[str, Any] = {
        "exercise": exercise_to_dict(progress.exercise),
        "sets": [set_record_to_dict(s) for s in progress.sets],
    }
    if progress.rest_seconds is not None:
        d["rest_seconds"] = progress.rest_seconds
    if progress.notes:
        d["notes"] = progress.notes
    return d


def dict_to_exercise_progress(data: dict[str, Any]) -> ExerciseProgress:
    """
    Convert dict to ExerciseProgress.

    Raises:
        ValidationError: If data is invalid
    """
    exercise = dict_to_exercise(_require(data, "exercise", "exercise entry"))
    sets = [dict_to_set_record(s) for s in data.get("sets", [])]
    rest = data.get("rest_seconds")
    if rest is not None:
        validate_positive(rest, "rest_seconds")
    try:
        return ExerciseProgress(
            exercise=exercise,
            sets=sets,
            rest_seconds=int(rest) if rest is not None else None,
            notes=data.get("notes"),
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e


def session_to_dict(session: WorkoutSession) -> dict[str, Any]:
    """
    Convert WorkoutSession to JSON-compatible dict.

    The result shares no mutable state with the session, so it is safe to
    hand to a background writer while the session keeps changing.
    """
    return {
        "session_id": session.session_id,
        "name": session.name,
        "status": session.status,
        "started_at": session.started_at,
        "ended_at": session.ended_at,
        "total_duration": session.total_duration,
        "current_exercise_index": session.current_exercise_index,
        "current_set_index": session.current_set_index,
        "exercises": [exercise_progress_to_dict(ex) for ex in session.exercises],
    }


def dict_to_session(data: dict[str, Any]) -> WorkoutSession:
    """
    Convert dict to WorkoutSession.

    Restored sessions are never active: the clock only runs under an engine.

    Raises:
        ValidationError: If data is invalid
    """
    session_id = _require(data, "session_id", "session")
    status = data.get("status", "planned")
    if status not in SESSION_STATUSES:
        raise ValidationError(f"Invalid status: {status}. Must be one of {SESSION_STATUSES}")
    validate_non_negative(data.get("total_duration", 0), "total_duration")

    exercises = [dict_to_exercise_progress(e) for e in data.get("exercises", [])]
    try:
        return WorkoutSession(
            exercises=exercises,
            name=str(data.get("name", "Workout")),
            session_id=str(session_id),
            current_exercise_index=int(data.get("current_exercise_index", 0)),
            current_set_index=int(data.get("current_set_index", 0)),
            total_duration=int(data.get("total_duration", 0)),
            is_active=False,
            status=status,
            started_at=data.get("started_at"),
            ended_at=data.get("ended_at"),
        )
    except ValueError as e:
        raise ValidationError(f"Invalid session {session_id}: {e}") from e


def session_to_json_line(session: WorkoutSession) -> str:
    """
    Serialize a session to a single JSON line.

    Returns:
        JSON string (single line, no trailing newline)
    """
    return json.dumps(session_to_dict(session), separators=(",", ":"))


def json_line_to_session(line: str) -> WorkoutSession:
    """
    Deserialize a JSON line to a WorkoutSession.

    Raises:
        ValidationError: If JSON is invalid or data validation fails
    """
    try:
        data = json.loads(line.strip())
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}") from e

    return dict_to_session(data)


_COMPACT_RE = re.compile(r"^(\d+)\s*[xX×]\s*(\d+)(?:\s*@\s*([0-9]+(?:\.[0-9]+)?)\s*(?:kg)?)?$", re.IGNORECASE)
_PER_SET_RE = re.compile(r"^(\d+)(?:\s*@\s*([0-9]+(?:\.[0-9]+)?)\s*(?:kg)?)?$", re.IGNORECASE)
_REST_SUFFIX_RE = re.compile(r"\s*/\s*(\d+)\s*s\s*$", re.IGNORECASE)


def parse_prescription(text: str) -> tuple[list[tuple[int, float]], int | None]:
    """
    Parse a set prescription string.

    Compact format (all sets alike):
        SxR [@ Wkg] [/ Rs]    e.g. "3x8 @ 60kg / 120s" → 3 sets of 8 reps at 60 kg

    Per-set format (comma-separated):
        reps[@weight]         e.g. "8@60, 6@65, 4@70 / 180s" or "12, 10, 8"

    The rest suffix is optional and applies to every set of the exercise.
    The ``kg`` unit is optional.

    Args:
        text: Prescription string

    Returns:
        (sets, rest_seconds): list of (reps, weight) tuples and the rest
        override, or None if the string carries no rest suffix

    Raises:
        ValidationError: If the format is not recognised
    """
    if not text or not text.strip():
        raise ValidationError("Set prescription cannot be empty")

    body = text.strip()
    rest: int | None = None
    m = _REST_SUFFIX_RE.search(body)
    if m:
        rest = int(m.group(1))
        validate_positive(rest, "rest_seconds")
        body = body[: m.start()].strip()

    m = _COMPACT_RE.match(body)
    if m:
        n_sets = int(m.group(1))
        reps = int(m.group(2))
        weight = float(m.group(3)) if m.group(3) else 0.0
        if n_sets < 1:
            raise ValidationError(f"Set count must be at least 1: '{text}'")
        return [(reps, weight)] * n_sets, rest

    sets: list[tuple[int, float]] = []
    for part in (p.strip() for p in body.split(",")):
        if not part:
            continue
        m = _PER_SET_RE.match(part)
        if not m:
            raise ValidationError(
                f"Invalid set format: '{part}'.\n"
                f"Use: SxR @ Wkg / Rs (e.g. 3x8 @ 60kg / 120s) or reps@weight,... (e.g. 8@60, 6@65)."
            )
        sets.append((int(m.group(1)), float(m.group(2)) if m.group(2) else 0.0))

    if not sets:
        raise ValidationError(f"No sets found in '{text}'")

    return sets, rest


def format_prescription(sets: list[SetRecord]) -> str:
    """Render sets back to the shortest prescription string, e.g. ``3x8 @ 60kg``."""
    pairs = [(s.reps, s.weight) for s in sets]
    if pairs and all(p == pairs[0] for p in pairs):
        reps, weight = pairs[0]
        w = f" @ {weight:g}kg" if weight > 0 else ""
        return f"{len(pairs)}x{reps}{w}"
    return ", ".join(f"{r}@{w:g}" if w > 0 else str(r) for r, w in pairs)
