"""
Workout plan files → WorkoutSession.

A plan is a YAML mapping::

    name: Push Day
    rest_seconds: 120            # optional, plan-wide rest override
    exercises:
      - id: bench_press
        sets: "3x8 @ 60kg / 120s"
      - id: push_up
        sets: "12, 10, 8"
      - name: Cable Fly          # not in the catalog: defined inline
        muscles: [chest]
        sets: 3x12 @ 15kg

Catalogued exercises are referenced by ``id``; anything else needs at least
a ``name``.  Entries without ``sets`` get ``default_sets_per_exercise`` open
sets.
"""

import re
from pathlib import Path
from typing import Any

import yaml

from ..core.config import DEFAULT_SESSION_NAME, DEFAULT_SETS_PER_EXERCISE
from ..core.exercises import find_exercise
from ..core.models import Exercise, ExerciseProgress, SetRecord, WorkoutSession
from .serializers import ValidationError, parse_prescription, validate_positive


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


def _resolve_exercise(entry: dict[str, Any], position: int) -> Exercise:
    exercise_id = entry.get("id")
    if exercise_id is not None:
        catalogued = find_exercise(str(exercise_id))
        if catalogued is not None:
            return catalogued

    name = entry.get("name")
    if not name:
        if exercise_id is not None:
            raise ValidationError(
                f"Exercise #{position}: unknown id '{exercise_id}' and no inline 'name'"
            )
        raise ValidationError(f"Exercise #{position}: needs an 'id' or a 'name'")

    muscles = entry.get("muscles") or ()
    if isinstance(muscles, str):
        muscles = [muscles]
    try:
        return Exercise(
            exercise_id=str(exercise_id) if exercise_id is not None else _slug(str(name)),
            name=str(name),
            muscles=tuple(str(m) for m in muscles),
            equipment=str(entry.get("equipment", "bodyweight")),
            category=str(entry.get("category", "strength")),
        )
    except ValueError as e:
        raise ValidationError(f"Exercise #{position}: {e}") from e


def build_exercise_progress(
    entry: dict[str, Any],
    position: int,
    *,
    plan_rest: int | None = None,
    default_sets: int = DEFAULT_SETS_PER_EXERCISE,
) -> ExerciseProgress:
    """
    Build one ExerciseProgress from a plan entry.

    Rest precedence: the prescription's ``/ Rs`` suffix, then the entry's
    ``rest_seconds``, then the plan-wide value.

    Raises:
        ValidationError: If the entry is invalid
    """
    if not isinstance(entry, dict):
        raise ValidationError(f"Exercise #{position} must be a mapping, got {type(entry).__name__}")

    exercise = _resolve_exercise(entry, position)

    raw_sets = entry.get("sets")
    rest: int | None = None
    if raw_sets is None:
        prescribed = [(0, 0.0)] * default_sets
    else:
        try:
            prescribed, rest = parse_prescription(str(raw_sets))
        except ValidationError as e:
            raise ValidationError(f"Exercise #{position} ({exercise.name}): {e}") from e

    if rest is None and entry.get("rest_seconds") is not None:
        rest = int(validate_positive(entry["rest_seconds"], "rest_seconds"))
    if rest is None:
        rest = plan_rest

    sets = [
        SetRecord(set_number=i, weight=weight, reps=reps)
        for i, (reps, weight) in enumerate(prescribed, 1)
    ]
    return ExerciseProgress(
        exercise=exercise,
        sets=sets,
        rest_seconds=rest,
        notes=entry.get("notes"),
    )


def plan_from_dict(
    data: dict[str, Any],
    default_sets: int = DEFAULT_SETS_PER_EXERCISE,
) -> WorkoutSession:
    """
    Build a fresh WorkoutSession from a parsed plan mapping.

    Raises:
        ValidationError: If the plan is invalid
    """
    entries = data.get("exercises")
    if not isinstance(entries, list) or not entries:
        raise ValidationError("Plan must list at least one exercise under 'exercises'")

    plan_rest = data.get("rest_seconds")
    if plan_rest is not None:
        plan_rest = int(validate_positive(plan_rest, "rest_seconds"))

    exercises = [
        build_exercise_progress(entry, i, plan_rest=plan_rest, default_sets=default_sets)
        for i, entry in enumerate(entries, 1)
    ]

    # Sets are addressed by exercise id, so an id may appear only once
    seen: set[str] = set()
    for progress in exercises:
        ex_id = progress.exercise.exercise_id
        if ex_id in seen:
            raise ValidationError(
                f"Exercise '{ex_id}' is listed twice; put all of its sets in one entry"
            )
        seen.add(ex_id)

    return WorkoutSession(
        exercises=exercises,
        name=str(data.get("name") or DEFAULT_SESSION_NAME),
    )


def load_plan(path: str | Path, default_sets: int = DEFAULT_SETS_PER_EXERCISE) -> WorkoutSession:
    """
    Load a plan file and return a new, not yet started session.

    Raises:
        FileNotFoundError: If the file does not exist
        ValidationError: If the YAML or the plan is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Plan file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError(f"Plan file {path} must contain a mapping")
    return plan_from_dict(data, default_sets=default_sets)
