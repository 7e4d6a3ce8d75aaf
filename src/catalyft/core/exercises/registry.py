"""
Exercise catalog.

All known exercises are registered here.  Use get_exercise() to look up an
Exercise reference by its exercise_id string.

Exercises are loaded from per-exercise YAML files in the bundled
``src/catalyft/exercises/`` directory at import time, merged with any files
in ``~/.catalyft/exercises/``.  An empty catalog is a packaging error and
raises RuntimeError.
"""

from ..models import Exercise


def _build_catalog() -> dict[str, Exercise]:
    from .loader import load_exercises_from_yaml

    loaded = load_exercises_from_yaml()
    if not loaded:
        raise RuntimeError(
            "catalyft: no exercise definitions could be loaded from YAML. "
            "Check that src/catalyft/exercises/*.yaml files are present and valid."
        )
    return loaded


EXERCISE_CATALOG: dict[str, Exercise] = _build_catalog()


def get_exercise(exercise_id: str) -> Exercise:
    """
    Return the Exercise for the given exercise_id.

    Raises:
        ValueError: If exercise_id is not in the catalog
    """
    if exercise_id not in EXERCISE_CATALOG:
        valid = ", ".join(sorted(EXERCISE_CATALOG))
        raise ValueError(f"Unknown exercise '{exercise_id}'. Known IDs: {valid}")
    return EXERCISE_CATALOG[exercise_id]


def find_exercise(exercise_id: str) -> Exercise | None:
    """Return the Exercise for exercise_id, or None if it is not catalogued."""
    return EXERCISE_CATALOG.get(exercise_id)
