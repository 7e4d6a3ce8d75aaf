"""
YAML → Exercise loader.

Loads exercise references from individual YAML files in the bundled
``src/catalyft/exercises/`` directory.  Each file (e.g. bench_press.yaml)
holds one flat exercise definition.

User overrides: place matching files in ``~/.catalyft/exercises/``.
A user file is deep-merged over the bundled definition, so only changed
keys need to be listed.  A user file whose stem does not match any bundled
file is treated as a new exercise and added to the catalog.

Usage (internal, called by registry.py):
    from .loader import load_exercises_from_yaml
    exercises = load_exercises_from_yaml()
"""

from __future__ import annotations

import warnings
from pathlib import Path

import yaml

from ..engine.config_loader import get_data_dir
from ..models import Exercise

_REQUIRED_EXERCISE_FIELDS: frozenset[str] = frozenset({"exercise_id", "name", "muscles"})


def exercise_from_dict(d: dict) -> Exercise:
    """Convert a raw dict (from YAML) to an Exercise.

    Raises ValueError if any required field is absent.
    """
    missing = _REQUIRED_EXERCISE_FIELDS - set(d)
    if missing:
        raise ValueError(f"Exercise missing fields: {sorted(missing)}")

    muscles = d["muscles"]
    if isinstance(muscles, str):
        muscles = [muscles]

    return Exercise(
        exercise_id=str(d["exercise_id"]),
        name=str(d["name"]),
        muscles=tuple(str(m) for m in muscles),
        equipment=str(d.get("equipment", "bodyweight")),
        category=str(d.get("category", "strength")),
    )


def _load_yaml_file(path: Path) -> dict:
    """Load a YAML file; warn and return {} if it cannot be parsed."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"catalyft: cannot read exercise file {path} ({exc})", stacklevel=2)
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _get_bundled_exercises_dir() -> Path | None:
    """Return path to the bundled exercises/ data directory, or None if not found."""
    # loader.py lives at src/catalyft/core/exercises/loader.py
    # three levels up → src/catalyft/
    candidate = Path(__file__).parent.parent.parent / "exercises"
    return candidate if candidate.is_dir() else None


def _get_user_exercises_dir() -> Path | None:
    """Return ~/.catalyft/exercises/ if it exists, else None."""
    p = get_data_dir() / "exercises"
    return p if p.is_dir() else None


def _add(result: dict[str, Exercise], raw: dict, label: str) -> None:
    try:
        ex = exercise_from_dict(raw)
    except ValueError as exc:
        warnings.warn(f"catalyft: skipping exercise '{label}': {exc}", stacklevel=3)
        return
    result[ex.exercise_id] = ex


def load_exercises_from_yaml(
    bundled_dir: Path | None = None,
    user_dir: Path | None = None,
) -> dict[str, Exercise]:
    """Return {exercise_id: Exercise} loaded from per-exercise YAML files.

    Loads each ``<exercise_id>.yaml`` from the bundled exercises/ directory.
    If a matching file exists in the user directory it is deep-merged over
    the bundled definition.  User-only files are loaded as new exercises.
    Invalid files are skipped with a warning.

    Args:
        bundled_dir: Override for the bundled directory (tests)
        user_dir: Override for ~/.catalyft/exercises (tests)
    """
    if bundled_dir is None:
        bundled_dir = _get_bundled_exercises_dir()
    if user_dir is None:
        user_dir = _get_user_exercises_dir()

    result: dict[str, Exercise] = {}

    stems: dict[str, Path] = {}
    if bundled_dir is not None:
        for p in sorted(bundled_dir.glob("*.yaml")):
            stems[p.stem] = p

    user_only: list[Path] = []
    if user_dir is not None:
        for p in sorted(user_dir.glob("*.yaml")):
            if p.stem not in stems:
                user_only.append(p)

    for stem, bundled_path in stems.items():
        raw = _load_yaml_file(bundled_path)
        if not raw:
            continue
        if user_dir is not None:
            user_path = user_dir / f"{stem}.yaml"
            if user_path.exists():
                user_raw = _load_yaml_file(user_path)
                if user_raw:
                    raw = _deep_merge(raw, user_raw)
        _add(result, raw, stem)

    for p in user_only:
        raw = _load_yaml_file(p)
        if raw:
            _add(result, raw, p.stem)

    return result
