"""
YAML → typed session settings.

Loads the session section from settings.yaml (bundled with the package) and
optionally merges user overrides from ~/.catalyft/settings.yaml.

Usage:
    from catalyft.core.engine.config_loader import load_session_settings
    settings = load_session_settings()
    settings.default_rest_seconds  # 90 unless overridden

If the bundled YAML cannot be read, the Python defaults from config.py are
used.  If the user override file exists but has parse errors, a warning is
issued and the file is ignored.  Values that parse but make no sense
(a zero rest, "no" quoted as a string) raise ValueError.

The session clock always ticks once per second (TICK_INTERVAL_SECONDS);
it is not a setting.
"""

from __future__ import annotations

import importlib.resources
import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from ..config import (
    AUTO_ADVANCE_DELAY_SECONDS,
    DATA_DIR_NAME,
    DEFAULT_REST_SECONDS,
    DEFAULT_SETS_PER_EXERCISE,
    PAUSE_REST_WITH_WORKOUT,
    REST_EXTEND_SECONDS,
)


@dataclass(frozen=True)
class SessionSettings:
    """Tunables for one live session."""

    default_rest_seconds: int = DEFAULT_REST_SECONDS
    rest_extend_seconds: int = REST_EXTEND_SECONDS
    auto_advance_delay_seconds: float = AUTO_ADVANCE_DELAY_SECONDS
    default_sets_per_exercise: int = DEFAULT_SETS_PER_EXERCISE
    pause_rest_with_workout: bool = PAUSE_REST_WITH_WORKOUT

    def __post_init__(self) -> None:
        if self.default_rest_seconds <= 0:
            raise ValueError("default_rest_seconds must be positive")
        if self.rest_extend_seconds <= 0:
            raise ValueError("rest_extend_seconds must be positive")
        if self.auto_advance_delay_seconds < 0:
            raise ValueError("auto_advance_delay_seconds must be non-negative")
        if self.default_sets_per_exercise < 1:
            raise ValueError("default_sets_per_exercise must be >= 1")
        if not isinstance(self.pause_rest_with_workout, bool):
            raise ValueError(
                "pause_rest_with_workout must be true or false, "
                f"got {self.pause_rest_with_workout!r}"
            )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML mapping; warn and return {} if it cannot be read."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"catalyft: ignoring settings file {path} ({exc})", stacklevel=3)
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_data_dir() -> Path:
    """Return ~/.catalyft (not created here)."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    return home / DATA_DIR_NAME


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled settings.yaml, or None if not found."""
    ref = importlib.resources.files("catalyft").joinpath("settings.yaml")
    if ref.is_file():
        with importlib.resources.as_file(ref) as p:
            return p
    candidate = Path(__file__).parent.parent.parent / "settings.yaml"
    return candidate if candidate.exists() else None


def get_user_yaml_path() -> Path | None:
    """Return ~/.catalyft/settings.yaml if it exists, else None."""
    p = get_data_dir() / "settings.yaml"
    return p if p.exists() else None


def load_config() -> dict[str, Any]:
    """
    Load and merge configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/catalyft/settings.yaml
    2. User override at ~/.catalyft/settings.yaml

    Returns:
        Merged dict of config sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = _deep_merge(config, _load_yaml_file(bundled))

    user = get_user_yaml_path()
    if user is not None:
        user_cfg = _load_yaml_file(user)
        if user_cfg:
            config = _deep_merge(config, user_cfg)

    return config


def settings_from_dict(section: dict[str, Any]) -> SessionSettings:
    """Build SessionSettings from a ``session:`` mapping; missing keys keep defaults."""
    defaults = SessionSettings()
    return SessionSettings(
        default_rest_seconds=int(section.get("default_rest_seconds", defaults.default_rest_seconds)),
        rest_extend_seconds=int(section.get("rest_extend_seconds", defaults.rest_extend_seconds)),
        auto_advance_delay_seconds=float(
            section.get("auto_advance_delay_seconds", defaults.auto_advance_delay_seconds)
        ),
        default_sets_per_exercise=int(
            section.get("default_sets_per_exercise", defaults.default_sets_per_exercise)
        ),
        pause_rest_with_workout=section.get(
            "pause_rest_with_workout", defaults.pause_rest_with_workout
        ),
    )


def load_session_settings() -> SessionSettings:
    """Return SessionSettings from the merged YAML ``session`` section."""
    section = load_config().get("session") or {}
    if not isinstance(section, dict):
        warnings.warn("catalyft: 'session' settings must be a mapping; using defaults", stacklevel=2)
        section = {}
    return settings_from_dict(section)
