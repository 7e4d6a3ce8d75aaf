"""
Configuration constants for the live workout engine.

These are the Python defaults.  The bundled settings.yaml mirrors them and a
user override at ~/.catalyft/settings.yaml can change any of them; see
core/engine/config_loader.py.
"""

from typing import Final

# =============================================================================
# REST TIMER
# =============================================================================

DEFAULT_REST_SECONDS: Final[int] = 90  # Countdown started after a completed set
REST_EXTEND_SECONDS: Final[int] = 30  # Step used by "extend rest"

# =============================================================================
# CLOCK
# =============================================================================

TICK_INTERVAL_SECONDS: Final[float] = 1.0  # One tick = one elapsed second
AUTO_ADVANCE_DELAY_SECONDS: Final[float] = 0.5  # Lets completion feedback render

# Rest countdown keeps running while the workout clock is paused
PAUSE_REST_WITH_WORKOUT: Final[bool] = False

# =============================================================================
# SESSION DEFAULTS
# =============================================================================

DEFAULT_SETS_PER_EXERCISE: Final[int] = 3  # Sets created for an exercise with no prescription
DEFAULT_SESSION_NAME: Final[str] = "Workout"

# Effort rating uses the RPE scale
EFFORT_RATING_MIN: Final[int] = 1
EFFORT_RATING_MAX: Final[int] = 10

# =============================================================================
# STORAGE
# =============================================================================

DATA_DIR_NAME: Final[str] = ".catalyft"
SESSIONS_DIR_NAME: Final[str] = "sessions"
HISTORY_FILE_NAME: Final[str] = "history.jsonl"
ACTIVE_DIR_NAME: Final[str] = "active"
