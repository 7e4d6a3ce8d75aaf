"""
Live session engine: progression orchestration and its settings.
"""

from .config_loader import SessionSettings, load_session_settings
from .progression import SessionSink, SetCompletion, WorkoutEngine

__all__ = [
    "SessionSettings",
    "SessionSink",
    "SetCompletion",
    "WorkoutEngine",
    "load_session_settings",
]
