"""
Exercise catalog for catalyft.

Each exercise is a read-only Exercise reference loaded from YAML; sessions
point at these and never change them.
"""

from .registry import EXERCISE_CATALOG, find_exercise, get_exercise

__all__ = [
    "EXERCISE_CATALOG",
    "find_exercise",
    "get_exercise",
]
