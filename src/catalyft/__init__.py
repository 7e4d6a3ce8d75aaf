"""catalyft: live workout progression engine and terminal tracker."""

__version__ = "0.3.0"
