"""
Rest countdown between sets.

A one-second-resolution countdown driven from outside: the owner calls
``tick()`` once per elapsed second.  Only one countdown exists per timer;
starting a new one replaces whatever was running.

States::

    Idle --start--> Running --tick (remaining hits 0)--> Finished --> Idle
    Running --skip--> Idle
    Running --extend--> Running
"""

import logging
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class RestState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class RestTimer:
    """
    Rest countdown state machine.

    ``on_complete`` fires exactly once per countdown, on the tick that brings
    ``remaining_seconds`` to zero.  Skipping or resetting never fires it.
    """

    def __init__(self, on_complete: Callable[[], None] | None = None):
        self.on_complete = on_complete
        self.remaining_seconds = 0
        self.duration_seconds = 0
        self.is_active = False
        self.is_paused = False

    @property
    def state(self) -> RestState:
        return RestState.RUNNING if self.is_active else RestState.IDLE

    @property
    def progress(self) -> float:
        """Fraction of the current countdown already elapsed (0.0 to 1.0)."""
        if not self.is_active or self.duration_seconds <= 0:
            return 0.0
        elapsed = self.duration_seconds - self.remaining_seconds
        return max(0.0, min(1.0, elapsed / self.duration_seconds))

    def start(self, duration_seconds: int) -> None:
        """
        Start a countdown of ``duration_seconds``.

        Replaces a running countdown (last writer wins).

        Raises:
            ValueError: If duration_seconds is not positive
        """
        if duration_seconds <= 0:
            raise ValueError(f"Rest duration must be positive, got {duration_seconds}")
        if self.is_active:
            logger.debug("Replacing running rest countdown (%ss left)", self.remaining_seconds)
        self.remaining_seconds = int(duration_seconds)
        self.duration_seconds = int(duration_seconds)
        self.is_active = True
        self.is_paused = False

    def tick(self) -> bool:
        """
        Advance the countdown by one second.

        Returns:
            True if this tick finished the countdown, False otherwise
        """
        if not self.is_active or self.is_paused:
            return False

        self.remaining_seconds -= 1
        if self.remaining_seconds > 0:
            return False

        # Finished is transient: go straight back to idle, then notify
        self.remaining_seconds = 0
        self.is_active = False
        self.is_paused = False
        if self.on_complete is not None:
            self.on_complete()
        return True

    def skip(self) -> None:
        """Stop the countdown immediately without a completion notification."""
        self.remaining_seconds = 0
        self.is_active = False
        self.is_paused = False

    def extend(self, delta_seconds: int) -> None:
        """
        Add ``delta_seconds`` to a running countdown.

        Has no effect when the timer is idle.

        Raises:
            ValueError: If delta_seconds is not positive
        """
        if delta_seconds <= 0:
            raise ValueError(f"Rest extension must be positive, got {delta_seconds}")
        if not self.is_active:
            return
        self.remaining_seconds += int(delta_seconds)
        self.duration_seconds += int(delta_seconds)

    def pause(self) -> None:
        if self.is_active:
            self.is_paused = True

    def resume(self) -> None:
        self.is_paused = False

    def reset(self) -> None:
        """Return to idle with nothing remaining."""
        self.skip()
        self.duration_seconds = 0
