"""
Live workout progression engine.

WorkoutEngine ties the cursor and the rest timer to set completion and to
the persistence sink.  State changes are applied in memory first and are
visible immediately; writes to the sink run in the background through the
scheduler and their failure is reported to a listener, never rolled back.

Every entry point (user operations, the repeating tick, the delayed
auto-advance, persistence callbacks) is expected to run on the scheduler's
single event loop.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Protocol

from ...io.serializers import session_to_dict
from .. import cursor
from ..config import TICK_INTERVAL_SECONDS
from ..cursor import CursorMove
from ..errors import InvalidStateError, PersistenceError, SetNotFoundError
from ..metrics import session_summary
from ..models import Exercise, ExerciseProgress, Performance, SetRecord, WorkoutSession
from ..rest_timer import RestTimer
from ..scheduling import Scheduler, TimerHandle
from .config_loader import SessionSettings

logger = logging.getLogger(__name__)


class SessionSink(Protocol):
    """Where session snapshots go.  Both calls may block; the engine runs them off-loop."""

    def update_session(self, session_id: str, payload: dict[str, Any]) -> None: ...

    def end_session(
        self,
        session_id: str,
        payload: dict[str, Any],
        completed_at: str,
        status: str,
    ) -> None: ...


@dataclass
class SetCompletion:
    """What complete_set did, returned alongside the state change."""

    set_record: SetRecord
    rest_started: bool
    is_final_set: bool  # last set of the last exercise
    persistence: Any  # future of the background "update session" write


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class WorkoutEngine:
    """
    Owns one live WorkoutSession.

    Args:
        session: Session to drive; the engine becomes its only writer
        scheduler: Timer source and background executor
        sink: Persistence target for session snapshots
        settings: Session tunables (defaults from config.py when None)
        on_rest_complete: Called once when a rest countdown reaches zero
        on_persistence_failure: Called with a PersistenceError when a write fails
        on_sequence_complete: Called when advancing past the final set is attempted
        on_tick: Called after every clock tick
    """

    def __init__(
        self,
        session: WorkoutSession,
        scheduler: Scheduler,
        sink: SessionSink,
        settings: SessionSettings | None = None,
        *,
        on_rest_complete: Callable[[], None] | None = None,
        on_persistence_failure: Callable[[PersistenceError], None] | None = None,
        on_sequence_complete: Callable[[], None] | None = None,
        on_tick: Callable[[], None] | None = None,
    ):
        self._session = session
        self._scheduler = scheduler
        self._sink = sink
        self.settings = settings if settings is not None else SessionSettings()
        self.on_rest_complete = on_rest_complete
        self.on_persistence_failure = on_persistence_failure
        self.on_sequence_complete = on_sequence_complete
        self.on_tick = on_tick

        self._rest_timer = RestTimer(on_complete=self._rest_finished)
        self._tick_handle: TimerHandle | None = None
        self._pending_advances: list[TimerHandle] = []
        self._ended = False

    # ── Read-only views ─────────────────────────────────────────────────────

    @property
    def session(self) -> WorkoutSession:
        return self._session

    @property
    def rest_timer(self) -> RestTimer:
        return self._rest_timer

    @property
    def current_exercise(self) -> ExerciseProgress:
        return self._session.current_exercise

    @property
    def current_set(self) -> SetRecord:
        return self._session.current_set

    @property
    def is_last_set(self) -> bool:
        return cursor.is_last_set(self._session)

    @property
    def is_last_exercise(self) -> bool:
        return cursor.is_last_exercise(self._session)

    @property
    def is_ended(self) -> bool:
        return self._ended

    # ── Clock ───────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Start the session clock.  A second call is a no-op."""
        self._check_open("start")
        if self._tick_handle is not None:
            return
        s = self._session
        s.is_active = True
        s.status = "active"
        if s.started_at is None:
            s.started_at = _now_iso()
        self._tick_handle = self._scheduler.call_every(
            TICK_INTERVAL_SECONDS, self.tick
        )
        logger.debug("Session %s started", s.session_id)

    def tick(self) -> None:
        """
        Advance the clocks by one second.

        The workout clock only moves while the session is active.  The rest
        countdown moves regardless unless ``pause_rest_with_workout`` is set.
        """
        self._check_open("tick")
        s = self._session
        if s.is_active:
            s.total_duration += 1
        if s.is_active or not self.settings.pause_rest_with_workout:
            self._rest_timer.tick()
        if self.on_tick is not None:
            self.on_tick()

    def pause_workout(self) -> None:
        self._check_open("pause the workout")
        self._session.is_active = False
        self._session.status = "paused"

    def resume_workout(self) -> None:
        self._check_open("resume the workout")
        self._session.is_active = True
        self._session.status = "active"

    # ── Set completion ──────────────────────────────────────────────────────

    def complete_set(
        self,
        exercise_id: str,
        set_index: int,
        performance: Performance,
    ) -> SetCompletion:
        """
        Record ``performance`` for set ``set_index`` of ``exercise_id``.

        Marks the set completed, persists a snapshot in the background,
        starts the rest timer unless this was the final set of the workout,
        and schedules a move to the next set after the auto-advance delay.
        Completing an already completed set overwrites its actual values.

        Raises:
            SetNotFoundError: If the exercise or set does not exist (nothing changes)
            InvalidStateError: If the workout has ended
        """
        self._check_open("complete a set")
        s = self._session

        ex_index = s.find_exercise(exercise_id)
        if ex_index is None:
            raise SetNotFoundError(exercise_id, set_index, "exercise not in this session")
        progress = s.exercises[ex_index]
        if not 0 <= set_index < len(progress.sets):
            raise SetNotFoundError(
                exercise_id, set_index, f"exercise has {len(progress.sets)} sets"
            )

        set_record = progress.sets[set_index]
        if set_record.completed:
            logger.debug(
                "Overwriting completed set %d of %s", set_record.set_number, exercise_id
            )
        set_record.actual = performance
        set_record.completed = True
        set_record.completed_at = _now_iso()

        persistence = self._persist_update()

        is_final = cursor.is_final_position(s, ex_index, set_index)
        rest_started = False
        if not is_final:
            rest = progress.rest_seconds or self.settings.default_rest_seconds
            self._rest_timer.start(rest)
            rest_started = True

        self._pending_advances.append(
            self._scheduler.call_later(
                self.settings.auto_advance_delay_seconds, self._auto_advance
            )
        )

        return SetCompletion(
            set_record=set_record,
            rest_started=rest_started,
            is_final_set=is_final,
            persistence=persistence,
        )

    def add_exercise(self, exercise: Exercise, target_sets: int | None = None) -> ExerciseProgress:
        """
        Append ``exercise`` to the session with ``target_sets`` open sets.

        Existing exercises and the cursor are left where they are.  The
        appended exercise has no prescription; its sets are logged with
        whatever the user reports.

        Args:
            exercise: Catalog (or inline) exercise reference
            target_sets: Number of sets (default_sets_per_exercise when None)

        Raises:
            ValueError: If target_sets < 1 or the exercise is already in the session
            InvalidStateError: If the workout has ended
        """
        self._check_open("add an exercise")
        if target_sets is None:
            target_sets = self.settings.default_sets_per_exercise
        if target_sets < 1:
            raise ValueError(f"target_sets must be >= 1, got {target_sets}")
        s = self._session
        if s.find_exercise(exercise.exercise_id) is not None:
            raise ValueError(f"Exercise '{exercise.exercise_id}' is already in this session")

        progress = ExerciseProgress(
            exercise=exercise,
            sets=[SetRecord(set_number=i) for i in range(1, target_sets + 1)],
        )
        s.exercises.append(progress)
        logger.debug(
            "Added %s (%d sets) to session %s", exercise.exercise_id, target_sets, s.session_id
        )
        self._persist_update()
        return progress

    def _auto_advance(self) -> None:
        if self._pending_advances:
            self._pending_advances.pop(0)
        if self._ended:
            return
        self.move_to_next_set()

    # ── Cursor ──────────────────────────────────────────────────────────────

    def move_to_next_set(self) -> CursorMove:
        """Advance the cursor; reports SEQUENCE_COMPLETE at the final set."""
        self._check_open("move to the next set")
        move = cursor.move_to_next_set(self._session)
        if move is CursorMove.SEQUENCE_COMPLETE and self.on_sequence_complete is not None:
            self.on_sequence_complete()
        return move

    def move_to_previous_set(self) -> CursorMove:
        self._check_open("move to the previous set")
        return cursor.move_to_previous_set(self._session)

    # ── Rest timer ──────────────────────────────────────────────────────────

    def start_rest_timer(self, duration_seconds: int | None = None) -> None:
        """Start (or restart) the rest countdown; default duration from settings."""
        self._check_open("start the rest timer")
        if duration_seconds is None:
            duration_seconds = self.settings.default_rest_seconds
        self._rest_timer.start(duration_seconds)

    def skip_rest(self) -> None:
        self._check_open("skip rest")
        self._rest_timer.skip()

    def extend_rest(self, delta_seconds: int | None = None) -> None:
        self._check_open("extend rest")
        if delta_seconds is None:
            delta_seconds = self.settings.rest_extend_seconds
        self._rest_timer.extend(delta_seconds)

    def pause_rest(self) -> None:
        self._check_open("pause rest")
        self._rest_timer.pause()

    def resume_rest(self) -> None:
        self._check_open("resume rest")
        self._rest_timer.resume()

    def _rest_finished(self) -> None:
        logger.debug("Rest complete for session %s", self._session.session_id)
        if self.on_rest_complete is not None:
            self.on_rest_complete()

    # ── Termination ─────────────────────────────────────────────────────────

    def end_workout(self) -> Any:
        """
        Stop all timers and hand the finished session to the sink.

        After this call every operation raises InvalidStateError.

        Returns:
            Future of the background "end session" write
        """
        self._check_open("end the workout")
        self._ended = True

        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None
        for handle in self._pending_advances:
            handle.cancel()
        self._pending_advances.clear()
        self._rest_timer.reset()

        s = self._session
        s.is_active = False
        s.status = "completed" if s.all_sets_completed else "partial"
        s.ended_at = _now_iso()

        payload = session_to_dict(s)
        payload["summary"] = session_summary(s)
        completed_at = s.ended_at
        status = s.status
        logger.debug("Session %s ended (%s)", s.session_id, status)

        return self._dispatch(
            "end the session",
            lambda: self._sink.end_session(s.session_id, payload, completed_at, status),
        )

    # ── Internals ───────────────────────────────────────────────────────────

    def _check_open(self, action: str) -> None:
        if self._ended:
            raise InvalidStateError(
                f"Cannot {action}: session {self._session.session_id} has ended"
            )

    def _persist_update(self) -> Any:
        # Snapshot now, on the loop thread; the writer sees this exact state
        payload = session_to_dict(self._session)
        session_id = self._session.session_id
        return self._dispatch(
            "save the session",
            lambda: self._sink.update_session(session_id, payload),
        )

    def _dispatch(self, operation: str, write: Callable[[], None]) -> Any:
        future = self._scheduler.submit(write)
        session_id = self._session.session_id

        def _done(fut: Any) -> None:
            if fut.cancelled():
                return
            exc = fut.exception()
            if exc is None:
                return
            error = PersistenceError(session_id, operation, exc)
            error.__cause__ = exc
            logger.warning("%s", error)
            if self.on_persistence_failure is not None:
                self.on_persistence_failure(error)

        future.add_done_callback(_done)
        return future
