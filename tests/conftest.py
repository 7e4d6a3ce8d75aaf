"""
Shared fixtures: a deterministic scheduler, an in-memory sink and sessions.

ManualScheduler stands in for the event loop.  Time only moves when a test
calls ``advance()``, and submitted writes only run on ``run_pending()``, so
tests can look at the in-memory state before and after persistence.
"""

import concurrent.futures
import heapq
import itertools
from collections import deque
from typing import Any, Callable

import pytest

from catalyft.core.engine import SessionSettings, WorkoutEngine
from catalyft.core.models import Exercise, ExerciseProgress, SetRecord, WorkoutSession


class _ManualHandle:
    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class _ManualRepeatingHandle:
    def __init__(self, scheduler: "ManualScheduler", interval: float, callback: Callable[[], None]):
        self._scheduler = scheduler
        self._interval = interval
        self._callback = callback
        self.cancelled = False
        self._current = scheduler.call_later(interval, self._run)

    def _run(self) -> None:
        if self.cancelled:
            return
        self._current = self._scheduler.call_later(self._interval, self._run)
        self._callback()

    def cancel(self) -> None:
        self.cancelled = True
        self._current.cancel()


class ManualScheduler:
    """Virtual-time scheduler driven by the test."""

    def __init__(self) -> None:
        self.now = 0.0
        self._seq = itertools.count()
        self._timers: list[tuple[float, int, _ManualHandle]] = []
        self.submitted: deque[tuple[Callable[[], Any], concurrent.futures.Future]] = deque()

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle(self.now + delay, callback)
        heapq.heappush(self._timers, (handle.when, next(self._seq), handle))
        return handle

    def call_every(self, interval: float, callback: Callable[[], None]) -> _ManualRepeatingHandle:
        return _ManualRepeatingHandle(self, interval, callback)

    def submit(self, fn: Callable[[], Any]) -> concurrent.futures.Future:
        future: concurrent.futures.Future = concurrent.futures.Future()
        self.submitted.append((fn, future))
        return future

    @property
    def pending_timers(self) -> int:
        return sum(1 for _, _, h in self._timers if not h.cancelled)

    def advance(self, seconds: float) -> None:
        """Move virtual time forward, firing due timers in order."""
        target = self.now + seconds
        while self._timers and self._timers[0][0] <= target:
            when, _, handle = heapq.heappop(self._timers)
            if handle.cancelled:
                continue
            self.now = when
            handle.callback()
        self.now = target

    def run_pending(self) -> None:
        """Run every submitted write, in submission order."""
        while self.submitted:
            fn, future = self.submitted.popleft()
            try:
                result = fn()
            except Exception as exc:
                future.set_exception(exc)
            else:
                future.set_result(result)


class RecordingSink:
    """SessionSink that keeps every write in memory."""

    def __init__(self) -> None:
        self.updates: list[tuple[str, dict]] = []
        self.ends: list[dict] = []
        self.fail = False

    def update_session(self, session_id: str, payload: dict) -> None:
        if self.fail:
            raise OSError("disk full")
        self.updates.append((session_id, payload))

    def end_session(self, session_id: str, payload: dict, completed_at: str, status: str) -> None:
        if self.fail:
            raise OSError("disk full")
        self.ends.append(
            {
                "session_id": session_id,
                "payload": payload,
                "completed_at": completed_at,
                "status": status,
            }
        )


def make_exercise(exercise_id: str, n_sets: int, *, weight: float = 60.0, reps: int = 8,
                  rest_seconds: int | None = None) -> ExerciseProgress:
    return ExerciseProgress(
        exercise=Exercise(exercise_id=exercise_id, name=exercise_id.title(), muscles=("chest",)),
        sets=[SetRecord(set_number=i, weight=weight, reps=reps) for i in range(1, n_sets + 1)],
        rest_seconds=rest_seconds,
    )


def make_session(*set_counts: int, name: str = "Test Workout") -> WorkoutSession:
    """Session with one exercise per count: e1, e2, ..."""
    return WorkoutSession(
        exercises=[make_exercise(f"e{i}", n) for i, n in enumerate(set_counts, 1)],
        name=name,
        session_id="workout_test_0001",
    )


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def settings() -> SessionSettings:
    return SessionSettings()


@pytest.fixture
def make_engine(scheduler, sink, settings):
    """Factory: make_engine(session, **listeners) → WorkoutEngine."""

    def _make(session: WorkoutSession, engine_settings: SessionSettings | None = None, **kwargs):
        return WorkoutEngine(
            session,
            scheduler,
            sink,
            engine_settings if engine_settings is not None else settings,
            **kwargs,
        )

    return _make


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    """Point HOME at an empty directory so no user settings leak in."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home
