"""
Timer primitive for the live session.

The engine never touches a clock directly.  It is handed a Scheduler that
can run a callback later, run one repeatedly, and push a blocking call (a
persistence write) off the event loop.  Every callback the scheduler
delivers, including completion of submitted work, runs on the same loop as
the engine's own operations, so session state has a single writer.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
from typing import Any, Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """What the engine needs from its timer source."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle: ...

    def submit(self, fn: Callable[[], Any]) -> concurrent.futures.Future | asyncio.Future: ...


class RepeatingHandle:
    """Re-arms a callback every ``interval`` seconds until cancelled."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        interval: float,
        callback: Callable[[], None],
    ):
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._cancelled = False
        # Schedule against absolute deadlines so a slow callback does not drift the clock
        self._next_at = loop.time() + interval
        self._handle: asyncio.TimerHandle | None = loop.call_at(self._next_at, self._run)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _run(self) -> None:
        if self._cancelled:
            return
        self._next_at += self._interval
        self._handle = self._loop.call_at(self._next_at, self._run)
        self._callback()

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class AsyncioScheduler:
    """
    Scheduler backed by an asyncio event loop.

    Blocking work passed to ``submit`` runs in ``executor``; the returned
    asyncio future resolves on the loop thread.  The default executor has a
    single worker so writes reach the sink in the order they were submitted.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        executor: concurrent.futures.Executor | None = None,
    ):
        self.loop = loop if loop is not None else asyncio.get_running_loop()
        self._owns_executor = executor is None
        self.executor = (
            executor
            if executor is not None
            else concurrent.futures.ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="catalyft-sink"
            )
        )

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the executor this scheduler created (no-op for a caller's executor)."""
        if self._owns_executor:
            self.executor.shutdown(wait=wait)

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)

    def call_every(self, interval: float, callback: Callable[[], None]) -> RepeatingHandle:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        return RepeatingHandle(self.loop, interval, callback)

    def submit(self, fn: Callable[[], Any]) -> asyncio.Future:
        return self.loop.run_in_executor(self.executor, fn)
