"""Execution-context schedulers for :class:`~mvpkit.messaging.aggregator.EventAggregator`.

A scheduler answers two questions: "am I running on your context right now?"
and "please run this callback on your context". The aggregator invokes a
subscriber inline when its scheduler is current and posts the invocation
otherwise, so a background publisher never runs UI code off the UI thread.
"""

from __future__ import annotations

import asyncio
import logging
import queue
import threading
from typing import Callable, Protocol, runtime_checkable

__all__ = [
    "AsyncioScheduler",
    "ImmediateScheduler",
    "Scheduler",
    "ThreadAffinityScheduler",
]

LOGGER = logging.getLogger(__name__)

Callback = Callable[[], None]


@runtime_checkable
class Scheduler(Protocol):
    """Runs callbacks on one execution context."""

    def is_current(self) -> bool:
        """Return ``True`` when called from the scheduler's own context."""
        ...

    def post(self, callback: Callback) -> None:
        """Queue ``callback`` to run on the scheduler's context without blocking."""
        ...


class ImmediateScheduler:
    """Runs everything inline on the caller's thread."""

    def is_current(self) -> bool:
        return True

    def post(self, callback: Callback) -> None:
        callback()

    def __repr__(self) -> str:
        return "ImmediateScheduler()"


class ThreadAffinityScheduler:
    """Context bound to one owner thread and drained explicitly.

    Posted callbacks wait in a FIFO queue until the owner thread calls
    :meth:`run_pending`, the way a UI event loop drains its message queue.
    """

    def __init__(self, thread: threading.Thread | None = None) -> None:
        self._thread = thread or threading.current_thread()
        self._queue: queue.SimpleQueue[Callback] = queue.SimpleQueue()

    @property
    def thread(self) -> threading.Thread:
        return self._thread

    def is_current(self) -> bool:
        return threading.current_thread() is self._thread

    def post(self, callback: Callback) -> None:
        self._queue.put(callback)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def run_pending(self, limit: int | None = None) -> int:
        """Run queued callbacks on the owner thread; returns how many ran."""

        if not self.is_current():
            raise RuntimeError(
                f"run_pending must be called from thread {self._thread.name!r}"
            )
        executed = 0
        while limit is None or executed < limit:
            try:
                callback = self._queue.get_nowait()
            except queue.Empty:
                break
            callback()
            executed += 1
        return executed

    def __repr__(self) -> str:
        return f"ThreadAffinityScheduler(thread={self._thread.name!r})"


class AsyncioScheduler:
    """Marshals callbacks onto an asyncio event loop (including qasync's Qt loop)."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        # Without an explicit loop this must be constructed inside a running loop.
        self._loop = loop or asyncio.get_running_loop()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def is_current(self) -> bool:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            return False
        return running is self._loop

    def post(self, callback: Callback) -> None:
        if self._loop.is_closed():
            LOGGER.warning("Dropping callback posted to closed event loop")
            return
        self._loop.call_soon_threadsafe(callback)

    def __repr__(self) -> str:
        return f"AsyncioScheduler(loop={self._loop!r})"
