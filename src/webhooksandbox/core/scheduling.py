"""Scheduled-task abstraction used by the write coalescer.

Debounce timers are created through a Scheduler rather than ambient
event-loop calls so that they can be driven by a simulated clock.
"""

import asyncio
from collections.abc import Callable, Coroutine
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TimerHandle(Protocol):
    """A pending scheduled callback."""

    def cancel(self) -> None:
        """Cancel the callback if it has not run yet."""
        ...


@runtime_checkable
class Scheduler(Protocol):
    """Source of delayed callbacks and background tasks."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` after ``delay`` seconds."""
        ...

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> "asyncio.Future[Any]":
        """Run ``coro`` as a background task."""
        ...


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop.

    The loop is resolved lazily so the scheduler can be created before the
    server starts its loop.

    Args:
        loop: Event loop to use. Defaults to the running loop at call time.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._tasks: set[asyncio.Future[Any]] = set()

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        """Pin the scheduler to ``loop``."""
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None or self._loop.is_closed():
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(
        self, delay: float, callback: Callable[[], None]
    ) -> asyncio.TimerHandle:
        """Run ``callback`` on the loop after ``delay`` seconds."""
        return self._get_loop().call_later(delay, callback)

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> "asyncio.Future[Any]":
        """Schedule ``coro`` as a task, keeping a reference until it finishes."""
        task = self._get_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
