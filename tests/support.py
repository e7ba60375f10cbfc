"""Test doubles shared across the test suite."""

import asyncio
from collections.abc import Callable, Coroutine, Sequence
from typing import Any

from webhooksandbox.core.errors import SinkWriteError
from webhooksandbox.core.models import LogEntry


class FakeClock:
    """Settable epoch-millisecond clock."""

    def __init__(self, now: int = 1_700_000_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class ManualTimer:
    """Timer handle created by ManualScheduler."""

    def __init__(self, deadline: float, seq: int, callback: Callable[[], None]) -> None:
        self.deadline = deadline
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler driven by a simulated clock.

    ``advance(seconds)`` fires due callbacks in deadline order and awaits
    every task they spawn before returning.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: list[ManualTimer] = []
        self._seq = 0
        self.tasks: list[asyncio.Future[Any]] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + delay, self._seq, callback)
        self._seq += 1
        self._timers.append(timer)
        return timer

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> "asyncio.Future[Any]":
        task = asyncio.get_running_loop().create_task(coro)
        self.tasks.append(task)
        return task

    @property
    def pending_timers(self) -> list[ManualTimer]:
        return [t for t in self._timers if not t.cancelled]

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = sorted(
                (t for t in self.pending_timers if t.deadline <= target),
                key=lambda t: (t.deadline, t.seq),
            )
            if not due:
                break
            timer = due[0]
            self._timers.remove(timer)
            self.now = timer.deadline
            timer.callback()
            await self.settle()
        self.now = target
        await self.settle()

    async def settle(self) -> None:
        """Wait until every spawned task, including follow-ups, is done."""
        while True:
            running = [t for t in self.tasks if not t.done()]
            if not running:
                return
            await asyncio.gather(*running)


class RecordingDurableSink:
    """Durable sink remembering each batch and when it was written."""

    def __init__(self, scheduler: ManualScheduler | None = None) -> None:
        self._scheduler = scheduler
        self.batches: list[list[LogEntry]] = []
        self.flush_times: list[float] = []

    async def write_batch(self, entries: Sequence[LogEntry]) -> None:
        self.batches.append(list(entries))
        if self._scheduler is not None:
            self.flush_times.append(self._scheduler.now)

    @property
    def messages(self) -> list[list[str]]:
        return [[e.message for e in batch] for batch in self.batches]


class FailingDurableSink:
    """Durable sink whose storage is permanently broken."""

    def __init__(self) -> None:
        self.calls = 0

    async def write_batch(self, entries: Sequence[LogEntry]) -> None:
        self.calls += 1
        raise SinkWriteError("disk full")


class GatedDurableSink(RecordingDurableSink):
    """Durable sink whose writes block until ``release()`` is called."""

    def __init__(self) -> None:
        super().__init__()
        self.started = asyncio.Event()
        self._gate = asyncio.Event()

    def release(self) -> None:
        self._gate.set()

    async def write_batch(self, entries: Sequence[LogEntry]) -> None:
        self.started.set()
        await self._gate.wait()
        await super().write_batch(entries)


class BrokenStream:
    """Text stream that raises on every write."""

    def __init__(self) -> None:
        self.attempts = 0

    def write(self, text: str) -> int:
        self.attempts += 1
        raise OSError("stream closed")

    def flush(self) -> None:
        pass

    def isatty(self) -> bool:
        return False


class RaisingSink:
    """Immediate sink that raises instead of returning False."""

    def write(self, entry: LogEntry) -> bool:
        raise RuntimeError("sink exploded")
