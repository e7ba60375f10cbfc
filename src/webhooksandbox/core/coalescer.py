"""Debounced batching of writes to a durable sink.

Bursts of log entries are buffered and written as one batch once no new
entry has arrived for ``delay`` seconds. Entries still buffered when the
process dies without a graceful shutdown are lost; the durable copy lags
the in-memory view by at most ``delay``.
"""

import asyncio
import logging

from webhooksandbox.core.models import LogEntry
from webhooksandbox.core.ports import DurableSinkPort
from webhooksandbox.core.scheduling import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

DEFAULT_FLUSH_DELAY = 3.0


class WriteCoalescer:
    """Buffers entries and flushes them to a durable sink on a debounce timer.

    At most one flush is in flight at a time. Entries enqueued while a
    flush is running go into the next batch. A failed batch is dropped and
    reported once; it is never retried.

    Args:
        sink: Durable sink receiving the batches.
        scheduler: Source of the debounce timer and flush tasks.
        delay: Debounce window in seconds.
    """

    def __init__(
        self,
        sink: DurableSinkPort,
        scheduler: Scheduler,
        delay: float = DEFAULT_FLUSH_DELAY,
    ) -> None:
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        self._sink = sink
        self._scheduler = scheduler
        self._delay = delay
        self._pending: list[LogEntry] = []
        self._timer: TimerHandle | None = None
        self._flushing = False
        self._follow_up = False
        self._closing = False
        # set whenever no batch is being written
        self._idle = asyncio.Event()
        self._idle.set()
        self.flushed_batches = 0
        self.flushed_entries = 0
        self.dropped_batches = 0
        self.dropped_entries = 0

    @property
    def sink(self) -> DurableSinkPort:
        return self._sink

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending_count(self) -> int:
        """Number of entries waiting for the next flush."""
        return len(self._pending)

    @property
    def flushing(self) -> bool:
        """True while a batch is being written."""
        return self._flushing

    @property
    def timer_armed(self) -> bool:
        return self._timer is not None

    def enqueue(self, entry: LogEntry) -> None:
        """Buffer an entry and restart the debounce timer."""
        self._pending.append(entry)
        if self._timer is not None:
            self._timer.cancel()
        self._timer = self._scheduler.call_later(self._delay, self._on_timer)

    def _on_timer(self) -> None:
        self._timer = None
        if self._flushing:
            # picked up when the running flush completes
            self._follow_up = True
            return
        self._scheduler.spawn(self.flush())

    async def flush(self) -> bool:
        """Write all buffered entries as one batch.

        Returns:
            True if the buffer was empty or the batch was persisted,
            False if the batch was dropped or another flush is running.
        """
        if self._flushing:
            if not self._closing:
                self._follow_up = True
            return False
        if not self._pending:
            return True
        batch, self._pending = self._pending, []
        self._flushing = True
        self._idle.clear()
        try:
            await self._sink.write_batch(batch)
        except Exception:
            self.dropped_batches += 1
            self.dropped_entries += len(batch)
            logger.warning(
                "Dropped %d buffered entries after %s write failed",
                len(batch),
                type(self._sink).__name__,
                exc_info=True,
            )
            return False
        else:
            self.flushed_batches += 1
            self.flushed_entries += len(batch)
            return True
        finally:
            self._flushing = False
            self._idle.set()
            self._start_follow_up()

    def _start_follow_up(self) -> None:
        if not self._follow_up:
            return
        self._follow_up = False
        if self._closing:
            return
        # a newer enqueue re-armed the timer; let it fire on its own schedule
        if self._pending and self._timer is None:
            self._scheduler.spawn(self.flush())

    async def close(self, timeout: float | None = None) -> bool:
        """Cancel the timer and flush whatever is still buffered.

        Waits for an in-flight flush first, however it was started. Once
        closing has begun, no follow-up flush is scheduled. The whole operation is bounded
        by ``timeout`` seconds; entries not written by then are lost.

        Returns:
            True if everything buffered was persisted.
        """
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._follow_up = False
        self._closing = True
        pending = self.pending_count
        try:
            async with asyncio.timeout(timeout):
                while self._flushing:
                    await self._idle.wait()
                return await self.flush()
        except TimeoutError:
            logger.warning(
                "Final flush to %s timed out after %ss; up to %d entries lost",
                type(self._sink).__name__,
                timeout,
                pending,
            )
            return False
