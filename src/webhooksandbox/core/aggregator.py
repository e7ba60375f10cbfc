"""Facade over the event and log stores, sinks and durable coalescers.

The Aggregator is the only object the HTTP layer talks to. It owns both
ring stores, the sink list and the coalescers' debounce timers. All
mutation happens on the event-loop thread, so no locking is needed;
snapshots handed to readers are immutable tuples.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from webhooksandbox.core.clock import Clock, system_clock
from webhooksandbox.core.coalescer import DEFAULT_FLUSH_DELAY, WriteCoalescer
from webhooksandbox.core.models import EventRecord, Level, LogEntry, PersistedState
from webhooksandbox.core.ports import DurableSinkPort, SinkPort
from webhooksandbox.core.ring import RingStore
from webhooksandbox.core.scheduling import Scheduler

logger = logging.getLogger(__name__)

DEFAULT_EVENTS_CAPACITY = 100
DEFAULT_LOGS_CAPACITY = 500
DEFAULT_SERVICE = "webhook-sandbox"


class Aggregator:
    """Bounded recent history of webhooks and operational logs.

    Args:
        events_capacity: Number of webhook events to retain.
        logs_capacity: Number of log entries to retain.
        sinks: Immediate sinks receiving every log entry.
        event_sinks: Immediate sinks receiving a log line per webhook event.
            They are handed the "Webhook received from ..." LogEntry that
            ``record_event`` logs, not the EventRecord itself.
        clock: Source of epoch-millisecond timestamps.
        service: Default service tag for log entries.
    """

    def __init__(
        self,
        events_capacity: int = DEFAULT_EVENTS_CAPACITY,
        logs_capacity: int = DEFAULT_LOGS_CAPACITY,
        sinks: Iterable[SinkPort] = (),
        event_sinks: Iterable[SinkPort] = (),
        clock: Clock = system_clock,
        service: str = DEFAULT_SERVICE,
    ) -> None:
        self._events: RingStore[EventRecord] = RingStore(events_capacity)
        self._logs: RingStore[LogEntry] = RingStore(logs_capacity)
        self._sinks: list[SinkPort] = list(sinks)
        self._event_sinks: list[SinkPort] = list(event_sinks)
        self._coalescers: list[WriteCoalescer] = []
        self._clock = clock
        self._service = service
        self._start_time = clock()
        self._last_request: int | None = None
        self._total_events = 0

    # --- Wiring ---

    def add_sink(self, sink: SinkPort) -> None:
        """Register an immediate sink for log entries."""
        self._sinks.append(sink)

    def add_durable_sink(
        self,
        sink: DurableSinkPort,
        scheduler: Scheduler,
        delay: float = DEFAULT_FLUSH_DELAY,
    ) -> WriteCoalescer:
        """Register a durable sink behind a debounced WriteCoalescer.

        Returns:
            The coalescer now owned by this aggregator.
        """
        coalescer = WriteCoalescer(sink, scheduler, delay)
        self._coalescers.append(coalescer)
        return coalescer

    @property
    def sinks(self) -> tuple[SinkPort, ...]:
        return tuple(self._sinks)

    @property
    def coalescers(self) -> tuple[WriteCoalescer, ...]:
        return tuple(self._coalescers)

    # --- Producers ---

    def record_event(
        self,
        origin: str,
        path: str,
        method: str,
        headers: Mapping[str, str],
        body: Any,
    ) -> EventRecord:
        """Store a received webhook and return the stamped record."""
        event = EventRecord(
            url=path,
            origin=origin,
            body=body,
            time=self._clock(),
            headers=dict(headers),
            method=method.upper(),
        )
        self._events.append(event)
        self._last_request = event.time
        self._total_events += 1
        entry = self.log(Level.INFO, f"Webhook received from {origin} on {path}")
        self._fan_out(self._event_sinks, entry)
        return event

    def log(
        self,
        level: Level | str,
        message: str,
        service: str | None = None,
    ) -> LogEntry:
        """Stamp a log entry, store it and hand it to every sink.

        Never raises because of a sink: failures are reported through the
        module logger and the stored entry stays in place.
        """
        entry = LogEntry(
            level=Level.parse(level),
            message=message,
            timestamp=self._clock(),
            service=service or self._service,
        )
        self._logs.append(entry)
        self._fan_out(self._sinks, entry)
        for coalescer in self._coalescers:
            coalescer.enqueue(entry)
        return entry

    def _fan_out(self, sinks: Sequence[SinkPort], entry: LogEntry) -> None:
        for sink in sinks:
            try:
                sink.write(entry)
            except Exception:
                logger.exception("Sink %s raised while writing", type(sink).__name__)

    # --- Readers ---

    def query_events(self) -> tuple[EventRecord, ...]:
        """Return retained events, most recent last."""
        return self._events.snapshot()

    def query_logs(self) -> tuple[LogEntry, ...]:
        """Return retained log entries, most recent last."""
        return self._logs.snapshot()

    @property
    def events_capacity(self) -> int:
        return self._events.capacity

    @property
    def logs_capacity(self) -> int:
        return self._logs.capacity

    @property
    def start_time(self) -> int:
        return self._start_time

    @property
    def last_request(self) -> int | None:
        """Timestamp of the most recent webhook, or None before the first."""
        return self._last_request

    @property
    def total_events(self) -> int:
        """Number of webhooks received since start, including evicted ones."""
        return self._total_events

    def now(self) -> int:
        """Current time from the aggregator's clock, in epoch milliseconds."""
        return self._clock()

    def uptime(self) -> int:
        """Milliseconds elapsed since the sandbox started."""
        return max(0, self._clock() - self._start_time)

    # --- Persistence ---

    def snapshot(self) -> PersistedState:
        """Capture the current state as a durable snapshot document."""
        return PersistedState(
            webhooks=self._events.snapshot(),
            logs=self._logs.snapshot(),
            last_request=self._last_request,
            start_time=self._start_time,
        )

    def restore(self, state: PersistedState) -> None:
        """Hydrate the stores from a snapshot loaded at startup.

        Restored entries are subject to the configured capacities and are
        not forwarded to sinks.
        """
        self._events.clear()
        self._logs.clear()
        self._events.extend(state.webhooks)
        self._logs.extend(state.logs)
        self._last_request = state.last_request
        self._total_events = len(state.webhooks)
        if state.start_time:
            self._start_time = state.start_time

    async def flush(self) -> bool:
        """Flush every durable coalescer now.

        Returns:
            True if all pending batches were persisted.
        """
        results = [await c.flush() for c in self._coalescers]
        return all(results)

    async def close(self, timeout: float | None = None) -> bool:
        """Cancel debounce timers and make one final flush attempt each.

        Args:
            timeout: Seconds allowed per coalescer for the final flush.

        Returns:
            True if every coalescer persisted its pending entries.
        """
        results = [await c.close(timeout) for c in self._coalescers]
        return all(results)
