"""In-memory sink backed by its own ring store."""

from webhooksandbox.core.models import LogEntry
from webhooksandbox.core.ring import RingStore


class MemorySink:
    """Bounded in-memory implementation of SinkPort.

    Keeps the most recent ``capacity`` entries independently of the
    aggregator's own log store. Writes never fail. The sandbox itself
    serves ``/logs`` from the aggregator's ring, so ``build_context`` does
    not wire this sink; it is for embedders that want a separate tail of
    log entries, e.g. one per consumer.

    Args:
        capacity: Maximum number of entries to keep.
    """

    def __init__(self, capacity: int = 500) -> None:
        self._ring: RingStore[LogEntry] = RingStore(capacity)

    def write(self, entry: LogEntry) -> bool:
        """Append an entry, evicting the oldest when full."""
        self._ring.append(entry)
        return True

    def entries(self) -> tuple[LogEntry, ...]:
        """Return retained entries, oldest first."""
        return self._ring.snapshot()

    def __len__(self) -> int:
        return len(self._ring)
