"""Port interfaces for sinks and snapshot storage.

These protocols define the contracts that adapters must implement.
The core depends only on these interfaces, not concrete implementations.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from webhooksandbox.core.models import LogEntry, PersistedState


@runtime_checkable
class SinkPort(Protocol):
    """Port for immediate log sinks.

    Sinks receive entries one at a time. Examples: MemorySink, ConsoleSink.
    """

    def write(self, entry: LogEntry) -> bool:
        """Write a log entry.

        Returns:
            True if the entry was accepted, False if the sink failed.
        """
        ...


@runtime_checkable
class DurableSinkPort(Protocol):
    """Port for durable sinks fed in batches by a WriteCoalescer.

    Examples: SnapshotSink, AppendFileSink.
    """

    async def write_batch(self, entries: Sequence[LogEntry]) -> None:
        """Persist a batch of entries in order.

        Raises:
            Exception: Any error means the batch was not persisted.
        """
        ...


@runtime_checkable
class SnapshotStoragePort(Protocol):
    """Port for reading and rewriting the durable snapshot document.

    Examples: JSONFileSnapshotStorage, SQLiteSnapshotStorage.
    """

    async def load(self) -> PersistedState | None:
        """Load the stored snapshot, or None if nothing was stored yet."""
        ...

    async def save(self, state: PersistedState) -> None:
        """Replace the stored snapshot with ``state``."""
        ...
