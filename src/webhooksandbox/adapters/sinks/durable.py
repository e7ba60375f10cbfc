"""Durable sinks fed in batches by a WriteCoalescer.

Both sinks raise SinkWriteError when the underlying storage fails so the
coalescer can drop and report the batch.
"""

import asyncio
from collections.abc import Callable, Sequence
from pathlib import Path

from webhooksandbox.core.encoding.ndjson import encode_logs
from webhooksandbox.core.errors import SinkWriteError
from webhooksandbox.core.models import LogEntry, PersistedState
from webhooksandbox.core.ports import SnapshotStoragePort


class SnapshotSink:
    """DurableSinkPort implementation that rewrites the whole snapshot.

    The batch itself only signals that state changed; each flush persists
    the complete document produced by ``source``.

    Args:
        storage: Snapshot storage to rewrite.
        source: Callable returning the current state, usually
            ``Aggregator.snapshot``.
    """

    def __init__(
        self,
        storage: SnapshotStoragePort,
        source: Callable[[], PersistedState],
    ) -> None:
        self._storage = storage
        self._source = source

    @property
    def storage(self) -> SnapshotStoragePort:
        return self._storage

    async def write_batch(self, entries: Sequence[LogEntry]) -> None:
        """Persist the current snapshot."""
        try:
            await self._storage.save(self._source())
        except OSError as e:
            raise SinkWriteError(f"could not save snapshot: {e}") from e


class AppendFileSink:
    """DurableSinkPort implementation appending NDJSON lines to a file.

    File I/O runs in a worker thread so the event loop is never blocked.

    Args:
        path: File to append to. Parent directories are created on demand.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _append(self, text: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(text)

    async def write_batch(self, entries: Sequence[LogEntry]) -> None:
        """Append the batch, one JSON object per line."""
        text = encode_logs(entries)
        if not text:
            return
        try:
            await asyncio.to_thread(self._append, text)
        except OSError as e:
            raise SinkWriteError(f"could not append to {self._path}: {e}") from e
