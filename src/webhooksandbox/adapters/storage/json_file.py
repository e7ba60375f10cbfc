"""JSON file storage for the durable snapshot document."""

import asyncio
import os
import tempfile
from pathlib import Path

from webhooksandbox.core.encoding.documents import decode_state, encode_state
from webhooksandbox.core.errors import SnapshotDecodeError
from webhooksandbox.core.models import PersistedState


class JSONFileSnapshotStorage:
    """SnapshotStoragePort implementation using a single JSON file.

    Saves write a temporary sibling file and atomically replace the
    target, so readers never see a partially written document. File I/O
    runs in a worker thread.

    Args:
        path: Location of the snapshot file.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> str | None:
        try:
            return self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise SnapshotDecodeError(f"snapshot is not UTF-8 text: {e}") from e

    def _write(self, text: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def load(self) -> PersistedState | None:
        """Load the snapshot, or None if the file does not exist.

        Raises:
            SnapshotDecodeError: If the file content is not a snapshot.
        """
        text = await asyncio.to_thread(self._read)
        if text is None or not text.strip():
            return None
        return decode_state(text)

    async def save(self, state: PersistedState) -> None:
        """Atomically replace the snapshot file."""
        await asyncio.to_thread(self._write, encode_state(state))
