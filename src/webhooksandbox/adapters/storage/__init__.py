"""Snapshot storage adapters implementing core ports."""

from pathlib import Path

from webhooksandbox.adapters.storage.json_file import JSONFileSnapshotStorage
from webhooksandbox.adapters.storage.sqlite import SQLiteSnapshotStorage
from webhooksandbox.core.ports import SnapshotStoragePort

SQLITE_SUFFIXES = frozenset({".db", ".sqlite", ".sqlite3"})


def open_snapshot_storage(path: str | Path) -> SnapshotStoragePort:
    """Pick a storage backend from the path.

    ``:memory:`` and paths ending in .db, .sqlite or .sqlite3 use SQLite;
    anything else is treated as a JSON file.
    """
    text = str(path)
    if text == ":memory:" or Path(text).suffix.lower() in SQLITE_SUFFIXES:
        return SQLiteSnapshotStorage(text)
    return JSONFileSnapshotStorage(text)


__all__ = [
    "JSONFileSnapshotStorage",
    "SQLiteSnapshotStorage",
    "open_snapshot_storage",
]
