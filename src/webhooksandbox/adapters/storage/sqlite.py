"""SQLite storage for the durable snapshot document."""

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite

from webhooksandbox.core.encoding.documents import decode_state, encode_state
from webhooksandbox.core.models import PersistedState

_SNAPSHOT_SCHEMA = """
CREATE TABLE IF NOT EXISTS snapshot (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    document TEXT NOT NULL,
    updated_at REAL NOT NULL
);
"""

_UPSERT_SNAPSHOT = """
INSERT INTO snapshot (id, document, updated_at) VALUES (1, ?, ?)
ON CONFLICT(id) DO UPDATE SET
    document = excluded.document,
    updated_at = excluded.updated_at
"""

_SELECT_SNAPSHOT = """
SELECT document FROM snapshot WHERE id = 1
"""


class SQLiteSnapshotStorage:
    """SnapshotStoragePort implementation keeping the document in SQLite.

    The whole snapshot lives in a single row that every save replaces.
    Uses aiosqlite for non-blocking access and WAL mode for file
    databases.

    For :memory: databases, a persistent connection is maintained since
    in-memory databases are connection-scoped in SQLite.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._initialized = False
        self._init_lock: asyncio.Lock | None = None
        self._persistent_conn: aiosqlite.Connection | None = None

    @property
    def db_path(self) -> str:
        return self._db_path

    def _get_lock(self) -> asyncio.Lock:
        """Get or create the initialization lock (lazy to avoid event loop issues)."""
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        return self._init_lock

    async def _ensure_initialized(self) -> None:
        """Initialize database schema once."""
        if self._initialized:
            return
        async with self._get_lock():
            if self._initialized:
                return
            if self._db_path == ":memory:":
                self._persistent_conn = await aiosqlite.connect(":memory:")
                await self._persistent_conn.executescript(_SNAPSHOT_SCHEMA)
            else:
                async with aiosqlite.connect(self._db_path) as db:
                    await db.execute("PRAGMA journal_mode=WAL")
                    await db.executescript(_SNAPSHOT_SCHEMA)
            self._initialized = True

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a connection, closing it afterwards for file databases."""
        await self._ensure_initialized()
        if self._db_path == ":memory:":
            if self._persistent_conn is None:
                raise RuntimeError("Memory database connection not initialized")
            yield self._persistent_conn
            return
        db = await aiosqlite.connect(self._db_path)
        try:
            yield db
        finally:
            await db.close()

    async def load(self) -> PersistedState | None:
        """Load the stored snapshot, or None if nothing was saved yet.

        Raises:
            SnapshotDecodeError: If the stored document is not a snapshot.
        """
        async with self._connection() as db:
            async with db.execute(_SELECT_SNAPSHOT) as cursor:
                row = await cursor.fetchone()
        if row is None:
            return None
        return decode_state(row[0])

    async def save(self, state: PersistedState) -> None:
        """Replace the stored snapshot."""
        async with self._connection() as db:
            await db.execute(_UPSERT_SNAPSHOT, (encode_state(state), time.time()))
            await db.commit()

    async def close(self) -> None:
        """Close persistent connection (for :memory: databases)."""
        if self._persistent_conn is not None:
            await self._persistent_conn.close()
            self._persistent_conn = None
            self._initialized = False
