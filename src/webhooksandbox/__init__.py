"""webhook-sandbox: receive webhooks and keep a bounded recent history.

Public API:
    Aggregator: facade over the event and log stores.
    create_asgi_app / create_app: HTTP surface.
"""

from webhooksandbox.adapters.frameworks.asgi import create_asgi_app
from webhooksandbox.adapters.logging import SandboxHandler
from webhooksandbox.adapters.sinks import (
    AppendFileSink,
    ConsoleSink,
    MemorySink,
    SnapshotSink,
)
from webhooksandbox.adapters.storage import (
    JSONFileSnapshotStorage,
    SQLiteSnapshotStorage,
    open_snapshot_storage,
)
from webhooksandbox.config import Settings, load_settings
from webhooksandbox.core.aggregator import Aggregator
from webhooksandbox.core.coalescer import WriteCoalescer
from webhooksandbox.core.models import EventRecord, Level, LogEntry, PersistedState
from webhooksandbox.core.ring import RingStore
from webhooksandbox.runtime import SandboxContext, build_context, create_app

__all__ = [
    "Aggregator",
    "AppendFileSink",
    "ConsoleSink",
    "EventRecord",
    "JSONFileSnapshotStorage",
    "Level",
    "LogEntry",
    "MemorySink",
    "PersistedState",
    "RingStore",
    "SQLiteSnapshotStorage",
    "SandboxContext",
    "SandboxHandler",
    "Settings",
    "SnapshotSink",
    "WriteCoalescer",
    "build_context",
    "create_app",
    "create_asgi_app",
    "load_settings",
]
