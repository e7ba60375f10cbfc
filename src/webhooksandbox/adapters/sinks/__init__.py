"""Sink adapters implementing core ports."""

from webhooksandbox.adapters.sinks.console import ConsoleSink
from webhooksandbox.adapters.sinks.durable import AppendFileSink, SnapshotSink
from webhooksandbox.adapters.sinks.memory import MemorySink

__all__ = [
    "AppendFileSink",
    "ConsoleSink",
    "MemorySink",
    "SnapshotSink",
]
