"""Adapters connecting the core to sinks, storage and HTTP frameworks."""
