"""Exception types raised by webhook-sandbox components."""


class SandboxError(Exception):
    """Base class for webhook-sandbox errors."""


class SinkWriteError(SandboxError):
    """A durable sink could not persist a batch of entries."""


class SnapshotDecodeError(SandboxError):
    """A persisted snapshot document could not be decoded."""
