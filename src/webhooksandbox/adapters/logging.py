"""Python logging handler adapter for webhook-sandbox.

This adapter bridges Python's standard library logging module to the
Aggregator, so application loggers show up in the sandbox log view and
its sinks.
"""

import logging

from webhooksandbox.core.aggregator import Aggregator
from webhooksandbox.core.models import Level

# Diagnostics from the sandbox itself (sink failures, dropped batches)
# must not feed back into the sinks that produced them.
_INTERNAL_LOGGER_PREFIX = "webhooksandbox."


def _level_for_record(record: logging.LogRecord) -> Level:
    """Map a stdlib level number onto the sandbox's three levels."""
    if record.levelno >= logging.ERROR:
        return Level.ERROR
    if record.levelno >= logging.WARNING:
        return Level.WARN
    return Level.INFO


class SandboxHandler(logging.Handler):
    """Logging handler that forwards log records to an Aggregator.

    The logger name becomes the entry's service tag. Must be used from the
    event-loop thread that owns the aggregator.

    Example:
        ```python
        from webhooksandbox.adapters.logging import SandboxHandler

        handler = SandboxHandler(aggregator)
        logging.getLogger("myapp").addHandler(handler)
        ```
    """

    def __init__(self, aggregator: Aggregator, level: int = logging.NOTSET) -> None:
        """Initialize the handler.

        Args:
            aggregator: Aggregator receiving the entries.
            level: Minimum stdlib level to forward.
        """
        super().__init__(level)
        self._aggregator = aggregator

    def emit(self, record: logging.LogRecord) -> None:
        """Forward a log record to the aggregator.

        Args:
            record: The log record to emit.
        """
        if record.name.startswith(_INTERNAL_LOGGER_PREFIX):
            return
        try:
            message = record.getMessage()
            if record.exc_info and record.exc_info[1] is not None:
                exc = record.exc_info[1]
                message = f"{message}: {type(exc).__name__}: {exc}"
            self._aggregator.log(_level_for_record(record), message, service=record.name)
        except Exception:
            self.handleError(record)
