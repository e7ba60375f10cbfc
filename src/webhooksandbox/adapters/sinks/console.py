"""Console sink rendering log entries as text lines."""

import logging
import sys
from datetime import UTC, datetime
from typing import TextIO

from webhooksandbox.core.models import LogEntry

logger = logging.getLogger(__name__)

_ANSI_COLORS = {
    "green": "\033[32m",
    "yellow": "\033[33m",
    "red": "\033[31m",
}
_ANSI_RESET = "\033[0m"


def format_entry(entry: LogEntry, colorize: bool = False) -> str:
    """Render an entry as ``<time> <LEVEL> [<service>] <message>``."""
    stamp = datetime.fromtimestamp(entry.timestamp / 1000, tz=UTC)
    level = entry.level.value.upper().ljust(5)
    if colorize:
        level = f"{_ANSI_COLORS[entry.color]}{level}{_ANSI_RESET}"
    iso = stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return f"{iso} {level} [{entry.service}] {entry.message}"


class ConsoleSink:
    """SinkPort implementation writing one line per entry to a text stream.

    Stream errors never reach the caller. The first failure is reported
    through the module logger, later ones are silent.

    Args:
        stream: Target stream. Defaults to ``sys.stdout`` at write time.
        colorize: Force ANSI colors on or off. Defaults to on for TTYs.
    """

    def __init__(self, stream: TextIO | None = None, colorize: bool | None = None) -> None:
        self._stream = stream
        self._colorize = colorize
        self._failed = False

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def _should_colorize(self, stream: TextIO) -> bool:
        if self._colorize is not None:
            return self._colorize
        isatty = getattr(stream, "isatty", None)
        return bool(isatty and isatty())

    def write(self, entry: LogEntry) -> bool:
        """Write an entry as one line.

        Returns:
            False if the stream raised, True otherwise.
        """
        stream = self.stream
        try:
            stream.write(format_entry(entry, self._should_colorize(stream)) + "\n")
            stream.flush()
        except Exception:
            if not self._failed:
                self._failed = True
                logger.warning(
                    "Console sink write failed; further errors are suppressed",
                    exc_info=True,
                )
            return False
        return True
