"""Core domain models for received webhooks and operational logs."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class Level(StrEnum):
    """Severity of an operational log entry."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @classmethod
    def parse(cls, value: "str | Level") -> "Level":
        """Parse a level name, falling back to INFO for unknown values.

        Accepts any casing plus the ``warning`` and ``err`` aliases.
        """
        if isinstance(value, Level):
            return value
        name = str(value).strip().lower()
        return _LEVEL_ALIASES.get(name, cls.INFO)


_LEVEL_ALIASES = {
    "info": Level.INFO,
    "debug": Level.INFO,
    "warn": Level.WARN,
    "warning": Level.WARN,
    "error": Level.ERROR,
    "err": Level.ERROR,
    "critical": Level.ERROR,
}

LEVEL_COLORS: dict[Level, str] = {
    Level.INFO: "green",
    Level.WARN: "yellow",
    Level.ERROR: "red",
}


@dataclass(frozen=True)
class EventRecord:
    """A received webhook request.

    Attributes:
        url: Request path (including the query string) the webhook hit.
        origin: Caller address, taken from X-Forwarded-For when present.
        body: Decoded request body. Any JSON-compatible value.
        time: Arrival timestamp in epoch milliseconds.
        headers: Request headers, lower-cased names.
        method: HTTP method.
    """

    url: str
    origin: str
    body: Any
    time: int
    headers: dict[str, str] = field(default_factory=dict)
    method: str = "POST"

    @property
    def user_agent(self) -> str:
        """User-Agent header of the request, or ``"unknown"``."""
        return self.headers.get("user-agent", "unknown")


@dataclass(frozen=True)
class LogEntry:
    """An operational log line.

    Attributes:
        level: Severity level.
        message: Free-text message.
        timestamp: Epoch milliseconds.
        service: Tag of the component that emitted the line.
    """

    level: Level
    message: str
    timestamp: int
    service: str = "webhook-sandbox"

    @property
    def color(self) -> str:
        """Display color derived from the level."""
        return LEVEL_COLORS[self.level]


@dataclass(frozen=True)
class PersistedState:
    """Durable snapshot document of the sandbox state.

    Attributes:
        webhooks: Retained events, oldest first.
        logs: Retained log entries, oldest first.
        last_request: Timestamp of the most recent webhook, if any.
        start_time: Timestamp at which the sandbox started.
    """

    webhooks: tuple[EventRecord, ...]
    logs: tuple[LogEntry, ...]
    last_request: int | None
    start_time: int
