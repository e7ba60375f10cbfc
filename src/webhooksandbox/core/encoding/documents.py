"""JSON document encoding for events, log entries and snapshots.

Field names follow the wire format served to the dashboard and written
to the durable snapshot:

- events: ``url, origin, body, time, headers, method, userAgent``
- logs: ``level, message, timestamp, service, color``
- snapshot: ``webhooks, logs, lastRequest, startTime``
"""

import json
from typing import Any

from webhooksandbox.core.errors import SnapshotDecodeError
from webhooksandbox.core.models import EventRecord, Level, LogEntry, PersistedState


def event_to_dict(event: EventRecord) -> dict[str, Any]:
    """Convert an event to its JSON-compatible form."""
    return {
        "url": event.url,
        "origin": event.origin,
        "body": event.body,
        "time": event.time,
        "headers": dict(event.headers),
        "method": event.method,
        "userAgent": event.user_agent,
    }


def event_from_dict(data: dict[str, Any]) -> EventRecord:
    """Rebuild an event from its JSON form.

    Missing optional fields take their defaults; ``userAgent`` is derived
    from the headers and therefore ignored.
    """
    return EventRecord(
        url=str(data.get("url", "")),
        origin=str(data.get("origin", "unknown")),
        body=data.get("body"),
        time=int(data.get("time", 0)),
        headers={str(k): str(v) for k, v in (data.get("headers") or {}).items()},
        method=str(data.get("method", "POST")),
    )


def log_to_dict(entry: LogEntry) -> dict[str, Any]:
    """Convert a log entry to its JSON-compatible form."""
    return {
        "level": entry.level.value,
        "message": entry.message,
        "timestamp": entry.timestamp,
        "service": entry.service,
        "color": entry.color,
    }


def log_from_dict(data: dict[str, Any]) -> LogEntry:
    """Rebuild a log entry from its JSON form. ``color`` is re-derived."""
    return LogEntry(
        level=Level.parse(data.get("level", "info")),
        message=str(data.get("message", "")),
        timestamp=int(data.get("timestamp", 0)),
        service=str(data.get("service", "webhook-sandbox")),
    )


def state_to_dict(state: PersistedState) -> dict[str, Any]:
    """Convert a snapshot to the persisted document layout."""
    return {
        "webhooks": [event_to_dict(e) for e in state.webhooks],
        "logs": [log_to_dict(e) for e in state.logs],
        "lastRequest": state.last_request,
        "startTime": state.start_time,
    }


def state_from_dict(data: Any) -> PersistedState:
    """Rebuild a snapshot from the persisted document layout.

    Raises:
        SnapshotDecodeError: If the document is not a JSON object or one
            of its collections has the wrong shape.
    """
    if not isinstance(data, dict):
        raise SnapshotDecodeError(
            f"snapshot must be a JSON object, got {type(data).__name__}"
        )
    try:
        webhooks = tuple(event_from_dict(e) for e in data.get("webhooks") or [])
        logs = tuple(log_from_dict(e) for e in data.get("logs") or [])
        last_request = data.get("lastRequest")
        start_time = data.get("startTime")
        return PersistedState(
            webhooks=webhooks,
            logs=logs,
            last_request=None if last_request is None else int(last_request),
            start_time=0 if start_time is None else int(start_time),
        )
    except (AttributeError, TypeError, ValueError) as e:
        raise SnapshotDecodeError(f"malformed snapshot document: {e}") from e


def encode_state(state: PersistedState) -> str:
    """Serialize a snapshot to a JSON string."""
    return json.dumps(state_to_dict(state), default=str)


def decode_state(text: str) -> PersistedState:
    """Parse a snapshot from a JSON string.

    Raises:
        SnapshotDecodeError: If the text is not valid JSON or not a snapshot.
    """
    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as e:
        raise SnapshotDecodeError(f"snapshot is not valid JSON: {e}") from e
    return state_from_dict(data)
