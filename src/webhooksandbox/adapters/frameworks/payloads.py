"""Response payloads shared by the HTTP framework adapters."""

from collections.abc import Sequence
from typing import Any

from webhooksandbox.core.aggregator import Aggregator
from webhooksandbox.core.encoding.documents import event_to_dict, log_to_dict
from webhooksandbox.core.models import EventRecord, Level, LogEntry

ENDPOINTS = ("/webhook", "/info", "/webhooks", "/logs")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def health_payload(aggregator: Aggregator, api_prefix: str = "") -> dict[str, Any]:
    """Static status document for ``/`` and ``/health``."""
    return {
        "status": "ok",
        "message": "Webhook Sandbox API is running",
        "uptime": aggregator.uptime(),
        "endpoints": [f"{api_prefix}{path}" for path in ENDPOINTS],
        "timestamp": aggregator.now(),
        "totalWebhooks": len(aggregator.query_events()),
    }


def info_payload(aggregator: Aggregator, environment: str) -> dict[str, Any]:
    """Uptime and last-request summary for ``/info``."""
    return {
        "uptime": aggregator.uptime(),
        "lastRequest": aggregator.last_request,
        "serverTime": aggregator.now(),
        "startTime": aggregator.start_time,
        "totalWebhooks": len(aggregator.query_events()),
        "environment": environment,
    }


def webhook_payload(aggregator: Aggregator, event: EventRecord) -> dict[str, Any]:
    """Acknowledgement echoed back to the webhook sender."""
    return {
        "message": "Webhook received",
        "url": event.url,
        "origin": event.origin,
        "body": event.body,
        "timestamp": event.time,
        "totalWebhooks": len(aggregator.query_events()),
    }


def select_events(
    events: Sequence[EventRecord], limit: int | None = None
) -> list[dict[str, Any]]:
    """Serialize events, keeping only the most recent ``limit``."""
    if limit is not None:
        events = events[-limit:]
    return [event_to_dict(e) for e in events]


def select_logs(
    entries: Sequence[LogEntry],
    since: int = 0,
    level: Level | None = None,
    limit: int | None = None,
) -> list[LogEntry]:
    """Filter log entries by timestamp and level, most recent last.

    Args:
        entries: Entries oldest first.
        since: Only entries with timestamp > since.
        level: Only entries of this level.
        limit: Keep only the most recent N matches.
    """
    selected = [
        e
        for e in entries
        if e.timestamp > since and (level is None or e.level == level)
    ]
    if limit is not None:
        selected = selected[-limit:]
    return selected


def logs_to_json(entries: Sequence[LogEntry]) -> list[dict[str, Any]]:
    return [log_to_dict(e) for e in entries]
