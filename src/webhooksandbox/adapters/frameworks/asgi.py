"""ASGI generic adapter for the webhook sandbox endpoints.

This adapter provides a framework-agnostic ASGI application that can be used
with any ASGI server (uvicorn, hypercorn, daphne) without requiring FastAPI
as a dependency.
"""

import json
import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any
from urllib.parse import parse_qs

from webhooksandbox.adapters.frameworks.payloads import (
    CORS_HEADERS,
    health_payload,
    info_payload,
    logs_to_json,
    select_events,
    select_logs,
    webhook_payload,
)
from webhooksandbox.adapters.frameworks.query_params import (
    _parse_format_param,
    _parse_level_param,
    _parse_limit_param,
    _parse_since_param,
)
from webhooksandbox.core.aggregator import Aggregator
from webhooksandbox.core.encoding.ndjson import encode_logs

logger = logging.getLogger(__name__)

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]
LifespanHook = Callable[[], Awaitable[None]]

_CORS_HEADER_BYTES = [
    (name.lower().encode(), value.encode()) for name, value in CORS_HEADERS.items()
]

# Routes and the single method each one accepts
_ROUTE_METHODS = {
    "/": "GET",
    "/health": "GET",
    "/webhook": "POST",
    "/webhooks": "GET",
    "/logs": "GET",
    "/info": "GET",
}


class BadRequest(Exception):
    """The request could not be decoded."""


def _parse_query_params(scope: Scope) -> dict[str, list[str]]:
    """Parse query string from ASGI scope into parameter dictionary.

    Returns an empty dict if query_string is missing or empty.
    """
    query_string = scope.get("query_string", b"").decode(errors="replace")
    return parse_qs(query_string)


def _extract_headers(scope: Scope) -> dict[str, str]:
    """Collect request headers with lower-cased names.

    Repeated headers are joined with ", " as HTTP allows.
    """
    headers: dict[str, str] = {}
    raw: list[tuple[bytes, bytes]] = scope.get("headers", [])
    for name, value in raw:
        key = name.decode("latin-1").lower()
        text = value.decode("latin-1")
        headers[key] = f"{headers[key]}, {text}" if key in headers else text
    return headers


def _extract_origin(scope: Scope, headers: dict[str, str]) -> str:
    """Caller address: first X-Forwarded-For hop, else the socket peer."""
    forwarded = headers.get("x-forwarded-for", "").split(",")[0].strip()
    if forwarded:
        return forwarded
    client = scope.get("client")
    if client:
        return str(client[0])
    return "unknown"


def _request_url(scope: Scope) -> str:
    """Path plus query string, as the sender addressed it."""
    query = scope.get("query_string", b"").decode(errors="replace")
    return f"{scope['path']}?{query}" if query else scope["path"]


async def _read_body(receive: Receive) -> bytes:
    """Read the full request body from the ASGI receive channel."""
    chunks: list[bytes] = []
    more_body = True
    while more_body:
        message = await receive()
        if message["type"] == "http.disconnect":
            break
        chunks.append(message.get("body", b""))
        more_body = message.get("more_body", False)
    return b"".join(chunks)


def _decode_body(raw: bytes, content_type: str) -> Any:
    """Decode a webhook body according to its content type.

    JSON bodies are parsed, form bodies become a dict, anything else is
    kept as text. An empty body decodes to ``{}``.

    Raises:
        BadRequest: If a JSON body cannot be parsed.
    """
    if not raw.strip():
        return {}
    content_type = content_type.lower()
    if "json" in content_type:
        try:
            return json.loads(raw)
        except ValueError as e:
            raise BadRequest(f"Invalid JSON body: {e}") from e
    if "application/x-www-form-urlencoded" in content_type:
        form = parse_qs(raw.decode("utf-8", errors="replace"))
        return {k: v[0] if len(v) == 1 else v for k, v in form.items()}
    return raw.decode("utf-8", errors="replace")


def _route_path(path: str, api_prefix: str) -> str:
    """Strip the API prefix and trailing slash from a request path."""
    if api_prefix and (path == api_prefix or path.startswith(api_prefix + "/")):
        path = path[len(api_prefix) :]
    if len(path) > 1:
        path = path.rstrip("/")
    return path or "/"


async def _send_response(
    send: Send, status: int, content_type: str | None, body: str
) -> None:
    """Send an HTTP response with CORS headers and body."""
    headers = list(_CORS_HEADER_BYTES)
    if content_type is not None:
        headers.append((b"content-type", content_type.encode()))
    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": body.encode()})


async def _send_json(send: Send, status: int, payload: Any) -> None:
    await _send_response(send, status, "application/json", json.dumps(payload))


async def _handle_lifespan(
    receive: Receive,
    send: Send,
    on_startup: LifespanHook | None,
    on_shutdown: LifespanHook | None,
) -> None:
    """Run the startup and shutdown hooks for ASGI lifespan messages."""
    while True:
        message = await receive()
        if message["type"] == "lifespan.startup":
            try:
                if on_startup is not None:
                    await on_startup()
            except Exception as e:
                logger.exception("Startup hook failed")
                await send({"type": "lifespan.startup.failed", "message": str(e)})
                return
            await send({"type": "lifespan.startup.complete"})
        elif message["type"] == "lifespan.shutdown":
            try:
                if on_shutdown is not None:
                    await on_shutdown()
            except Exception as e:
                logger.exception("Shutdown hook failed")
                await send({"type": "lifespan.shutdown.failed", "message": str(e)})
                return
            await send({"type": "lifespan.shutdown.complete"})
            return


def create_asgi_app(
    aggregator: Aggregator,
    *,
    api_prefix: str = "/api",
    environment: str = "development",
    on_startup: LifespanHook | None = None,
    on_shutdown: LifespanHook | None = None,
) -> ASGIApp:
    """Create an ASGI app exposing the webhook sandbox endpoints.

    Routes are served both with and without ``api_prefix``:
    ``POST /webhook``, ``GET /webhooks``, ``GET /logs``, ``GET /info`` and
    ``GET /`` or ``/health``. A POST to any other path is recorded as a
    webhook too.

    Args:
        aggregator: Aggregator holding the recorded events and logs.
        api_prefix: Optional path prefix, e.g. "/api". Empty to disable.
        environment: Label reported by ``/info``.
        on_startup: Awaited on ASGI lifespan startup.
        on_shutdown: Awaited on ASGI lifespan shutdown.

    Returns:
        ASGI application callable.
    """
    api_prefix = api_prefix.rstrip("/")

    async def handle_webhook(scope: Scope, receive: Receive, send: Send) -> None:
        headers = _extract_headers(scope)
        raw = await _read_body(receive)
        try:
            body = _decode_body(raw, headers.get("content-type", ""))
        except BadRequest as e:
            await _send_json(send, 400, {"error": str(e)})
            return
        event = aggregator.record_event(
            origin=_extract_origin(scope, headers),
            path=_request_url(scope),
            method=scope["method"],
            headers=headers,
            body=body,
        )
        await _send_json(send, 200, webhook_payload(aggregator, event))

    async def handle_webhooks(scope: Scope, send: Send) -> None:
        params = _parse_query_params(scope)
        events = aggregator.query_events()
        await _send_json(send, 200, select_events(events, _parse_limit_param(params)))

    async def handle_logs(scope: Scope, send: Send) -> None:
        params = _parse_query_params(scope)
        entries = select_logs(
            aggregator.query_logs(),
            since=_parse_since_param(params),
            level=_parse_level_param(params),
            limit=_parse_limit_param(params),
        )
        if _parse_format_param(params) == "ndjson":
            await _send_response(send, 200, "application/x-ndjson", encode_logs(entries))
            return
        await _send_json(send, 200, logs_to_json(entries))

    async def dispatch(scope: Scope, receive: Receive, send: Send) -> None:
        method = scope["method"].upper()
        route = _route_path(scope["path"], api_prefix)

        if method == "OPTIONS":
            await _send_response(send, 200, None, "")
            return

        expected = _ROUTE_METHODS.get(route)
        if expected is None:
            # dynamic webhook endpoints
            if method == "POST":
                await handle_webhook(scope, receive, send)
                return
            await _send_json(
                send, 404, {"error": f"API endpoint not found: {scope['path']}"}
            )
            return
        if method != expected:
            await _send_json(send, 405, {"error": "Method not allowed"})
            return

        if route == "/webhook":
            await handle_webhook(scope, receive, send)
        elif route == "/webhooks":
            await handle_webhooks(scope, send)
        elif route == "/logs":
            await handle_logs(scope, send)
        elif route == "/info":
            await _send_json(send, 200, info_payload(aggregator, environment))
        else:
            await _send_json(send, 200, health_payload(aggregator, api_prefix))

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await _handle_lifespan(receive, send, on_startup, on_shutdown)
            return
        if scope["type"] != "http":
            return
        try:
            await dispatch(scope, receive, send)
        except Exception:
            logger.exception("Error handling %s %s", scope["method"], scope["path"])
            await _send_json(send, 500, {"error": "Internal server error"})

    return app
