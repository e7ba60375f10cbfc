"""FastAPI adapter for the webhook sandbox endpoints."""

from typing import Any

from fastapi import APIRouter, Query, Request, Response
from fastapi.responses import JSONResponse

from webhooksandbox.adapters.frameworks.asgi import (
    BadRequest,
    _decode_body,
    _extract_headers,
    _extract_origin,
    _request_url,
)
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


def _json(payload: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(payload, status_code=status_code, headers=CORS_HEADERS)


def create_sandbox_router(
    aggregator: Aggregator,
    environment: str = "development",
    prefix: str = "",
) -> APIRouter:
    """Create a FastAPI router with the sandbox endpoints.

    Create it with ``prefix="/api"`` to match the standalone ASGI app.

    Args:
        aggregator: Aggregator holding the recorded events and logs.
        environment: Label reported by ``/info``.
        prefix: Path prefix for every route, also listed by ``/health``.

    Returns:
        APIRouter with /webhook, /webhooks, /logs, /info and /health.
    """
    prefix = prefix.rstrip("/")
    router = APIRouter(prefix=prefix)

    @router.post("/webhook")
    async def post_webhook(request: Request) -> Response:
        """Record a webhook and echo its receipt."""
        scope = request.scope
        headers = _extract_headers(scope)
        try:
            body = _decode_body(await request.body(), headers.get("content-type", ""))
        except BadRequest as e:
            return _json({"error": str(e)}, status_code=400)
        event = aggregator.record_event(
            origin=_extract_origin(scope, headers),
            path=_request_url(scope),
            method=request.method,
            headers=headers,
            body=body,
        )
        return _json(webhook_payload(aggregator, event))

    @router.get("/webhooks")
    async def get_webhooks(limit: str | None = Query(default=None)) -> Response:
        """Return retained webhooks, most recent last."""
        params = {"limit": [limit]} if limit is not None else {}
        events = aggregator.query_events()
        return _json(select_events(events, _parse_limit_param(params)))

    @router.get("/logs")
    async def get_logs(request: Request) -> Response:
        """Return retained log entries.

        Supports the ``since``, ``level``, ``limit`` and ``format`` query
        parameters.
        """
        params = {k: request.query_params.getlist(k) for k in request.query_params}
        entries = select_logs(
            aggregator.query_logs(),
            since=_parse_since_param(params),
            level=_parse_level_param(params),
            limit=_parse_limit_param(params),
        )
        if _parse_format_param(params) == "ndjson":
            return Response(
                content=encode_logs(entries),
                media_type="application/x-ndjson",
                headers=CORS_HEADERS,
            )
        return _json(logs_to_json(entries))

    @router.get("/info")
    async def get_info() -> Response:
        """Return uptime and the time of the last webhook."""
        return _json(info_payload(aggregator, environment))

    @router.get("/")
    @router.get("/health")
    async def get_health() -> Response:
        """Return a static status document."""
        return _json(health_payload(aggregator, prefix))

    return router


__all__ = ["create_sandbox_router"]
