"""Integration tests for the ASGI sandbox app."""

import json

import pytest

from tests.support import FakeClock
from webhooksandbox.adapters.frameworks.asgi import create_asgi_app
from webhooksandbox.core.aggregator import Aggregator

pytestmark = pytest.mark.asgi


@pytest.fixture
def app(aggregator: Aggregator):
    """ASGI app over the shared test aggregator."""
    return create_asgi_app(aggregator, environment="test")


class TestWebhookEndpoint:
    """Tests for POST /api/webhook."""

    async def test_json_body_is_recorded(
        self, app, aggregator: Aggregator, clock: FakeClock, asgi_test_client
    ) -> None:
        async with asgi_test_client(app) as client:
            response = await client.post(
                "/api/webhook",
                json={"x": 1},
                headers={"X-Forwarded-For": "203.0.113.5, 10.0.0.1"},
            )

        assert response.status_code == 200
        payload = response.json()
        assert payload["body"] == {"x": 1}
        assert payload["origin"] == "203.0.113.5"
        assert payload["url"] == "/api/webhook"
        assert payload["timestamp"] == clock.now
        assert payload["totalWebhooks"] == 1
        (event,) = aggregator.query_events()
        assert event.body == {"x": 1}
        assert aggregator.last_request == clock.now
        assert aggregator.query_logs()[-1].message == (
            "Webhook received from 203.0.113.5 on /api/webhook"
        )

    async def test_origin_falls_back_to_client_address(
        self, app, asgi_test_client
    ) -> None:
        async with asgi_test_client(app) as client:
            response = await client.post("/api/webhook", json={})

        assert response.json()["origin"] == "127.0.0.1"

    async def test_form_and_text_bodies(self, app, aggregator: Aggregator, asgi_test_client) -> None:
        async with asgi_test_client(app) as client:
            await client.post("/api/webhook", data={"a": "1"})
            await client.post(
                "/api/webhook", content="plain text", headers={"content-type": "text/plain"}
            )

        bodies = [e.body for e in aggregator.query_events()]
        assert bodies == [{"a": "1"}, "plain text"]

    async def test_empty_body_is_empty_object(self, app, asgi_test_client) -> None:
        async with asgi_test_client(app) as client:
            response = await client.post("/api/webhook")

        assert response.json()["body"] == {}

    async def test_invalid_json_is_rejected(
        self, app, aggregator: Aggregator, asgi_test_client
    ) -> None:
        async with asgi_test_client(app) as client:
            response = await client.post(
                "/api/webhook",
                content="{not json",
                headers={"content-type": "application/json"},
            )

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid JSON body")
        assert aggregator.query_events() == ()

    async def test_any_other_post_path_is_recorded(
        self, app, aggregator: Aggregator, asgi_test_client
    ) -> None:
        async with asgi_test_client(app) as client:
            response = await client.post("/stripe/events?attempt=2", json={"ok": True})

        assert response.status_code == 200
        assert aggregator.query_events()[0].url == "/stripe/events?attempt=2"

    async def test_headers_and_user_agent_kept(
        self, app, aggregator: Aggregator, asgi_test_client
    ) -> None:
        async with asgi_test_client(app) as client:
            await client.post(
                "/api/webhook", json={}, headers={"User-Agent": "GitHub-Hookshot/1"}
            )

        event = aggregator.query_events()[0]
        assert event.user_agent == "GitHub-Hookshot/1"
        assert event.headers["content-type"] == "application/json"


class TestReadEndpoints:
    """Tests for the GET endpoints."""

    async def test_info_before_any_webhook(self, app, asgi_test_client) -> None:
        async with asgi_test_client(app) as client:
            response = await client.get("/api/info")

        payload = response.json()
        assert response.status_code == 200
        assert payload["lastRequest"] is None
        assert payload["uptime"] >= 0
        assert payload["environment"] == "test"
        assert payload["totalWebhooks"] == 0

    async def test_info_after_webhook(
        self, app, clock: FakeClock, asgi_test_client
    ) -> None:
        async with asgi_test_client(app) as client:
            clock.advance(2000)
            await client.post("/api/webhook", json={})
            clock.advance(500)
            payload = (await client.get("/api/info")).json()

        assert payload["uptime"] == 2500
        assert payload["lastRequest"] == clock.now - 500

    async def test_webhooks_most_recent_last(
        self, app, aggregator: Aggregator, asgi_test_client
    ) -> None:
        async with asgi_test_client(app) as client:
            for i in range(3):
                await client.post("/api/webhook", json={"n": i})
            all_events = (await client.get("/api/webhooks")).json()
            latest = (await client.get("/api/webhooks?limit=1")).json()

        assert [e["body"]["n"] for e in all_events] == [0, 1, 2]
        assert set(all_events[0]) == {
            "url", "origin", "body", "time", "headers", "method", "userAgent"
        }
        assert [e["body"]["n"] for e in latest] == [2]

    async def test_webhooks_capped_at_capacity(
        self, app, aggregator: Aggregator, asgi_test_client
    ) -> None:
        async with asgi_test_client(app) as client:
            for i in range(aggregator.events_capacity + 2):
                await client.post("/api/webhook", json={"n": i})
            events = (await client.get("/api/webhooks")).json()

        assert len(events) == aggregator.events_capacity
        assert events[0]["body"]["n"] == 2

    async def test_logs_filters(
        self, app, aggregator: Aggregator, clock: FakeClock, asgi_test_client
    ) -> None:
        aggregator.log("info", "first")
        clock.advance(10)
        aggregator.log("error", "second")
        clock.advance(10)
        aggregator.log("info", "third")

        async with asgi_test_client(app) as client:
            errors = (await client.get("/api/logs?level=error")).json()
            recent = (await client.get(f"/api/logs?since={clock.now - 10}")).json()
            limited = (await client.get("/api/logs?limit=2")).json()

        assert [e["message"] for e in errors] == ["second"]
        assert errors[0]["color"] == "red"
        assert [e["message"] for e in recent] == ["third"]
        assert [e["message"] for e in limited] == ["second", "third"]

    async def test_logs_as_ndjson(
        self, app, aggregator: Aggregator, asgi_test_client
    ) -> None:
        aggregator.log("info", "a")
        aggregator.log("warn", "b")

        async with asgi_test_client(app) as client:
            response = await client.get("/api/logs?format=ndjson")

        assert response.headers["content-type"] == "application/x-ndjson"
        lines = response.text.strip().split("\n")
        assert [json.loads(line)["message"] for line in lines] == ["a", "b"]

    @pytest.mark.parametrize("path", ["/api", "/api/", "/api/health", "/health", "/"])
    async def test_health(self, app, path: str, asgi_test_client) -> None:
        async with asgi_test_client(app) as client:
            response = await client.get(path)

        payload = response.json()
        assert response.status_code == 200
        assert payload["status"] == "ok"
        assert payload["message"] == "Webhook Sandbox API is running"
        assert "/api/logs" in payload["endpoints"]

    async def test_unprefixed_routes(self, app, asgi_test_client) -> None:
        async with asgi_test_client(app) as client:
            response = await client.get("/info")

        assert response.status_code == 200


class TestProtocol:
    """Tests for CORS, status codes and errors."""

    async def test_cors_headers_on_every_response(self, app, asgi_test_client) -> None:
        async with asgi_test_client(app) as client:
            ok = await client.get("/api/info")
            missing = await client.get("/api/nope")

        for response in (ok, missing):
            assert response.headers["access-control-allow-origin"] == "*"
            assert "POST" in response.headers["access-control-allow-methods"]
            assert "Content-Type" in response.headers["access-control-allow-headers"]

    async def test_preflight_returns_200(self, app, asgi_test_client) -> None:
        async with asgi_test_client(app) as client:
            response = await client.options("/api/webhook")

        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == "*"

    async def test_wrong_method_is_405(self, app, asgi_test_client) -> None:
        async with asgi_test_client(app) as client:
            get_webhook = await client.get("/api/webhook")
            post_logs = await client.post("/api/logs", json={})

        assert get_webhook.status_code == 405
        assert post_logs.status_code == 405
        assert get_webhook.json() == {"error": "Method not allowed"}

    async def test_unknown_get_is_404(self, app, asgi_test_client) -> None:
        async with asgi_test_client(app) as client:
            response = await client.get("/api/unknown")

        assert response.status_code == 404
        assert response.json() == {"error": "API endpoint not found: /api/unknown"}

    async def test_handler_exception_is_500(self, clock: FakeClock, asgi_test_client) -> None:
        class ExplodingAggregator(Aggregator):
            def query_events(self):
                raise RuntimeError("boom")

        app = create_asgi_app(ExplodingAggregator(clock=clock))

        async with asgi_test_client(app) as client:
            response = await client.get("/api/webhooks")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}

    async def test_custom_prefix(self, aggregator: Aggregator, asgi_test_client) -> None:
        app = create_asgi_app(aggregator, api_prefix="/hooks/")

        async with asgi_test_client(app) as client:
            response = await client.get("/hooks/info")
            health = await client.get("/hooks")

        assert response.status_code == 200
        assert "/hooks/webhook" in health.json()["endpoints"]


class TestLifespan:
    """Tests for ASGI lifespan handling."""

    async def test_hooks_run_in_order(self, aggregator: Aggregator, asgi_send_capture) -> None:
        calls: list[str] = []

        async def on_startup() -> None:
            calls.append("startup")

        async def on_shutdown() -> None:
            calls.append("shutdown")

        app = create_asgi_app(aggregator, on_startup=on_startup, on_shutdown=on_shutdown)
        messages = iter([{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}])

        async def receive():
            return next(messages)

        send, sent = asgi_send_capture
        await app({"type": "lifespan"}, receive, send)

        assert calls == ["startup", "shutdown"]
        assert [m["type"] for m in sent] == [
            "lifespan.startup.complete",
            "lifespan.shutdown.complete",
        ]

    async def test_failed_startup_reported(
        self, aggregator: Aggregator, asgi_send_capture
    ) -> None:
        async def on_startup() -> None:
            raise RuntimeError("no disk")

        app = create_asgi_app(aggregator, on_startup=on_startup)

        async def receive():
            return {"type": "lifespan.startup"}

        send, sent = asgi_send_capture
        await app({"type": "lifespan"}, receive, send)

        assert sent == [{"type": "lifespan.startup.failed", "message": "no disk"}]
