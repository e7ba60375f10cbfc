"""Shared test fixtures for all test modules."""

from pathlib import Path

import httpx
import pytest

from tests.support import FakeClock, ManualScheduler, RecordingDurableSink
from webhooksandbox.core.aggregator import Aggregator


@pytest.fixture
def clock() -> FakeClock:
    """Settable clock starting at a fixed epoch-millisecond value."""
    return FakeClock()


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Scheduler driven by simulated time."""
    return ManualScheduler()


@pytest.fixture
def durable_sink(scheduler: ManualScheduler) -> RecordingDurableSink:
    """Durable sink recording batches and their simulated flush times."""
    return RecordingDurableSink(scheduler)


@pytest.fixture
def aggregator(clock: FakeClock) -> Aggregator:
    """Aggregator with small capacities and no sinks."""
    return Aggregator(events_capacity=5, logs_capacity=10, clock=clock)


@pytest.fixture
def state_json_path(tmp_path: Path) -> Path:
    """Provide a temporary JSON snapshot path."""
    return tmp_path / "state" / "webhooks.json"


@pytest.fixture
def state_db_path(tmp_path: Path) -> str:
    """Provide a temporary SQLite snapshot path."""
    return str(tmp_path / "state.db")


# === ASGI Test Fixtures ===


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            app = create_asgi_app(aggregator)
            async with asgi_test_client(app) as client:
                response = await client.get("/api/info")
    """

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client


@pytest.fixture
def asgi_send_capture():
    """Fixture that returns a send callable and a messages list for capture."""

    messages: list[dict[str, object]] = []

    async def send(message: dict[str, object]) -> None:
        """Capture ASGI messages."""
        messages.append(message)

    return send, messages
