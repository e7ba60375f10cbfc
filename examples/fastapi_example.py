"""Example FastAPI application embedding the webhook sandbox.

Run with:
    uvicorn examples.fastapi_example:app --reload

Endpoints:
    POST /api/webhook            - record a webhook and echo it back
    GET  /api/webhooks           - recent webhooks, most recent last
    GET  /api/webhooks?limit=<n> - only the n most recent
    GET  /api/logs               - recent log entries as JSON
    GET  /api/logs?format=ndjson - the same as NDJSON
    GET  /api/logs?level=<lvl>   - filtered by level (info, warn, error)
    GET  /api/info               - uptime and time of the last webhook

Persistence:
    Log entries are appended to ``sandbox.ndjson`` in batches, three
    seconds after the last entry of a burst.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from webhooksandbox.adapters.frameworks.fastapi import create_sandbox_router
from webhooksandbox.adapters.sinks import AppendFileSink, ConsoleSink
from webhooksandbox.core.aggregator import Aggregator
from webhooksandbox.core.scheduling import AsyncioScheduler

aggregator = Aggregator(sinks=[ConsoleSink()])
aggregator.add_durable_sink(AppendFileSink("sandbox.ndjson"), AsyncioScheduler())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    aggregator.log("info", "FastAPI sandbox example started")
    yield
    await aggregator.close(timeout=2.0)


app = FastAPI(title="Webhook Sandbox Example", lifespan=lifespan)

# Mount sandbox endpoints
app.include_router(create_sandbox_router(aggregator, prefix="/api"))


@app.get("/")
async def root() -> dict[str, str]:
    """Point visitors at the sandbox endpoints."""
    return {"message": "POST anything to /api/webhook, then GET /api/webhooks."}
