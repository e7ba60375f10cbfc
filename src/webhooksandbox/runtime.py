"""Process wiring: builds the sandbox context and serves it with uvicorn.

The SandboxContext is created by the entry point and handed to the HTTP
app; nothing in the package keeps module-level state.
"""

import asyncio
import logging
import sqlite3
from dataclasses import dataclass
from typing import TextIO

import uvicorn

from webhooksandbox.adapters.frameworks.asgi import ASGIApp, create_asgi_app
from webhooksandbox.adapters.logging import SandboxHandler
from webhooksandbox.adapters.sinks import AppendFileSink, ConsoleSink, SnapshotSink
from webhooksandbox.adapters.storage import SQLiteSnapshotStorage, open_snapshot_storage
from webhooksandbox.config import Settings, load_settings
from webhooksandbox.core.aggregator import Aggregator
from webhooksandbox.core.clock import Clock, system_clock
from webhooksandbox.core.errors import SnapshotDecodeError
from webhooksandbox.core.models import Level
from webhooksandbox.core.ports import SnapshotStoragePort
from webhooksandbox.core.scheduling import AsyncioScheduler

logger = logging.getLogger(__name__)

# uvicorn reports startup, shutdown and server errors here
SERVER_LOGGER = "uvicorn.error"


@dataclass
class SandboxContext:
    """Everything one sandbox process owns.

    Attributes:
        settings: Configuration the context was built from.
        aggregator: The event/log store served over HTTP.
        scheduler: Scheduler driving the debounce timers.
        storage: Snapshot storage, if durable state is configured.
        log_handler: Bridge feeding uvicorn server logs into the aggregator.
    """

    settings: Settings
    aggregator: Aggregator
    scheduler: AsyncioScheduler
    storage: SnapshotStoragePort | None = None
    log_handler: SandboxHandler | None = None

    async def start(self) -> None:
        """Bind to the running loop and hydrate from the stored snapshot.

        An unreadable snapshot is reported and the sandbox starts empty.
        """
        self.scheduler.bind(asyncio.get_running_loop())
        if self.log_handler is not None:
            logging.getLogger(SERVER_LOGGER).addHandler(self.log_handler)
        if self.storage is not None:
            await self._hydrate(self.storage)
        self.aggregator.log(
            Level.INFO,
            f"Webhook sandbox listening on {self.settings.base_url}"
            f"{self.settings.api_prefix}",
        )

    async def _hydrate(self, storage: SnapshotStoragePort) -> None:
        try:
            state = await storage.load()
        except (SnapshotDecodeError, OSError, sqlite3.Error):
            logger.warning("Could not load stored snapshot; starting empty", exc_info=True)
            return
        if state is None:
            return
        self.aggregator.restore(state)
        logger.info(
            "Restored %d webhooks and %d log entries",
            len(self.aggregator.query_events()),
            len(self.aggregator.query_logs()),
        )

    async def stop(self) -> None:
        """Flush pending durable writes, bounded by the shutdown timeout."""
        flushed = await self.aggregator.close(self.settings.shutdown_timeout)
        if not flushed:
            logger.warning("Shutdown flush incomplete; recent entries may be lost")
        if self.log_handler is not None:
            logging.getLogger(SERVER_LOGGER).removeHandler(self.log_handler)
        if isinstance(self.storage, SQLiteSnapshotStorage):
            await self.storage.close()


def build_context(
    settings: Settings | None = None,
    *,
    clock: Clock = system_clock,
    stream: TextIO | None = None,
) -> SandboxContext:
    """Wire an aggregator with the sinks selected by ``settings``.

    Args:
        settings: Configuration. Defaults to ``load_settings()``.
        clock: Timestamp source for the aggregator.
        stream: Console sink stream. Defaults to stdout.
    """
    settings = settings or load_settings()
    aggregator = Aggregator(
        events_capacity=settings.events_capacity,
        logs_capacity=settings.logs_capacity,
        clock=clock,
    )
    if settings.console:
        aggregator.add_sink(ConsoleSink(stream))

    scheduler = AsyncioScheduler()
    storage: SnapshotStoragePort | None = None
    if settings.state_path is not None:
        storage = open_snapshot_storage(settings.state_path)
        aggregator.add_durable_sink(
            SnapshotSink(storage, aggregator.snapshot), scheduler, settings.flush_delay
        )
    if settings.log_file is not None:
        aggregator.add_durable_sink(
            AppendFileSink(settings.log_file), scheduler, settings.flush_delay
        )
    log_handler = SandboxHandler(aggregator) if settings.capture_server_logs else None
    return SandboxContext(
        settings=settings,
        aggregator=aggregator,
        scheduler=scheduler,
        storage=storage,
        log_handler=log_handler,
    )


def create_app(
    settings: Settings | None = None,
    context: SandboxContext | None = None,
) -> ASGIApp:
    """Create the ASGI app for a context, building one if not given."""
    context = context or build_context(settings)
    return create_asgi_app(
        context.aggregator,
        api_prefix=context.settings.api_prefix,
        environment=context.settings.environment,
        on_startup=context.start,
        on_shutdown=context.stop,
    )


def configure_logging(level: str = "INFO") -> None:
    """Configure stdlib logging for diagnostics."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    """Run the sandbox under uvicorn until interrupted."""
    settings = load_settings()
    configure_logging(settings.log_level)
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, lifespan="on")
