"""Application wiring: builds process-wide clients and runs the server."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from typing import TYPE_CHECKING

import aiohttp

from line_relay.cleanup import AssetCleanupObserver
from line_relay.generation.assets import ImageStore
from line_relay.generation.client import GeminiClient
from line_relay.line.client import LineClient
from line_relay.pipeline.handler import EventHandler
from line_relay.webhook.server import WebhookServer

if TYPE_CHECKING:
    from line_relay.config import RelayConfig

logger = logging.getLogger(__name__)


class RelayApp:
    """Owns the shared HTTP session, API clients, server and cleanup loop.

    Everything is constructed in `start()` and read-only afterwards.
    """

    def __init__(self, config: RelayConfig) -> None:
        self._config = config
        self._session: aiohttp.ClientSession | None = None
        self._server: WebhookServer | None = None
        self._cleanup = AssetCleanupObserver(config.assets)
        self._handler: EventHandler | None = None

    @property
    def handler(self) -> EventHandler | None:
        return self._handler

    @property
    def server(self) -> WebhookServer | None:
        return self._server

    async def start(self) -> None:
        self._session = aiohttp.ClientSession()
        images = ImageStore(self._config.assets)
        images.ensure_directory()

        line = LineClient(self._config.line, self._session)
        if not line.is_configured:
            logger.warning("LINE_CHANNEL_ACCESS_TOKEN not set: replies will fail")
        generator = GeminiClient(self._config.generation, self._session)
        if not generator.is_configured:
            logger.warning("GEMINI_API_KEY not set: generation answers with a notice")

        self._handler = EventHandler(self._config, line, generator, images)
        self._server = WebhookServer(self._config)
        self._server.set_dispatch_handler(self._handler.handle_events)
        await self._server.start()
        await self._cleanup.start()

    async def shutdown(self) -> None:
        await self._cleanup.stop()
        if self._server:
            await self._server.stop()
            self._server = None
        if self._session:
            await self._session.close()
            self._session = None
        logger.info("line-relay shut down")

    async def run(self) -> None:
        """Start, then block until SIGINT/SIGTERM."""
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        if sys.platform != "win32":
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, stop.set)
        await self.start()
        try:
            await stop.wait()
        finally:
            logger.info("Shutting down...")
            await self.shutdown()
