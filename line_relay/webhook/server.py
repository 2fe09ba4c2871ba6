"""Webhook HTTP server: aiohttp-based ingress for LINE deliveries."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, Any

from aiohttp import web

from line_relay.log_context import set_log_context
from line_relay.webhook.models import InboundEvent, parse_events
from line_relay.webhook.signature import SIGNATURE_HEADER, validate_signature

if TYPE_CHECKING:
    from line_relay.config import RelayConfig

logger = logging.getLogger(__name__)

EventDispatchCallback = Callable[[Sequence[InboundEvent]], Awaitable[Any]]

ROOT_TEXT = "LINE Bot Server is running!"
WEBHOOK_INFO_TEXT = "LINE webhook endpoint. Deliveries are accepted via POST."
ACK_TEXT = "OK"


class WebhookServer:
    """HTTP server accepting LINE webhook deliveries.

    Every ``POST /webhook`` is answered with 200 before its events are
    processed; processing runs in a tracked background task.

    Routes:
    - ``GET  /``               -- Status text.
    - ``GET  /health``         -- JSON health check.
    - ``GET  /webhook``        -- Verification helper text.
    - ``POST /webhook``        -- LINE event intake.
    - ``GET  /temp/{file}``    -- Generated images.
    """

    def __init__(self, config: RelayConfig) -> None:
        self._config = config
        self._dispatch: EventDispatchCallback | None = None
        self._runner: web.AppRunner | None = None
        self._background_tasks: set[asyncio.Task[None]] = set()

    @property
    def pending_tasks(self) -> frozenset[asyncio.Task[None]]:
        return frozenset(self._background_tasks)

    def set_dispatch_handler(self, handler: EventDispatchCallback) -> None:
        """Set the callback invoked with the events of each accepted delivery."""
        self._dispatch = handler

    def build_app(self) -> web.Application:
        """Create the aiohttp application with all routes registered."""
        app = web.Application(client_max_size=self._config.server.max_body_bytes)
        app.router.add_get("/", self._handle_root)
        app.router.add_get("/health", self._handle_health)
        app.router.add_get("/webhook", self._handle_webhook_info)
        app.router.add_post("/webhook", self._handle_webhook)

        assets = self._config.assets
        assets.path.mkdir(parents=True, exist_ok=True)
        app.router.add_static(assets.url_path, assets.path, follow_symlinks=False)
        return app

    async def start(self) -> None:
        """Start listening on the configured host and port."""
        if not self._config.line.verifies_signature:
            logger.warning("LINE_CHANNEL_SECRET not set: webhook signatures are NOT verified")
        self._runner = web.AppRunner(self.build_app(), access_log=None)
        await self._runner.setup()
        server = self._config.server
        site = web.TCPSite(self._runner, server.host, server.port)
        await site.start()
        logger.info("Webhook server listening on %s:%d", server.host, server.port)

    async def stop(self) -> None:
        """Shut down the server, giving in-flight event processing a grace period."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
        await self.drain(self._config.server.shutdown_grace_seconds)
        logger.info("Webhook server stopped")

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for background processing; cancel whatever outlives *timeout*."""
        if not self._background_tasks:
            return
        _done, pending = await asyncio.wait(set(self._background_tasks), timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            logger.warning("Cancelled %d unfinished event task(s)", len(pending))
            await asyncio.gather(*pending, return_exceptions=True)

    # -- Handlers --

    async def _handle_root(self, _request: web.Request) -> web.Response:
        return web.Response(text=ROOT_TEXT)

    async def _handle_health(self, _request: web.Request) -> web.Response:
        return web.json_response({"status": "ok", "environment": self._config.environment})

    async def _handle_webhook_info(self, _request: web.Request) -> web.Response:
        return web.Response(text=WEBHOOK_INFO_TEXT)

    async def _handle_webhook(self, request: web.Request) -> web.Response:
        set_log_context(operation="wh")
        raw_body = await request.read()
        logger.info("Webhook received (%d bytes)", len(raw_body))
        # Every outcome after the body is read is a 200: LINE retries anything else.
        try:
            self._accept(raw_body, request.headers.get(SIGNATURE_HEADER, ""))
        except Exception:
            logger.exception("Webhook intake failed, acknowledging anyway")
        return web.Response(text=ACK_TEXT)

    def _accept(self, raw_body: bytes, signature: str) -> None:
        """Validate and parse one delivery, scheduling its events if any."""
        line = self._config.line
        if line.verifies_signature and not validate_signature(
            raw_body, signature, line.channel_secret
        ):
            logger.warning("Webhook dropped: invalid signature")
            return

        try:
            payload: Any = json.loads(raw_body) if raw_body else None
        except (ValueError, RecursionError):
            logger.warning("Webhook ignored: body is not decodable JSON")
            return

        events = parse_events(payload)
        if not events:
            logger.info("Webhook without events (verification ping)")
            return

        logger.debug("Webhook accepted with %d event(s)", len(events))
        if self._dispatch:
            task = asyncio.create_task(self._safe_dispatch(events))
            self._background_tasks.add(task)
            task.add_done_callback(self._background_tasks.discard)

    async def _safe_dispatch(self, events: Sequence[InboundEvent]) -> None:
        """Run dispatch in a task with exception protection."""
        if self._dispatch is None:
            return
        try:
            await self._dispatch(events)
        except Exception:
            logger.exception("Event dispatch error (%d event(s))", len(events))
