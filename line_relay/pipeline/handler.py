"""Per-event processing: classify, generate, reply, fall back."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import StrEnum
from typing import TYPE_CHECKING

from line_relay.errors import AssetError, GenerationError, GenerationUnavailableError, ReplyError
from line_relay.log_context import set_log_context
from line_relay.pipeline.replies import (
    API_KEY_MISSING_REPLY,
    APOLOGY_REPLY,
    pick_fallback,
    truncate_reply,
)
from line_relay.pipeline.router import KeywordRouter, Route, RouteKind
from line_relay.webhook.models import OutboundReply

if TYPE_CHECKING:
    from line_relay.config import RelayConfig
    from line_relay.generation.assets import ImageStore
    from line_relay.generation.client import GeminiClient
    from line_relay.line.client import LineClient
    from line_relay.webhook.models import InboundEvent

logger = logging.getLogger(__name__)


class EventOutcome(StrEnum):
    """Terminal state of one inbound event."""

    REPLIED = "replied"
    FALLBACK_REPLIED = "fallback_replied"
    DROPPED = "dropped"
    IGNORED = "ignored"


class EventHandler:
    """Turns inbound events into exactly one reply attempt each.

    Events of one delivery are processed sequentially.  A failure in one
    event is logged and does not stop the remaining ones.
    """

    def __init__(
        self,
        config: RelayConfig,
        line: LineClient,
        generator: GeminiClient,
        images: ImageStore,
    ) -> None:
        self._config = config
        self._line = line
        self._generator = generator
        self._images = images
        self._router = KeywordRouter(config)

    async def handle_events(self, events: Sequence[InboundEvent]) -> list[EventOutcome]:
        outcomes: list[EventOutcome] = []
        for event in events:
            try:
                outcome = await self.handle_event(event)
            except Exception:
                logger.exception("Unhandled error while processing event")
                outcome = EventOutcome.DROPPED
            outcomes.append(outcome)
        return outcomes

    async def handle_event(self, event: InboundEvent) -> EventOutcome:
        set_log_context(
            operation="ev",
            event_id=event.webhook_event_id,
            user_id=event.user_id,
        )
        text = event.text
        if text is None:
            logger.debug(
                "Ignoring event type=%s message_type=%s",
                event.type,
                event.message.type if event.message else None,
            )
            return EventOutcome.IGNORED
        if not event.reply_token:
            logger.warning("Dropping text message without reply token")
            return EventOutcome.DROPPED

        route = self._router.route(text)
        logger.info("Message classified route=%s chars=%d", route.kind, len(text))

        reply = await self.build_reply(route, text)
        return await self._dispatch(event.reply_token, reply)

    async def build_reply(self, route: Route, text: str) -> OutboundReply:
        """Produce the reply for *route*; generation failures become canned text."""
        if route.reply is not None:
            return OutboundReply.text_reply(truncate_reply(route.reply))
        if route.kind is RouteKind.GENERATE_IMAGE:
            return await self._image_reply(route.prompt or text, text)
        return OutboundReply.text_reply(truncate_reply(await self._generated_text(text)))

    async def _generated_text(self, text: str) -> str:
        try:
            return await self._generator.generate_text(text)
        except GenerationUnavailableError:
            logger.warning("Generation skipped: API key not configured")
            return API_KEY_MISSING_REPLY
        except GenerationError as exc:
            logger.warning("Text generation failed, using fallback: %s", exc)
            return pick_fallback(text)

    async def _image_reply(self, prompt: str, text: str) -> OutboundReply:
        try:
            image = await self._generator.generate_image(prompt)
            asset = await self._images.save(image.data, image.mime_type)
        except GenerationUnavailableError:
            logger.warning("Image generation skipped: API key not configured")
            return OutboundReply.text_reply(API_KEY_MISSING_REPLY)
        except (GenerationError, AssetError) as exc:
            logger.warning("Image generation failed, using fallback: %s", exc)
            return OutboundReply.text_reply(pick_fallback(text))
        return OutboundReply.image_reply(asset.url)

    async def _dispatch(self, reply_token: str, reply: OutboundReply) -> EventOutcome:
        try:
            await self._line.reply(reply_token, [reply])
        except ReplyError as exc:
            logger.warning("Reply failed (status=%s), sending apology: %s", exc.status, exc)
        else:
            logger.info("Reply sent type=%s", reply.type)
            return EventOutcome.REPLIED

        try:
            await self._line.reply(reply_token, [OutboundReply.text_reply(APOLOGY_REPLY)])
        except ReplyError as exc:
            logger.error("Fallback reply failed, giving up: %s", exc)  # noqa: TRY400
            return EventOutcome.DROPPED
        logger.info("Fallback reply sent")
        return EventOutcome.FALLBACK_REPLIED
