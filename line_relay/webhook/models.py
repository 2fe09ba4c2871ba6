"""Webhook payload and reply message models."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


def _str_field(value: Any) -> str | None:
    """Keep *value* only if it is a non-empty string."""
    return value if isinstance(value, str) and value else None


@dataclass(frozen=True)
class EventSource:
    """Origin of an inbound event (user, group or room)."""

    type: str = "user"
    user_id: str | None = None
    group_id: str | None = None
    room_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EventSource:
        return cls(
            type=str(data.get("type", "user")),
            user_id=_str_field(data.get("userId")),
            group_id=_str_field(data.get("groupId")),
            room_id=_str_field(data.get("roomId")),
        )


@dataclass(frozen=True)
class EventMessage:
    type: str
    text: str | None = None
    id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EventMessage:
        text = data.get("text")
        return cls(
            type=str(data.get("type", "")),
            text=text if isinstance(text, str) else None,
            id=_str_field(data.get("id")),
        )


@dataclass(frozen=True)
class InboundEvent:
    """A single entry of the webhook ``events`` array."""

    type: str
    message: EventMessage | None = None
    reply_token: str | None = None
    source: EventSource | None = None
    webhook_event_id: str | None = None
    timestamp: int | None = None

    @property
    def is_text_message(self) -> bool:
        return self.text is not None

    @property
    def text(self) -> str | None:
        """Text of a text-message event; None for every other event."""
        if self.type != "message" or self.message is None or self.message.type != "text":
            return None
        return self.message.text

    @property
    def user_id(self) -> str | None:
        return self.source.user_id if self.source else None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InboundEvent:
        message = data.get("message")
        source = data.get("source")
        timestamp = data.get("timestamp")
        return cls(
            type=str(data.get("type", "")),
            message=EventMessage.from_dict(message) if isinstance(message, dict) else None,
            reply_token=_str_field(data.get("replyToken")),
            source=EventSource.from_dict(source) if isinstance(source, dict) else None,
            webhook_event_id=_str_field(data.get("webhookEventId")),
            timestamp=timestamp if isinstance(timestamp, int) else None,
        )


def parse_events(payload: Any) -> list[InboundEvent]:
    """Extract events from a decoded webhook body.

    Returns an empty list for anything that is not ``{"events": [...]}``
    (verification pings, malformed bodies).  Non-object entries are skipped.
    """
    if not isinstance(payload, dict):
        return []
    raw_events = payload.get("events")
    if not isinstance(raw_events, list):
        return []
    events: list[InboundEvent] = []
    for index, raw in enumerate(raw_events):
        if not isinstance(raw, dict):
            logger.debug("Skipping malformed event at index %d", index)
            continue
        events.append(InboundEvent.from_dict(raw))
    return events


@dataclass(frozen=True)
class OutboundReply:
    """A reply message in LINE message-object form."""

    type: str  # "text" | "image"
    text: str | None = None
    original_content_url: str | None = None
    preview_image_url: str | None = None

    @classmethod
    def text_reply(cls, text: str) -> OutboundReply:
        return cls(type="text", text=text)

    @classmethod
    def image_reply(cls, url: str, preview_url: str | None = None) -> OutboundReply:
        return cls(type="image", original_content_url=url, preview_image_url=preview_url or url)

    def to_dict(self) -> dict[str, Any]:
        if self.type == "image":
            return {
                "type": "image",
                "originalContentUrl": self.original_content_url,
                "previewImageUrl": self.preview_image_url,
            }
        return {"type": "text", "text": self.text or ""}
