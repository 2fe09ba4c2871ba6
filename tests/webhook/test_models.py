"""Tests for webhook payload parsing and reply serialization."""

from __future__ import annotations

from typing import Any

from line_relay.webhook.models import InboundEvent, OutboundReply, parse_events


def _text_event(text: str = "hi", **overrides: Any) -> dict[str, Any]:
    event: dict[str, Any] = {
        "type": "message",
        "message": {"type": "text", "id": "m1", "text": text},
        "replyToken": "T1",
        "source": {"type": "user", "userId": "U123"},
        "webhookEventId": "01ABC",
        "timestamp": 1700000000000,
    }
    event.update(overrides)
    return event


class TestParseEvents:
    def test_parses_text_event(self) -> None:
        (event,) = parse_events({"events": [_text_event("こんにちは")]})
        assert event.type == "message"
        assert event.message is not None
        assert event.message.text == "こんにちは"
        assert event.reply_token == "T1"
        assert event.user_id == "U123"
        assert event.webhook_event_id == "01ABC"
        assert event.timestamp == 1700000000000
        assert event.is_text_message is True

    def test_missing_events_key(self) -> None:
        assert parse_events({"destination": "U0"}) == []

    def test_empty_events(self) -> None:
        assert parse_events({"events": []}) == []

    def test_events_not_a_list(self) -> None:
        assert parse_events({"events": {"type": "message"}}) == []

    def test_payload_not_a_dict(self) -> None:
        assert parse_events([1, 2, 3]) == []
        assert parse_events(None) == []

    def test_skips_non_object_entries(self) -> None:
        events = parse_events({"events": ["junk", 3, _text_event()]})
        assert len(events) == 1

    def test_keeps_event_order(self) -> None:
        events = parse_events({"events": [_text_event("a"), _text_event("b")]})
        assert [e.message.text for e in events if e.message] == ["a", "b"]


class TestInboundEvent:
    def test_non_message_event(self) -> None:
        event = InboundEvent.from_dict({"type": "follow", "replyToken": "T"})
        assert event.is_text_message is False
        assert event.message is None

    def test_sticker_message_is_not_text(self) -> None:
        event = InboundEvent.from_dict(
            _text_event(message={"type": "sticker", "packageId": "1", "stickerId": "2"})
        )
        assert event.is_text_message is False
        assert event.text is None

    def test_text_property(self) -> None:
        assert InboundEvent.from_dict(_text_event("おはよう")).text == "おはよう"
        assert InboundEvent.from_dict({"type": "follow"}).text is None

    def test_text_message_without_text(self) -> None:
        event = InboundEvent.from_dict(_text_event(message={"type": "text"}))
        assert event.is_text_message is False

    def test_empty_reply_token_is_none(self) -> None:
        assert InboundEvent.from_dict(_text_event(replyToken="")).reply_token is None

    def test_group_source(self) -> None:
        event = InboundEvent.from_dict(
            _text_event(source={"type": "group", "groupId": "G1", "userId": "U9"})
        )
        assert event.source is not None
        assert event.source.group_id == "G1"
        assert event.user_id == "U9"

    def test_missing_source(self) -> None:
        event = InboundEvent.from_dict(_text_event(source=None))
        assert event.user_id is None

    def test_non_string_ids_dropped(self) -> None:
        event = InboundEvent.from_dict(
            _text_event(
                source={"type": "user", "userId": 12345678, "groupId": ["G"]},
                webhookEventId={"id": 1},
                replyToken=42,
            )
        )
        assert event.user_id is None
        assert event.source is not None
        assert event.source.group_id is None
        assert event.webhook_event_id is None
        assert event.reply_token is None
        assert event.is_text_message is True


class TestOutboundReply:
    def test_text_to_dict(self) -> None:
        assert OutboundReply.text_reply("hi").to_dict() == {"type": "text", "text": "hi"}

    def test_image_to_dict_uses_same_preview(self) -> None:
        reply = OutboundReply.image_reply("https://x/temp/a.png")
        assert reply.to_dict() == {
            "type": "image",
            "originalContentUrl": "https://x/temp/a.png",
            "previewImageUrl": "https://x/temp/a.png",
        }

    def test_image_with_explicit_preview(self) -> None:
        reply = OutboundReply.image_reply("https://x/a.png", "https://x/a_small.png")
        assert reply.to_dict()["previewImageUrl"] == "https://x/a_small.png"
