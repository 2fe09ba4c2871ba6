"""Webhook intake: HTTP server, payload models and signature checks."""

from line_relay.webhook.models import InboundEvent, OutboundReply, parse_events
from line_relay.webhook.server import WebhookServer

__all__ = ["InboundEvent", "OutboundReply", "WebhookServer", "parse_events"]
