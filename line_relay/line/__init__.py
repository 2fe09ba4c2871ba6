"""LINE Messaging API access."""

from line_relay.line.client import LineClient

__all__ = ["LineClient"]
