"""Event pipeline: keyword routing, generation and reply dispatch."""

from line_relay.pipeline.handler import EventHandler, EventOutcome
from line_relay.pipeline.router import KeywordRouter, Route, RouteKind

__all__ = ["EventHandler", "EventOutcome", "KeywordRouter", "Route", "RouteKind"]
