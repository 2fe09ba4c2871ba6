"""Keyword router: decides how a text message is answered."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from line_relay.pipeline.replies import (
    DEBUG_KEYWORDS,
    GREETINGS,
    IMAGE_PREFIXES,
    TEST_KEYWORDS,
    TEST_REPLY,
    WEATHER_KEYWORDS,
    WEATHER_REPLY,
    debug_report,
)

if TYPE_CHECKING:
    from line_relay.config import RelayConfig


class RouteKind(StrEnum):
    GREETING = "greeting"
    TEST = "test"
    WEATHER = "weather"
    DEBUG = "debug"
    GENERATE_TEXT = "generate_text"
    GENERATE_IMAGE = "generate_image"


@dataclass(frozen=True)
class Route:
    """Classification result.

    ``reply`` is set for fast-path routes; ``prompt`` for generation routes.
    """

    kind: RouteKind
    reply: str | None = None
    prompt: str | None = None


def _contains(text: str, keywords: tuple[str, ...]) -> bool:
    folded = text.casefold()
    return any(k.casefold() in folded for k in keywords)


def strip_image_prefix(text: str) -> str | None:
    """Return the prompt after an image prefix, or None if there is none."""
    stripped = text.lstrip()
    folded = stripped.casefold()
    for prefix in IMAGE_PREFIXES:
        if folded.startswith(prefix.casefold()):
            return stripped[len(prefix) :].strip()
    return None


class KeywordRouter:
    """Ordered keyword containment checks, first match wins."""

    def __init__(self, config: RelayConfig) -> None:
        self._config = config

    def route(self, text: str) -> Route:
        if self._config.assets.image_enabled:
            prompt = strip_image_prefix(text)
            if prompt:
                return Route(RouteKind.GENERATE_IMAGE, prompt=prompt)

        for keyword, greeting in GREETINGS:
            if _contains(text, (keyword,)):
                return Route(RouteKind.GREETING, reply=greeting)
        if _contains(text, TEST_KEYWORDS):
            return Route(RouteKind.TEST, reply=TEST_REPLY)
        if _contains(text, WEATHER_KEYWORDS):
            return Route(RouteKind.WEATHER, reply=WEATHER_REPLY)
        if _contains(text, DEBUG_KEYWORDS):
            return Route(RouteKind.DEBUG, reply=debug_report(self._config))
        return Route(RouteKind.GENERATE_TEXT, prompt=text)
