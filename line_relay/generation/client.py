"""Gemini ``generateContent`` client for text replies and image generation."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

import aiohttp

from line_relay.errors import (
    GenerationResponseError,
    GenerationTimeoutError,
    GenerationUnavailableError,
)

if TYPE_CHECKING:
    from line_relay.config import GenerationConfig

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

_ERROR_BODY_LIMIT = 300

_TRANSLATE_PROMPT = (
    "Translate the following request into a short English prompt for an image "
    "generation model. Reply with the English prompt only, without quotes.\n\n{text}"
)
_IMAGE_PROMPT = "Generate an image: {prompt}"


@dataclass(frozen=True, slots=True)
class GeneratedImage:
    """Decoded inline image returned by the model."""

    data: bytes
    mime_type: str


class GeminiClient:
    """Thin async wrapper around the Gemini REST API.

    Every public call is bounded by a timeout; only the awaiting caller is
    cancelled when it fires, the upstream request is simply abandoned.
    """

    def __init__(self, config: GenerationConfig, session: aiohttp.ClientSession) -> None:
        self._config = config
        self._session = session

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    async def generate_text(self, prompt: str) -> str:
        """Return the model's text answer for *prompt*."""
        self._require_key()
        data = await _bounded(
            self._post(self._config.text_model, _text_body(prompt)),
            self._config.text_timeout_seconds,
            "text generation",
        )
        return extract_text(data)

    async def translate_to_english(self, text: str) -> str:
        """Turn a request in any language into an English image prompt."""
        translated = await self.generate_text(_TRANSLATE_PROMPT.format(text=text))
        return translated.strip().strip('"').strip()

    async def generate_image(self, prompt: str) -> GeneratedImage:
        """Translate *prompt*, then request an image for it.

        The translation sub-call and the image call share one overall budget.
        """
        self._require_key()
        return await _bounded(
            self._generate_image(prompt),
            self._config.image_timeout_seconds,
            "image generation",
        )

    async def _generate_image(self, prompt: str) -> GeneratedImage:
        english = await self.translate_to_english(prompt)
        logger.info("Image prompt translated (%d -> %d chars)", len(prompt), len(english))
        body = _text_body(_IMAGE_PROMPT.format(prompt=english or prompt))
        body["generationConfig"] = {"responseModalities": ["TEXT", "IMAGE"]}
        data = await self._post(self._config.image_model, body)
        return extract_image(data)

    def _require_key(self) -> None:
        if not self._config.api_key:
            msg = "GEMINI_API_KEY is not configured"
            raise GenerationUnavailableError(msg)

    async def _post(self, model: str, body: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._config.api_base.rstrip('/')}/models/{model}:generateContent"
        headers = {"x-goog-api-key": self._config.api_key}
        logger.debug("Gemini request model=%s", model)
        try:
            async with self._session.post(url, json=body, headers=headers) as resp:
                if resp.status != 200:
                    detail = (await resp.text())[:_ERROR_BODY_LIMIT]
                    msg = f"Gemini returned HTTP {resp.status}: {detail}"
                    raise GenerationResponseError(msg)
                data = await resp.json(content_type=None)
        except aiohttp.ClientError as exc:
            msg = f"Gemini request failed: {exc.__class__.__name__}"
            raise GenerationResponseError(msg) from exc
        except ValueError as exc:
            msg = "Gemini returned invalid JSON"
            raise GenerationResponseError(msg) from exc
        if not isinstance(data, dict):
            msg = "Gemini response is not a JSON object"
            raise GenerationResponseError(msg)
        return data


async def _bounded(awaitable: Awaitable[_T], seconds: float, what: str) -> _T:
    try:
        async with asyncio.timeout(seconds):
            return await awaitable
    except TimeoutError as exc:
        msg = f"{what} timed out after {seconds:g}s"
        raise GenerationTimeoutError(msg) from exc


def _text_body(prompt: str) -> dict[str, Any]:
    return {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}


def _first_parts(data: dict[str, Any]) -> list[dict[str, Any]]:
    """Return the parts of the first candidate or raise."""
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        feedback = data.get("promptFeedback") or {}
        reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
        msg = f"Gemini returned no candidates (blockReason={reason})"
        raise GenerationResponseError(msg)
    first = candidates[0]
    content = first.get("content") if isinstance(first, dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list) or not parts:
        msg = "Gemini candidate has no content parts"
        raise GenerationResponseError(msg)
    return [p for p in parts if isinstance(p, dict)]


def extract_text(data: dict[str, Any]) -> str:
    """Return the first non-empty text part of the first candidate."""
    for part in _first_parts(data):
        text = part.get("text")
        if isinstance(text, str) and text.strip():
            return text
    msg = "Gemini candidate has no text part"
    raise GenerationResponseError(msg)


def extract_image(data: dict[str, Any]) -> GeneratedImage:
    """Return the first inline image part of the first candidate."""
    for part in _first_parts(data):
        inline = part.get("inlineData") or part.get("inline_data")
        if not isinstance(inline, dict) or not inline.get("data"):
            continue
        try:
            raw = base64.b64decode(inline["data"], validate=True)
        except (binascii.Error, ValueError) as exc:
            msg = "Gemini inline image is not valid base64"
            raise GenerationResponseError(msg) from exc
        mime = inline.get("mimeType") or inline.get("mime_type") or "image/png"
        return GeneratedImage(data=raw, mime_type=str(mime))
    msg = "Gemini candidate has no inline image"
    raise GenerationResponseError(msg)
