"""Gemini text/image generation and generated asset storage."""

from line_relay.generation.assets import GeneratedAsset, ImageStore
from line_relay.generation.client import GeminiClient, GeneratedImage

__all__ = ["GeminiClient", "GeneratedAsset", "GeneratedImage", "ImageStore"]
