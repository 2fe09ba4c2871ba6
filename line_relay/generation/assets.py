"""Storage for generated images served under ``/temp``."""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from line_relay.errors import AssetError

if TYPE_CHECKING:
    from line_relay.config import AssetConfig

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


@dataclass(frozen=True, slots=True)
class GeneratedAsset:
    path: Path
    url: str


def _extension_for(mime_type: str) -> str:
    return _EXTENSIONS.get(mime_type) or mimetypes.guess_extension(mime_type) or ".bin"


class ImageStore:
    """Writes image bytes into the asset directory and builds public URLs."""

    def __init__(self, config: AssetConfig) -> None:
        self._config = config
        self._directory = config.path

    @property
    def directory(self) -> Path:
        return self._directory

    def ensure_directory(self) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)

    def new_filename(self, mime_type: str) -> str:
        """Timestamp-based name with a short random suffix against collisions."""
        stamp = int(time.time() * 1000)
        return f"image_{stamp}_{secrets.token_hex(3)}{_extension_for(mime_type)}"

    def url_for(self, filename: str) -> str:
        base = self._config.base_url.rstrip("/")
        prefix = "/" + self._config.url_path.strip("/")
        return f"{base}{prefix}/{filename}"

    async def save(self, data: bytes, mime_type: str = "image/png") -> GeneratedAsset:
        """Persist *data* off the event loop and return its path and URL."""
        if not self._config.base_url:
            msg = "BASE_URL is not configured, generated images cannot be served"
            raise AssetError(msg)
        filename = self.new_filename(mime_type)
        path = self._directory / filename
        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as exc:
            msg = f"Failed to write generated image {filename}"
            raise AssetError(msg) from exc
        logger.info("Stored generated image %s (%d bytes)", filename, len(data))
        return GeneratedAsset(path=path, url=self.url_for(filename))

    def _write(self, path: Path, data: bytes) -> None:
        self.ensure_directory()
        path.write_bytes(data)
