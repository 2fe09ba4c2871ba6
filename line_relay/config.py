"""Application configuration loaded from the process environment."""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path

from dotenv import dotenv_values
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

_DEFAULT_ASSET_DIR = str(Path(tempfile.gettempdir()) / "line-relay-assets")


class ServerConfig(BaseModel):
    """Settings for the webhook HTTP server."""

    host: str = "0.0.0.0"  # noqa: S104
    port: int = Field(default=3000, ge=0, le=65535)
    max_body_bytes: int = 1024 * 1024
    shutdown_grace_seconds: float = 5.0


class LineConfig(BaseModel):
    """Credentials and endpoint of the LINE Messaging API."""

    channel_secret: str = ""
    channel_access_token: str = ""
    api_base: str = "https://api.line.me"
    reply_timeout_seconds: float = 10.0

    @property
    def verifies_signature(self) -> bool:
        return bool(self.channel_secret)


class GenerationConfig(BaseModel):
    """Settings for the Gemini generation API."""

    api_key: str = ""
    api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    text_model: str = "gemini-2.0-flash"
    image_model: str = "gemini-2.0-flash-preview-image-generation"
    text_timeout_seconds: float = Field(default=15.0, gt=0)
    image_timeout_seconds: float = Field(default=30.0, gt=0)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class AssetConfig(BaseModel):
    """Storage and lifetime of generated images."""

    directory: str = _DEFAULT_ASSET_DIR
    base_url: str = ""
    url_path: str = "/temp"
    ttl_minutes: int = Field(default=60, ge=1)
    cleanup_interval_seconds: int = Field(default=300, ge=1)

    @property
    def image_enabled(self) -> bool:
        """Image replies need a public base URL LINE can fetch from."""
        return bool(self.base_url)

    @property
    def path(self) -> Path:
        return Path(self.directory).expanduser()


class RelayConfig(BaseModel):
    """Top-level configuration."""

    environment: str = "development"
    log_level: str = "INFO"
    server: ServerConfig = Field(default_factory=ServerConfig)
    line: LineConfig = Field(default_factory=LineConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    assets: AssetConfig = Field(default_factory=AssetConfig)


# Environment variable -> (section, field). Section ``None`` is top level.
_ENV_FIELDS: dict[str, tuple[str | None, str]] = {
    "APP_ENV": (None, "environment"),
    "LOG_LEVEL": (None, "log_level"),
    "HOST": ("server", "host"),
    "PORT": ("server", "port"),
    "MAX_BODY_BYTES": ("server", "max_body_bytes"),
    "LINE_CHANNEL_SECRET": ("line", "channel_secret"),
    "LINE_CHANNEL_ACCESS_TOKEN": ("line", "channel_access_token"),
    "LINE_API_BASE": ("line", "api_base"),
    "GEMINI_API_KEY": ("generation", "api_key"),
    "GEMINI_API_BASE": ("generation", "api_base"),
    "GEMINI_TEXT_MODEL": ("generation", "text_model"),
    "GEMINI_IMAGE_MODEL": ("generation", "image_model"),
    "BASE_URL": ("assets", "base_url"),
    "ASSET_DIR": ("assets", "directory"),
    "ASSET_TTL_MINUTES": ("assets", "ttl_minutes"),
}

# Accepted for deployments that still export the older variable name.
_ENV_ALIASES: dict[str, str] = {"NODE_ENV": "APP_ENV"}


def config_from_mapping(env: Mapping[str, str]) -> RelayConfig:
    """Build a `RelayConfig` from an environment-like mapping.

    Empty values are treated as unset so that blank lines in ``.env`` files
    fall back to defaults.  Raises ``pydantic.ValidationError`` on bad values.
    """
    top: dict[str, str] = {}
    sections: dict[str, dict[str, str]] = {}
    merged = dict(env)
    for alias, canonical in _ENV_ALIASES.items():
        if not merged.get(canonical) and merged.get(alias):
            merged[canonical] = merged[alias]

    for var, (section, field) in _ENV_FIELDS.items():
        raw = merged.get(var)
        if raw is None or not raw.strip():
            continue
        target = top if section is None else sections.setdefault(section, {})
        target[field] = raw.strip()

    config = RelayConfig.model_validate({**top, **sections})
    if config.assets.base_url:
        config.assets.base_url = config.assets.base_url.rstrip("/")
    return config


def load_config(env_file: Path | None = None) -> RelayConfig:
    """Load config from ``os.environ``, layered over an optional ``.env`` file.

    Real environment variables win over values from *env_file*.
    """
    env: dict[str, str] = {}
    if env_file is not None:
        if env_file.is_file():
            env.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
            logger.info("Loaded environment file %s", env_file)
        else:
            logger.warning("Environment file %s not found, using process environment", env_file)
    env.update(os.environ)
    return config_from_mapping(env)


def describe_secrets(config: RelayConfig) -> dict[str, bool]:
    """Presence (never values) of each credential, keyed by env var name."""
    return {
        "LINE_CHANNEL_SECRET": bool(config.line.channel_secret),
        "LINE_CHANNEL_ACCESS_TOKEN": bool(config.line.channel_access_token),
        "GEMINI_API_KEY": bool(config.generation.api_key),
        "BASE_URL": bool(config.assets.base_url),
    }
