"""Shared test fixtures: config factory and fake LINE / Gemini upstreams."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import Any

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from line_relay.config import (
    AssetConfig,
    GenerationConfig,
    LineConfig,
    RelayConfig,
    ServerConfig,
)
from tests.fakes import FakeGeminiApi, FakeLineApi


@pytest.fixture
def asset_dir(tmp_path: Path) -> Path:
    return tmp_path / "assets"


@pytest.fixture
def make_config(asset_dir: Path) -> Callable[..., RelayConfig]:
    """Factory for configs with test-friendly defaults; sections may be overridden."""

    def _make(
        *,
        line: dict[str, Any] | None = None,
        generation: dict[str, Any] | None = None,
        assets: dict[str, Any] | None = None,
        server: dict[str, Any] | None = None,
        environment: str = "test",
    ) -> RelayConfig:
        return RelayConfig(
            environment=environment,
            server=ServerConfig(**{"host": "127.0.0.1", "port": 0, **(server or {})}),
            line=LineConfig(
                **{
                    "channel_secret": "",
                    "channel_access_token": "line-token",
                    **(line or {}),
                }
            ),
            generation=GenerationConfig(**{"api_key": "gemini-key", **(generation or {})}),
            assets=AssetConfig(**{"directory": str(asset_dir), **(assets or {})}),
        )

    return _make


@pytest.fixture
async def fake_line() -> AsyncIterator[FakeLineApi]:
    api = FakeLineApi()
    app = web.Application()
    app.router.add_post("/v2/bot/message/reply", api.handle_reply)
    server = TestServer(app)
    await server.start_server()
    api.base_url = str(server.make_url("")).rstrip("/")
    yield api
    if api.gate is not None:
        api.gate.set()
    await server.close()


@pytest.fixture
async def fake_gemini() -> AsyncIterator[FakeGeminiApi]:
    api = FakeGeminiApi()
    app = web.Application()
    app.router.add_post("/v1beta/models/{call}", api.handle_generate)
    server = TestServer(app)
    await server.start_server()
    api.base_url = str(server.make_url("/v1beta"))
    yield api
    await server.close()


@pytest.fixture
async def http_session() -> AsyncIterator[aiohttp.ClientSession]:
    session = aiohttp.ClientSession()
    yield session
    await session.close()
