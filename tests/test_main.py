"""Tests for the command-line entry point."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from line_relay.__main__ import _build_parser, main
from line_relay.config import RelayConfig

_ENV_VARS = (
    "APP_ENV",
    "NODE_ENV",
    "LOG_LEVEL",
    "HOST",
    "PORT",
    "LINE_CHANNEL_SECRET",
    "LINE_CHANNEL_ACCESS_TOKEN",
    "GEMINI_API_KEY",
    "BASE_URL",
    "ASSET_DIR",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("ASSET_DIR", str(tmp_path / "assets"))


@pytest.fixture
def relay_app() -> Iterator[MagicMock]:
    with (
        patch("line_relay.__main__.setup_logging"),
        patch("line_relay.__main__.RelayApp") as app_cls,
    ):
        app_cls.return_value.run = AsyncMock(return_value=None)
        yield app_cls


def _started_config(app_cls: MagicMock) -> RelayConfig:
    ((config,), _) = app_cls.call_args
    assert isinstance(config, RelayConfig)
    return config


class TestParser:
    def test_defaults(self) -> None:
        args = _build_parser().parse_args([])
        assert args.host is None
        assert args.port is None
        assert args.env_file == Path(".env")
        assert args.log_dir is None
        assert args.verbose is False

    def test_overrides(self) -> None:
        args = _build_parser().parse_args(
            ["--host", "127.0.0.1", "--port", "8080", "--env-file", "x.env", "-v"]
        )
        assert args.host == "127.0.0.1"
        assert args.port == 8080
        assert args.env_file == Path("x.env")
        assert args.verbose is True


class TestMain:
    def test_runs_app_with_env_file(self, relay_app: MagicMock, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("PORT=4000\nGEMINI_API_KEY=from-file\n", encoding="utf-8")

        main(["--env-file", str(env_file)])

        config = _started_config(relay_app)
        assert config.server.port == 4000
        assert config.generation.api_key == "from-file"
        relay_app.return_value.run.assert_awaited_once()

    def test_cli_overrides_env(
        self, relay_app: MagicMock, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PORT", "4000")
        main(["--env-file", str(tmp_path / "missing.env"), "--port", "5000", "--host", "::1"])

        config = _started_config(relay_app)
        assert config.server.port == 5000
        assert config.server.host == "::1"

    def test_invalid_port_exits(
        self, relay_app: MagicMock, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PORT", "not-a-port")
        with pytest.raises(SystemExit) as exc_info:
            main(["--env-file", str(tmp_path / "missing.env")])
        assert exc_info.value.code == 1
        relay_app.assert_not_called()

    def test_logging_configured_once_from_config(
        self, relay_app: MagicMock, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("LOG_LEVEL", "warning")
        with patch("line_relay.__main__.setup_logging") as setup:
            main(["--env-file", str(tmp_path / "missing.env"), "--log-dir", str(tmp_path)])
        setup.assert_called_once_with("warning", verbose=False, log_dir=tmp_path)
