"""Tests for canned replies, truncation and fallback selection."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from line_relay.config import RelayConfig
from line_relay.pipeline.replies import (
    ELLIPSIS,
    FALLBACK_REPLIES,
    MAX_REPLY_LENGTH,
    debug_report,
    pick_fallback,
    truncate_reply,
)


class TestTruncateReply:
    def test_short_text_untouched(self) -> None:
        assert truncate_reply("hello") == "hello"

    def test_exact_limit_untouched(self) -> None:
        text = "a" * MAX_REPLY_LENGTH
        assert truncate_reply(text) == text

    def test_long_text_cut_with_ellipsis(self) -> None:
        result = truncate_reply("b" * 5000)
        assert len(result) == MAX_REPLY_LENGTH
        assert result == "b" * 1997 + ELLIPSIS

    def test_one_over_limit(self) -> None:
        result = truncate_reply("c" * (MAX_REPLY_LENGTH + 1))
        assert result.endswith(ELLIPSIS)
        assert len(result) == MAX_REPLY_LENGTH

    def test_multibyte_counted_as_characters(self) -> None:
        result = truncate_reply("あ" * 2500)
        assert result == "あ" * 1997 + "..."

    def test_custom_limit(self) -> None:
        assert truncate_reply("abcdefgh", limit=5) == "ab..."


class TestPickFallback:
    def test_always_from_set(self) -> None:
        for n in range(20):
            assert pick_fallback("x" * n) in FALLBACK_REPLIES

    @pytest.mark.parametrize("text", ["", "a", "ab", "abc", "abcd"])
    def test_indexed_by_length(self, text: str) -> None:
        assert pick_fallback(text) == FALLBACK_REPLIES[len(text) % len(FALLBACK_REPLIES)]

    def test_deterministic(self) -> None:
        assert pick_fallback("same message") == pick_fallback("same message")


class TestDebugReport:
    def test_lists_presence_not_values(self, make_config: Callable[..., RelayConfig]) -> None:
        config = make_config(generation={"api_key": "very-secret-key"}, environment="staging")
        report = debug_report(config)
        assert "staging" in report
        assert "GEMINI_API_KEY: 設定済み" in report
        assert "LINE_CHANNEL_SECRET: 未設定" in report
        assert "very-secret-key" not in report
        assert "line-token" not in report

    def test_image_generation_flag(self, make_config: Callable[..., RelayConfig]) -> None:
        enabled = make_config(assets={"base_url": "https://bot.example.com"})
        assert "画像生成: 有効" in debug_report(enabled)
        assert "画像生成: 無効" in debug_report(make_config())
