"""Canned reply texts, fallback selection and length limits."""

from __future__ import annotations

from typing import TYPE_CHECKING

from line_relay.config import describe_secrets

if TYPE_CHECKING:
    from line_relay.config import RelayConfig

MAX_REPLY_LENGTH = 2000
ELLIPSIS = "..."

# Ordered: the first keyword contained in the message wins.
GREETINGS: tuple[tuple[str, str], ...] = (
    ("こんにちは", "こんにちは！何かお手伝いできることはありますか？"),
    ("こんばんは", "こんばんは！今日も一日お疲れさまでした。"),
    ("おはよう", "おはようございます！素晴らしい朝ですね！"),
    ("おやすみ", "おやすみなさい！良い夢を見てくださいね。"),
    ("hello", "Hello! How can I help you today?"),
)

TEST_KEYWORDS = ("テスト", "test")
TEST_REPLY = "テスト成功！BOTは正常に動作しています。"

WEATHER_KEYWORDS = ("天気", "weather")
WEATHER_REPLY = "今日は晴れです！気温は20度前後でしょう。"

DEBUG_KEYWORDS = ("デバッグ", "debug")

IMAGE_PREFIXES = ("image:", "画像:", "画像：")

FALLBACK_REPLIES: tuple[str, ...] = (
    "すみません、今はうまく考えがまとまりません。もう一度送ってもらえますか？",
    "ちょっと混み合っているようです。少し時間をおいて話しかけてください。",
    "ごめんなさい、うまく答えられませんでした。別の言い方で聞いてもらえますか？",
    "面白いですね！もっと教えてください！",
    "なるほど！そういう考え方もありますね。",
)

API_KEY_MISSING_REPLY = (
    "AI応答機能は現在利用できません（GEMINI_API_KEY が設定されていません）。"
)

APOLOGY_REPLY = "申し訳ありません。エラーが発生しました。しばらくしてからもう一度お試しください。"


def truncate_reply(text: str, limit: int = MAX_REPLY_LENGTH) -> str:
    """Cut *text* to *limit* characters, marking the cut with ``...``."""
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)] + ELLIPSIS


def pick_fallback(message_text: str) -> str:
    """Deterministic fallback: indexed by the length of the user's message."""
    return FALLBACK_REPLIES[len(message_text) % len(FALLBACK_REPLIES)]


def debug_report(config: RelayConfig) -> str:
    """Diagnostic text with environment name and credential presence only."""
    lines = ["デバッグ情報", f"環境: {config.environment}"]
    for name, present in describe_secrets(config).items():
        lines.append(f"{name}: {'設定済み' if present else '未設定'}")
    lines.append(f"テキストモデル: {config.generation.text_model}")
    lines.append(f"画像生成: {'有効' if config.assets.image_enabled else '無効'}")
    lines.append(f"署名検証: {'有効' if config.line.verifies_signature else '無効'}")
    return "\n".join(lines)
