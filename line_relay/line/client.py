"""LINE Messaging API client (reply endpoint only)."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

import aiohttp

from line_relay.errors import ReplyError

if TYPE_CHECKING:
    from line_relay.config import LineConfig
    from line_relay.webhook.models import OutboundReply

logger = logging.getLogger(__name__)

_REPLY_PATH = "/v2/bot/message/reply"
_MAX_MESSAGES = 5  # LINE rejects reply requests with more messages.
_ERROR_BODY_LIMIT = 300


class LineClient:
    """Sends replies through ``POST /v2/bot/message/reply``.

    The HTTP session is owned by the caller and shared process-wide.
    """

    def __init__(self, config: LineConfig, session: aiohttp.ClientSession) -> None:
        self._config = config
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=config.reply_timeout_seconds)

    @property
    def is_configured(self) -> bool:
        return bool(self._config.channel_access_token)

    async def reply(self, reply_token: str, messages: Sequence[OutboundReply]) -> None:
        """Send *messages* as the reply to the event identified by *reply_token*.

        Raises `ReplyError` on network failure or a non-2xx response.
        """
        if not self.is_configured:
            msg = "LINE channel access token is not configured"
            raise ReplyError(msg)
        if not messages:
            msg = "reply needs at least one message"
            raise ReplyError(msg)

        url = self._config.api_base.rstrip("/") + _REPLY_PATH
        body = {
            "replyToken": reply_token,
            "messages": [m.to_dict() for m in messages[:_MAX_MESSAGES]],
        }
        headers = {"Authorization": f"Bearer {self._config.channel_access_token}"}

        try:
            async with self._session.post(
                url, json=body, headers=headers, timeout=self._timeout
            ) as resp:
                if resp.status >= 300:
                    detail = (await resp.text())[:_ERROR_BODY_LIMIT]
                    msg = f"LINE reply failed with HTTP {resp.status}: {detail}"
                    raise ReplyError(msg, status=resp.status)
        except (aiohttp.ClientError, TimeoutError) as exc:
            msg = f"LINE reply request failed: {exc.__class__.__name__}"
            raise ReplyError(msg) from exc

        logger.debug("Reply sent (%d message(s))", len(body["messages"]))
