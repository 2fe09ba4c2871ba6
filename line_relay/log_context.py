"""Logging context: ContextVar-based log enrichment for async operations.

Every log record is enriched with an ``[op:event:user]`` prefix via a
`ContextFilter` on the root handlers.  Event ids are ULIDs whose leading
characters are a timestamp, so the prefix keeps their last 8 characters;
user ids keep their first 8.

Operation codes: ``wh`` (webhook intake), ``ev`` (event processing),
``gc`` (asset cleanup).
"""

from __future__ import annotations

import logging
from contextvars import ContextVar

# Cross-cutting context propagated through asyncio tasks.
ctx_operation: ContextVar[str | None] = ContextVar("ctx_operation", default=None)
ctx_event_id: ContextVar[str | None] = ContextVar("ctx_event_id", default=None)
ctx_user_id: ContextVar[str | None] = ContextVar("ctx_user_id", default=None)


class ContextFilter(logging.Filter):
    """Inject ContextVar values into every LogRecord as ``record.ctx``."""

    def filter(self, record: logging.LogRecord) -> bool:
        op = ctx_operation.get(None)
        event = ctx_event_id.get(None)
        user = ctx_user_id.get(None)
        parts: list[str] = []
        if op:
            parts.append(op)
        if event:
            parts.append(str(event)[-8:])
        if user:
            parts.append(str(user)[:8])
        record.ctx = f"[{':'.join(parts)}] " if parts else ""
        return True


def set_log_context(
    *,
    operation: str | None = None,
    event_id: str | None = None,
    user_id: str | None = None,
) -> None:
    """Set logging context for the current asyncio task.

    Values propagate to all coroutines called within the same task.
    Each ``asyncio.create_task()`` copies the current context automatically.
    """
    if operation is not None:
        ctx_operation.set(operation)
    if event_id is not None:
        ctx_event_id.set(event_id)
    if user_id is not None:
        ctx_user_id.set(user_id)
