"""Asset cleanup observer: periodic removal of expired generated images."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING

from line_relay.log_context import set_log_context

if TYPE_CHECKING:
    from line_relay.config import AssetConfig

logger = logging.getLogger(__name__)


def delete_expired_files(directory: Path, max_age_seconds: float) -> int:
    """Delete files older than *max_age_seconds* from *directory*.

    Returns the number of deleted files.  Only top-level files are cleaned,
    subdirectories are left untouched.
    """
    if not directory.is_dir():
        return 0

    cutoff = time.time() - max_age_seconds
    deleted = 0
    for entry in directory.iterdir():
        if not entry.is_file():
            continue
        try:
            if entry.stat().st_mtime < cutoff:
                entry.unlink()
                deleted += 1
        except OSError:
            logger.warning("Failed to delete %s", entry)
    return deleted


class AssetCleanupObserver:
    """Evicts generated images once they exceed their TTL.

    ``start()`` / ``stop()`` manage an asyncio background task.
    """

    def __init__(self, config: AssetConfig) -> None:
        self._config = config
        self._task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the cleanup background loop."""
        if self._task is not None:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        self._task.add_done_callback(_log_task_crash)
        logger.info(
            "Asset cleanup started (dir=%s, ttl=%dm, every %ds)",
            self._config.path,
            self._config.ttl_minutes,
            self._config.cleanup_interval_seconds,
        )

    async def stop(self) -> None:
        """Stop the cleanup background loop."""
        self._running = False
        if self._task:
            task = self._task
            self._task = None
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        logger.info("Asset cleanup stopped")

    async def run_once(self) -> int:
        """Delete expired files now, in a worker thread."""
        deleted = await asyncio.to_thread(
            delete_expired_files, self._config.path, self._config.ttl_minutes * 60
        )
        if deleted:
            logger.info("Asset cleanup removed %d expired file(s)", deleted)
        else:
            logger.debug("Asset cleanup: nothing to delete")
        return deleted

    async def _loop(self) -> None:
        """Sleep -> evict -> repeat."""
        set_log_context(operation="gc")
        try:
            while self._running:
                await asyncio.sleep(self._config.cleanup_interval_seconds)
                if not self._running:
                    break
                try:
                    await self.run_once()
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.exception("Asset cleanup tick failed (continuing)")
        except asyncio.CancelledError:
            logger.debug("Asset cleanup loop cancelled")


def _log_task_crash(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Asset cleanup task crashed", exc_info=exc)
