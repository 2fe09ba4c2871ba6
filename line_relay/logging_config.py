"""Root logger setup for the relay process.

Console records go to stderr as ``HH:MM:SS LEVEL logger: [ctx] message``,
with the level coloured when stderr is a terminal.  With a log directory,
records are also queued to a listener thread that writes a rotating
``line-relay.log`` so file I/O never runs on the event loop.
"""

from __future__ import annotations

import atexit
import logging
import queue
import sys
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path

from line_relay.log_context import ContextFilter

LOG_FILE_NAME = "line-relay.log"
LOG_FILE_MAX_BYTES = 2 * 1024 * 1024
LOG_FILE_BACKUPS = 5

_CONSOLE_FORMAT = "%(asctime)s %(level_tag)s %(name)s: %(ctx)s%(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s [%(process)d]: %(ctx)s%(message)s"

# aiohttp logs every request and connection at INFO; webhook traffic would drown the rest.
_QUIET_LOGGERS = ("aiohttp.access", "aiohttp.client", "aiohttp.server", "asyncio")

_LEVEL_COLORS = {
    logging.DEBUG: "\x1b[2m",
    logging.INFO: "\x1b[36m",
    logging.WARNING: "\x1b[33m",
    logging.ERROR: "\x1b[31m",
    logging.CRITICAL: "\x1b[1;31m",
}

logger = logging.getLogger(__name__)

# Handlers installed by the last setup_logging() call; others (pytest's) are left alone.
_installed: list[logging.Handler] = []
_listener: QueueListener | None = None


class LevelTagFormatter(logging.Formatter):
    """Adds a fixed-width ``level_tag`` field, optionally ANSI-coloured."""

    def __init__(self, fmt: str, *, color: bool) -> None:
        super().__init__(fmt, datefmt="%H:%M:%S")
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        tag = f"{record.levelname:<8}"
        color = _LEVEL_COLORS.get(record.levelno) if self.color else None
        record.level_tag = f"{color}{tag}\x1b[0m" if color else tag
        return super().format(record)


def resolve_level(level: int | str, default: int = logging.INFO) -> int:
    """Numeric level for *level*; names such as ``" debug "`` are accepted."""
    if isinstance(level, int):
        return level
    return logging.getLevelNamesMapping().get(level.strip().upper(), default)


def shutdown_logging() -> None:
    """Flush and stop the file listener, if one is running."""
    global _listener  # noqa: PLW0603
    if _listener is not None:
        _listener.stop()
        _listener = None


atexit.register(shutdown_logging)


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(LevelTagFormatter(_CONSOLE_FORMAT, color=sys.stderr.isatty()))
    return handler


def _file_handler(log_dir: Path) -> logging.Handler:
    """Queue front-end whose listener owns the rotating file."""
    global _listener  # noqa: PLW0603
    log_dir.mkdir(parents=True, exist_ok=True)
    rotating = RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    rotating.setFormatter(logging.Formatter(_FILE_FORMAT))
    records: queue.SimpleQueue[logging.LogRecord] = queue.SimpleQueue()
    _listener = QueueListener(records, rotating)
    _listener.start()
    return QueueHandler(records)


def setup_logging(
    level: int | str = logging.INFO,
    *,
    verbose: bool = False,
    log_dir: Path | None = None,
) -> None:
    """(Re)configure the root logger.

    *level* is usually ``RelayConfig.log_level``; *verbose* forces DEBUG.
    Calling again replaces the handlers from the previous call.
    """
    numeric = logging.DEBUG if verbose else resolve_level(level)

    root = logging.getLogger()
    for handler in _installed:
        root.removeHandler(handler)
        handler.close()
    _installed.clear()
    shutdown_logging()

    handlers = [_console_handler()]
    if log_dir is not None:
        handlers.append(_file_handler(log_dir))
    context = ContextFilter()
    for handler in handlers:
        handler.addFilter(context)
        root.addHandler(handler)
        _installed.append(handler)

    root.setLevel(numeric)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric, logging.WARNING))

    logger.debug("Logging configured (level=%s, file=%s)", logging.getLevelName(numeric), log_dir)
