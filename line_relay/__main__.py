"""Entry point: python -m line_relay."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from line_relay.app import RelayApp
from line_relay.config import RelayConfig, describe_secrets, load_config
from line_relay.logging_config import setup_logging, shutdown_logging

logger = logging.getLogger(__name__)

_console = Console()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="line-relay",
        description="LINE webhook receiver that answers with canned or Gemini-generated replies.",
    )
    parser.add_argument("--host", help="Bind address (overrides HOST)")
    parser.add_argument("--port", type=int, help="Listen port (overrides PORT)")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=Path(".env"),
        help="Environment file loaded before the process environment (default: .env)",
    )
    parser.add_argument("--log-dir", type=Path, help="Also write rotating log files here")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging output")
    return parser


def _print_banner(config: RelayConfig) -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold green", min_width=28)
    table.add_column()
    table.add_row("Listening", f"{config.server.host}:{config.server.port}")
    table.add_row("Environment", config.environment)
    for name, present in describe_secrets(config).items():
        table.add_row(name, "[green]set[/green]" if present else "[yellow]missing[/yellow]")
    table.add_row("Asset directory", str(config.assets.path))
    _console.print(
        Panel(table, title="[bold]line-relay[/bold]", border_style="cyan", padding=(1, 1)),
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = _build_parser().parse_args(argv)

    env_file: Path | None = args.env_file
    if env_file is not None and not env_file.is_file():
        env_file = None
    try:
        config = load_config(env_file)
    except ValidationError as exc:
        _console.print(f"[bold red]Invalid configuration:[/bold red]\n{exc}")
        sys.exit(1)

    setup_logging(config.log_level, verbose=args.verbose, log_dir=args.log_dir)
    logger.info("Configuration loaded (env file: %s)", env_file or "none")

    updates: dict[str, object] = {}
    if args.host:
        updates["host"] = args.host
    if args.port is not None:
        updates["port"] = args.port
    if updates:
        config.server = config.server.model_copy(update=updates)

    _print_banner(config)
    try:
        asyncio.run(RelayApp(config).run())
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        shutdown_logging()


if __name__ == "__main__":
    main()
