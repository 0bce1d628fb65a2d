from __future__ import annotations

import argparse
import logging
from datetime import datetime, timezone
from typing import Sequence

import httpx
from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

from codex_usage.api import UsageApiError, fetch_usage
from codex_usage.auth import AuthError, load_credentials
from codex_usage.config import load_settings
from codex_usage.render import render_dashboard

logger = logging.getLogger("codex_usage")


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="codex-usage",
        description="Show Codex rate-limit usage and pace as a terminal dashboard.",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=None,
        help="Dashboard width in columns (default: $CODEX_USAGE_WIDTH or 74).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log request details to stderr.",
    )
    args = parser.parse_args(argv)

    console = Console()
    error_console = Console(stderr=True)
    _configure_logging(error_console, args.verbose)

    settings = load_settings()
    width = args.width if args.width and args.width > 0 else settings.width

    try:
        credentials = load_credentials(settings.auth_path)
    except AuthError as exc:
        _print_error(error_console, str(exc))
        return 1

    try:
        if console.is_terminal:
            with console.status("Fetching usage...", spinner="dots"):
                response = fetch_usage(
                    credentials, settings.base_url, timeout=settings.timeout
                )
        else:
            response = fetch_usage(
                credentials, settings.base_url, timeout=settings.timeout
            )
    except UsageApiError as exc:
        _print_error(error_console, str(exc))
        return 1
    except httpx.HTTPError as exc:
        _print_error(error_console, f"Request failed: {exc}")
        return 1

    render_dashboard(console, response, datetime.now(timezone.utc), width)
    return 0


def _configure_logging(console: Console, verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logger.setLevel(level)
    if not logger.handlers:
        logger.addHandler(RichHandler(console=console, show_path=False))
    logger.propagate = False


def _print_error(console: Console, message: str) -> None:
    if console.is_terminal:
        line = Text.assemble(("Error:", "bold red"), f" {message}")
        console.print(line, soft_wrap=True)
    else:
        console.print(
            f"Error: {message}", markup=False, highlight=False, soft_wrap=True
        )


if __name__ == "__main__":
    raise SystemExit(main())
