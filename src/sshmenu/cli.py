"""Command-line interface for sshmenu.

Provides the main entry point for running the SSH menu server, and a
preview command that renders a single frame locally for checking the
layout without a network connection.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="sshmenu",
        description="Interactive menu served over SSH",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/sshmenu.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("serve", help="Start the SSH server")

    preview_parser = subparsers.add_parser(
        "preview", help="Render one frame to stdout",
    )
    preview_parser.add_argument(
        "--width", type=int, default=80,
        help="Terminal width in columns",
    )
    preview_parser.add_argument(
        "--height", type=int, default=24,
        help="Terminal height in rows",
    )
    preview_parser.add_argument(
        "--cursor", type=int, default=0,
        help="Index of the highlighted option",
    )
    preview_parser.add_argument(
        "--select", type=int, action="append", default=[],
        help="Index of a selected option (repeatable)",
    )
    preview_parser.add_argument(
        "--plain", action="store_true",
        help="Strip colors from the output",
    )

    return parser.parse_args(argv)


async def _serve(settings, stop: asyncio.Event | None = None) -> int:
    """Run the SSH server until SIGINT/SIGTERM, then shut down gracefully.

    ``stop`` replaces the signal handlers when given.
    """
    from sshmenu.server.host_key import HostKeyError
    from sshmenu.server.ssh import MenuSSHServer, ServerShutdownError, ServerStartError

    try:
        server = MenuSSHServer.from_settings(settings)
    except (OSError, HostKeyError) as e:
        logger.error("Could not load host key %s: %s", settings.server.host_key_path, e)
        return 1

    try:
        await server.start()
    except ServerStartError as e:
        logger.error("Could not start server: %s", e)
        return 1

    if stop is None:
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop.set)

    await stop.wait()

    try:
        await server.shutdown(timeout=settings.server.shutdown_timeout)
    except ServerShutdownError as e:
        logger.error("Could not stop server: %s", e)
    return 0


def _preview(settings, args) -> int:
    """Render a single frame for the given terminal size and selection."""
    from pydantic import ValidationError

    from sshmenu.domain.models import SessionState, Viewport
    from sshmenu.session.render import render

    try:
        state = SessionState(
            viewport=Viewport(width=args.width, height=args.height),
            options=tuple(settings.menu.options),
            cursor=args.cursor,
            selected=frozenset(args.select),
        )
    except ValidationError as e:
        print(f"Invalid preview state: {e}", file=sys.stderr)
        return 2

    frame = render(state, title=settings.menu.title, wrap_padding=settings.menu.wrap_padding)
    print(frame.plain if args.plain else frame.text)
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the sshmenu CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from sshmenu.config.settings import load_settings
    from sshmenu.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    if args.command == "serve":
        logger.info("Starting sshmenu server")
        code = asyncio.run(_serve(settings))
        if code:
            sys.exit(code)

    elif args.command == "preview":
        code = _preview(settings, args)
        if code:
            sys.exit(code)


if __name__ == "__main__":
    main()
