#!/usr/bin/env python3
"""
Command-line entry point for the terminal browser.

Checks that the browser is installed (installing it if needed),
launches it at a viewport sized from the terminal and hands the
terminal over to the app.
"""

import argparse
import asyncio
import sys

from blessed import Terminal

from .app import BrowserApp
from .browser import BrowserSession
from .config import BROWSER_TYPES, WAIT_POLICIES, Settings
from .display import Screen
from .install import InstallError, ensure_browser_installed
from .logging_setup import configure_logging
from .viewport import DEFAULT_SCALE_FACTOR


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="termweb",
        description="Browse the web in your terminal with a headless browser",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  termweb https://example.com
  termweb example.com --fps 15
  termweb news.ycombinator.com --browser firefox

Keys:
  Ctrl+K        Command palette
  Ctrl+L        Go to URL
  Ctrl+R        Reload
  Ctrl+Q / Esc  Quit
"""
    )

    parser.add_argument(
        "url",
        help="Page to open (https:// is added when no scheme is given)"
    )

    parser.add_argument(
        "--fps",
        type=float,
        default=30.0,
        help="Screen refreshes per second (default: 30)"
    )
    parser.add_argument(
        "--scale",
        type=int,
        default=DEFAULT_SCALE_FACTOR,
        help=f"Browser pixels per terminal cell (default: {DEFAULT_SCALE_FACTOR})"
    )
    parser.add_argument(
        "--scroll-step",
        type=int,
        default=50,
        help="Pixels scrolled per mouse wheel tick (default: 50)"
    )
    parser.add_argument(
        "--browser",
        choices=BROWSER_TYPES,
        default="chromium",
        help="Browser engine (default: chromium)"
    )
    parser.add_argument(
        "--wait-until",
        choices=WAIT_POLICIES,
        default="domcontentloaded",
        help="When navigation counts as finished (default: domcontentloaded)"
    )
    parser.add_argument(
        "--log-file",
        help="Log file path (default: ~/.cache/termweb/termweb.log)"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)"
    )
    parser.add_argument(
        "--skip-install-check",
        action="store_true",
        help="Do not probe for the browser before launching"
    )

    return parser


async def run(args) -> int:
    try:
        settings = Settings.from_args(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    logger = configure_logging(settings.log_file, settings.log_level)

    if not args.skip_install_check:
        try:
            await ensure_browser_installed(settings.browser_type)
        except InstallError as e:
            print(f"\n{e}", file=sys.stderr)
            return 1

    term = Terminal()
    session = BrowserSession(
        browser_type=settings.browser_type,
        headless=settings.headless,
        wait_until=settings.wait_until,
    )
    app = BrowserApp(args.url, session, Screen(term), settings)

    try:
        await app.start()
    except Exception as e:
        logger.exception("startup failed")
        print(f"Error: could not open {app.state.current_url}: {e}", file=sys.stderr)
        await session.close()
        return 1

    return await app.run(term)


def main(argv=None) -> int:
    """Main entry point for CLI."""
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
