"""
Browser availability probe and installer.

The probe launches the browser once. Launch errors that say the
executable is missing mean "not installed"; any other failure is
reported as installed so a broken environment does not loop through
reinstalls.
"""

import asyncio
import logging
import re
import sys
from typing import Optional, TextIO

from playwright.async_api import async_playwright


logger = logging.getLogger(__name__)

NOT_INSTALLED_MARKERS = (
    "Executable doesn't exist",
    "playwright install",
    "PLAYWRIGHT_BROWSERS_PATH",
)

_PERCENT = re.compile(r"(\d+)%")


class InstallError(RuntimeError):
    """The browser could not be installed."""


def render_progress_bar(progress: float, width: int = 40) -> str:
    """Text progress bar, e.g. [████░░░░] 50%."""
    progress = min(max(progress, 0.0), 1.0)
    filled = round(progress * width)
    bar = "█" * filled + "░" * (width - filled)
    return f"[{bar}] {round(progress * 100)}%"


def is_missing_browser_error(message: str) -> bool:
    return any(marker in message for marker in NOT_INSTALLED_MARKERS)


async def is_browser_installed(browser_type: str = "chromium") -> bool:
    try:
        async with async_playwright() as p:
            browser = await getattr(p, browser_type).launch(headless=True)
            await browser.close()
        return True
    except Exception as e:
        if is_missing_browser_error(str(e)):
            return False
        logger.warning("browser probe failed, assuming installed: %s", e)
        return True


class InstallProgress:
    """
    Coarse installer progress.

    Creeps forward on a timer and jumps to percentages the installer
    prints.
    """

    TICK_STEP = 0.02
    TICK_CEILING = 0.95
    ACTIVITY_STEP = 0.05
    ACTIVITY_CEILING = 0.9

    def __init__(self, out: Optional[TextIO] = None):
        self.progress = 0.0
        self.out = out or sys.stdout

    def tick(self):
        if self.progress < self.TICK_CEILING:
            self.progress += self.TICK_STEP
            self._draw("Installing...")

    def feed(self, line: str):
        match = _PERCENT.search(line)
        if match:
            self.progress = min(int(match.group(1)) / 100, 0.99)
            self._draw(line.strip()[:30])
        elif "Downloading" in line:
            self.progress = min(self.progress + self.ACTIVITY_STEP, self.ACTIVITY_CEILING)

    def done(self):
        self.progress = 1.0
        self._draw("Done!          \n")

    def _draw(self, message: str):
        self.out.write(f"\r{render_progress_bar(self.progress)}  {message}")
        self.out.flush()


async def install_browser(browser_type: str = "chromium", out: Optional[TextIO] = None):
    """Run `playwright install <browser>` and show progress."""
    out = out or sys.stdout
    progress = InstallProgress(out)
    command = [sys.executable, "-m", "playwright", "install", browser_type]

    print(f"\nPlaywright {browser_type} browser not found.", file=out)
    print(f"Installing {browser_type} browser...\n", file=out)

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as e:
        raise InstallError(f"Failed to start installation: {e}") from e

    async def pump():
        while True:
            line = await process.stdout.readline()
            if not line:
                break
            progress.feed(line.decode("utf-8", errors="replace"))

    async def ticker():
        while True:
            await asyncio.sleep(0.2)
            progress.tick()

    ticking = asyncio.ensure_future(ticker())
    try:
        await pump()
        code = await process.wait()
    finally:
        ticking.cancel()

    if code != 0:
        logger.error("browser install failed with code %s", code)
        raise InstallError(
            f"Failed to install {browser_type} (exit code: {code}). "
            f"Please run manually: playwright install {browser_type}"
        )

    progress.done()
    print(f"\n{browser_type} browser installed successfully!\n", file=out)


async def ensure_browser_installed(browser_type: str = "chromium", out: Optional[TextIO] = None):
    out = out or sys.stdout
    out.write(f"Checking for Playwright {browser_type}... ")
    out.flush()

    if await is_browser_installed(browser_type):
        print("Found!", file=out)
        return

    print("Not found.", file=out)
    await install_browser(browser_type, out)
