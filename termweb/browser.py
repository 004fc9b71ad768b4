"""
Headless browser session.

Wraps one Playwright page and serialises every call made against it,
so a screenshot never races a navigation or an input event.
"""

import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Optional

from playwright.async_api import async_playwright


logger = logging.getLogger(__name__)

_HAS_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_SCHEMELESS_PREFIXES = ("about:", "data:", "file:", "javascript:")

_ZOOM_BY = """
(step) => {
    const current = parseFloat(document.body.style.zoom || "1");
    document.body.style.zoom = String(Math.max(0.1, current + step));
}
"""


def normalize_url(text: str, default_scheme: str = "https") -> str:
    """Add a scheme to a URL typed without one."""
    url = text.strip()
    if not url:
        return url
    if _HAS_SCHEME.match(url) or url.lower().startswith(_SCHEMELESS_PREFIXES):
        return url
    return f"{default_scheme}://{url}"


def screenshot_filename(now: Optional[datetime] = None) -> str:
    """Name for a full-page screenshot, e.g. screenshot-2024-01-02T03-04-05-678Z.png."""
    now = now or datetime.now(timezone.utc)
    now = now.astimezone(timezone.utc)
    stamp = now.strftime("%Y-%m-%dT%H:%M:%S") + f".{now.microsecond // 1000:03d}Z"
    return "screenshot-" + re.sub(r"[:.]", "-", stamp) + ".png"


class BrowserSession:
    """
    A single headless page driven through Playwright.

    Only one page call is in flight at a time.
    """

    def __init__(
        self,
        browser_type: str = "chromium",
        headless: bool = True,
        wait_until: str = "domcontentloaded"
    ):
        self.browser_type = browser_type
        self.headless = headless
        self.wait_until = wait_until

        self._playwright = None
        self._browser = None
        self._page = None
        self._lock = asyncio.Lock()
        self._scripts_blocked = False

    @property
    def is_open(self) -> bool:
        return self._page is not None

    @property
    def url(self) -> str:
        return self._page.url if self._page else ""

    @property
    def scripts_blocked(self) -> bool:
        return self._scripts_blocked

    async def launch(self, width: int, height: int):
        """Start the browser with a viewport of width x height pixels."""
        self._playwright = await async_playwright().start()
        try:
            launcher = getattr(self._playwright, self.browser_type)
            self._browser = await launcher.launch(headless=self.headless)
            self._page = await self._browser.new_page(
                viewport={"width": width, "height": height}
            )
        except Exception:
            await self.close()
            raise
        logger.info("launched %s at %dx%d", self.browser_type, width, height)

    async def close(self):
        async with self._lock:
            page, self._page = self._page, None
            browser, self._browser = self._browser, None
            playwright, self._playwright = self._playwright, None
            if browser is not None:
                await browser.close()
            if playwright is not None:
                await playwright.stop()
        if page is not None:
            logger.info("browser closed")

    # Navigation

    async def navigate(self, url: str) -> str:
        async with self._lock:
            logger.info("navigating to %s", url)
            await self._page.goto(url, wait_until=self.wait_until)
            return self._page.url

    async def go_back(self) -> str:
        async with self._lock:
            await self._page.go_back(wait_until=self.wait_until)
            return self._page.url

    async def go_forward(self) -> str:
        async with self._lock:
            await self._page.go_forward(wait_until=self.wait_until)
            return self._page.url

    async def reload(self):
        async with self._lock:
            await self._page.reload(wait_until=self.wait_until)

    # Capture

    async def capture(self, width: int, height: int) -> bytes:
        """Resize the viewport and screenshot it as PNG."""
        async with self._lock:
            viewport = self._page.viewport_size
            if not viewport or (viewport["width"], viewport["height"]) != (width, height):
                await self._page.set_viewport_size({"width": width, "height": height})
            return await self._page.screenshot(type="png")

    async def save_full_page(self, path: str) -> str:
        async with self._lock:
            await self._page.screenshot(path=path, full_page=True)
        logger.info("saved screenshot %s", path)
        return path

    # Input

    async def press(self, key: str):
        async with self._lock:
            await self._page.keyboard.press(key)

    async def type(self, text: str):
        async with self._lock:
            await self._page.keyboard.type(text)

    async def mouse_move(self, x: float, y: float):
        async with self._lock:
            await self._page.mouse.move(x, y)

    async def mouse_down(self, button: str = "left"):
        async with self._lock:
            await self._page.mouse.down(button=button)

    async def mouse_up(self, button: str = "left"):
        async with self._lock:
            await self._page.mouse.up(button=button)

    async def scroll_by(self, dx: float, dy: float):
        async with self._lock:
            await self._page.evaluate("([x, y]) => window.scrollBy(x, y)", [dx, dy])

    # Page scripts

    async def scroll_to_top(self):
        async with self._lock:
            await self._page.evaluate("() => window.scrollTo(0, 0)")

    async def scroll_to_bottom(self):
        async with self._lock:
            await self._page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")

    async def scroll_pages(self, pages: int):
        async with self._lock:
            await self._page.evaluate(
                "(n) => window.scrollBy(0, n * window.innerHeight)", pages
            )

    async def zoom_by(self, step: float):
        async with self._lock:
            await self._page.evaluate(_ZOOM_BY, step)

    async def reset_zoom(self):
        async with self._lock:
            await self._page.evaluate('() => { document.body.style.zoom = "1"; }')

    # Context

    async def clear_cookies(self):
        async with self._lock:
            await self._page.context.clear_cookies()
            await self._page.reload(wait_until=self.wait_until)

    async def toggle_scripts(self) -> bool:
        """Block or unblock script requests, then reload. Returns the new state."""
        async with self._lock:
            if self._scripts_blocked:
                await self._page.unroute("**/*", self._block_scripts)
            else:
                await self._page.route("**/*", self._block_scripts)
            self._scripts_blocked = not self._scripts_blocked
            await self._page.reload(wait_until=self.wait_until)
            return self._scripts_blocked

    @staticmethod
    async def _block_scripts(route):
        if route.request.resource_type == "script":
            await route.abort()
        else:
            await route.continue_()
