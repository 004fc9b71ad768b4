"""Shared fakes for the browser page and the terminal."""
from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest
from PIL import Image

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))


def png_bytes(width: int, height: int, color=(10, 20, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeSession:
    """Records every page call in order."""

    def __init__(self, url: str = "https://start.test/"):
        self.calls: list[tuple] = []
        self._url = url
        self.closed = False
        self.capture_error: Exception | None = None
        self.capture_delay = 0.0
        self.scripts_blocked = False

    @property
    def url(self) -> str:
        return self._url

    async def launch(self, width, height):
        self.calls.append(("launch", width, height))

    async def close(self):
        self.closed = True
        self.calls.append(("close",))

    async def navigate(self, url):
        self.calls.append(("navigate", url))
        self._url = url
        return url

    async def go_back(self):
        self.calls.append(("go_back",))
        self._url = "https://previous.test/"
        return self._url

    async def go_forward(self):
        self.calls.append(("go_forward",))
        self._url = "https://next.test/"
        return self._url

    async def reload(self):
        self.calls.append(("reload",))

    async def capture(self, width, height):
        import asyncio

        if self.closed:
            raise RuntimeError("capture after close")
        self.calls.append(("capture", width, height))
        if self.capture_delay:
            await asyncio.sleep(self.capture_delay)
        if self.capture_error is not None:
            raise self.capture_error
        return png_bytes(width, height)

    async def save_full_page(self, path):
        self.calls.append(("save_full_page", path))
        return path

    async def press(self, key):
        self.calls.append(("press", key))

    async def type(self, text):
        self.calls.append(("type", text))

    async def mouse_move(self, x, y):
        self.calls.append(("mouse_move", x, y))

    async def mouse_down(self, button="left"):
        self.calls.append(("mouse_down", button))

    async def mouse_up(self, button="left"):
        self.calls.append(("mouse_up", button))

    async def scroll_by(self, dx, dy):
        self.calls.append(("scroll_by", dx, dy))

    async def scroll_to_top(self):
        self.calls.append(("scroll_to_top",))

    async def scroll_to_bottom(self):
        self.calls.append(("scroll_to_bottom",))

    async def scroll_pages(self, pages):
        self.calls.append(("scroll_pages", pages))

    async def zoom_by(self, step):
        self.calls.append(("zoom_by", step))

    async def reset_zoom(self):
        self.calls.append(("reset_zoom",))

    async def clear_cookies(self):
        self.calls.append(("clear_cookies",))

    async def toggle_scripts(self):
        self.scripts_blocked = not self.scripts_blocked
        self.calls.append(("toggle_scripts", self.scripts_blocked))
        return self.scripts_blocked

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]


class FakeTerm:
    """Just enough of blessed.Terminal for Screen."""

    normal = "<n>"
    clear = "<clear>"

    def __init__(self, width: int = 8, height: int = 4):
        self.width = width
        self.height = height
        self.stream = io.StringIO()

    def move_xy(self, x, y):
        return f"<{x},{y}>"

    def color_rgb(self, r, g, b):
        return f"<fg {r},{g},{b}>"

    def on_color_rgb(self, r, g, b):
        return f"<bg {r},{g},{b}>"


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def term() -> FakeTerm:
    return FakeTerm()
