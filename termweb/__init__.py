"""
termweb - browse the web in a terminal

Drives a headless Playwright browser and paints its viewport with
half-block characters:
- Live screenshots at a fixed frame rate, two pixels per cell
- Keyboard and mouse forwarded to the page at browser scale
- URL bar and command palette overlays
- Automatic browser install on first run
"""

__version__ = "0.1.0"

from .converter import GlyphCell, HALF_BLOCK, encode_frame, resize_screenshot
from .viewport import ViewportMapping, map_to_source
from .input import (
    InputDecoder,
    InputTranslator,
    KeyPress,
    MouseDown,
    MouseMove,
    MouseUp,
    Scroll,
)
from .render_loop import RenderLoop, RenderState
from .browser import BrowserSession, normalize_url, screenshot_filename
from .commands import Command, CommandContext, build_commands
from .config import Settings
from .app import BrowserApp

__all__ = [
    # Rendering
    "GlyphCell",
    "HALF_BLOCK",
    "encode_frame",
    "resize_screenshot",
    "RenderLoop",
    "RenderState",
    # Coordinates
    "ViewportMapping",
    "map_to_source",
    # Input
    "InputDecoder",
    "InputTranslator",
    "KeyPress",
    "MouseDown",
    "MouseMove",
    "MouseUp",
    "Scroll",
    # Browser
    "BrowserSession",
    "normalize_url",
    "screenshot_filename",
    # Commands
    "Command",
    "CommandContext",
    "build_commands",
    # App
    "Settings",
    "BrowserApp",
]
