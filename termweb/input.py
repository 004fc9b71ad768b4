"""
Terminal input decoding and translation to browser input.

Raw terminal text is decoded into key, mouse and scroll events:
- SGR mouse reports (xterm modes 1000/1003/1006)
- Meta (Alt) + letter
- Everything else resolved into keystrokes by blessed

Events that reach the page are translated into Playwright-style calls
(press, type, mouse move/down/up, scroll) at browser scale.
"""

import codecs
import logging
import os
import re
import sys
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

from .viewport import DEFAULT_SCALE_FACTOR, ViewportMapping


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyPress:
    """A key with its modifiers; sequence is the text the key produced."""
    name: str
    sequence: str = ""
    ctrl: bool = False
    meta: bool = False
    shift: bool = False


@dataclass(frozen=True)
class MouseDown:
    x: int
    y: int
    button: str = "left"


@dataclass(frozen=True)
class MouseUp:
    x: int
    y: int
    button: str = "left"


@dataclass(frozen=True)
class MouseMove:
    x: int
    y: int


@dataclass(frozen=True)
class Scroll:
    x: int
    y: int
    direction: str
    delta: int = 1


InputEvent = Union[KeyPress, MouseDown, MouseUp, MouseMove, Scroll]


# blessed key names -> our key names
BLESSED_KEY_NAMES = {
    "KEY_ENTER": "return",
    "KEY_BACKSPACE": "backspace",
    "KEY_DELETE": "delete",
    "KEY_TAB": "tab",
    "KEY_BTAB": "tab",
    "KEY_UP": "up",
    "KEY_DOWN": "down",
    "KEY_LEFT": "left",
    "KEY_RIGHT": "right",
    "KEY_HOME": "home",
    "KEY_END": "end",
    "KEY_PGUP": "pageup",
    "KEY_PGDOWN": "pagedown",
    "KEY_ESCAPE": "escape",
}

CONTROL_KEY_NAMES = {
    "\r": "return",
    "\n": "return",
    "\t": "tab",
    "\x1b": "escape",
    "\x7f": "backspace",
}

# Terminal key names -> Playwright key names
NAMED_KEYS = {
    "return": "Enter",
    "enter": "Enter",
    "backspace": "Backspace",
    "delete": "Delete",
    "tab": "Tab",
    "up": "ArrowUp",
    "down": "ArrowDown",
    "left": "ArrowLeft",
    "right": "ArrowRight",
    "home": "Home",
    "end": "End",
    "pageup": "PageUp",
    "pagedown": "PageDown",
    "space": " ",
}

MOUSE_BUTTONS = {0: "left", 1: "middle", 2: "right"}
SCROLL_DIRECTIONS = {0: "up", 1: "down", 2: "left", 3: "right"}

SGR_MOUSE = re.compile(r"\x1b\[<(\d+);(\d+);(\d+)([Mm])")
META_KEY = re.compile(r"\x1b([a-z0-9])")
# Escape or CSI prefix cut off at the end of a read
PARTIAL_SEQUENCE = re.compile(r"\x1b(?:\[[0-9;<?]*)?\Z")


def keystroke_to_event(keystroke) -> Optional[KeyPress]:
    """Convert a blessed Keystroke into a KeyPress."""
    text = str(keystroke)
    name = getattr(keystroke, "name", None)

    if getattr(keystroke, "is_sequence", False) and name in BLESSED_KEY_NAMES:
        return KeyPress(
            name=BLESSED_KEY_NAMES[name],
            sequence=text,
            shift=(name == "KEY_BTAB"),
        )

    if not text:
        return None

    if text in CONTROL_KEY_NAMES:
        return KeyPress(name=CONTROL_KEY_NAMES[text], sequence=text)

    if len(text) == 1 and ord(text) < 32:
        # Ctrl+A .. Ctrl+Z arrive as 0x01 .. 0x1a
        return KeyPress(name=chr(ord(text) + 96), sequence=text, ctrl=True)

    if text == " ":
        return KeyPress(name="space", sequence=text)

    if len(text) == 1:
        return KeyPress(name=text.lower(), sequence=text, shift=text.isupper())

    # Unresolved escape sequence
    return KeyPress(name=text, sequence="")


def parse_mouse_report(code: int, column: int, row: int, final: str) -> Optional[InputEvent]:
    """
    Decode one SGR mouse report.

    Columns and rows arrive 1-based; events carry 0-based cells.
    """
    x, y = column - 1, row - 1
    button = code & 0b11

    if code & 64:
        direction = SCROLL_DIRECTIONS.get(button)
        if direction is None:
            return None
        return Scroll(x=x, y=y, direction=direction, delta=1)

    if code & 32:
        return MouseMove(x=x, y=y)

    if final == "m":
        return MouseUp(x=x, y=y, button=MOUSE_BUTTONS.get(button, "left"))

    if button == 3:
        # X10-style release without a button number
        return MouseUp(x=x, y=y)

    return MouseDown(x=x, y=y, button=MOUSE_BUTTONS[button])


class InputDecoder:
    """
    Splits raw terminal text into input events.

    Mouse reports and meta keys are parsed here; the remaining text is
    pushed back into blessed so its keymap resolves arrows, function
    keys and friends.

    A sequence cut off at the end of a chunk is held in `pending` and
    completed by the next feed(). A lone ESC that is never completed is
    the Escape key; flush() releases it.
    """

    def __init__(self, term):
        self.term = term
        self.pending = ""

    def feed(self, text: str) -> List[InputEvent]:
        text = self.pending + text
        partial = PARTIAL_SEQUENCE.search(text)
        if partial:
            self.pending = partial.group(0)
            text = text[:partial.start()]
        else:
            self.pending = ""

        events: List[InputEvent] = []
        position = 0

        for match in SGR_MOUSE.finditer(text):
            events.extend(self._decode_keys(text[position:match.start()]))
            code, column, row, final = match.groups()
            event = parse_mouse_report(int(code), int(column), int(row), final)
            if event is not None:
                events.append(event)
            position = match.end()

        events.extend(self._decode_keys(text[position:]))
        return events

    def flush(self) -> List[InputEvent]:
        """Give up waiting for the rest of a pending sequence."""
        pending, self.pending = self.pending, ""
        if pending == "\x1b":
            return [KeyPress(name="escape", sequence=pending)]
        if pending:
            logger.debug("dropping incomplete sequence %r", pending)
        return []

    def _decode_keys(self, text: str) -> List[KeyPress]:
        events: List[KeyPress] = []
        position = 0

        for match in META_KEY.finditer(text):
            events.extend(self._resolve(text[position:match.start()]))
            letter = match.group(1)
            events.append(KeyPress(name=letter, sequence=match.group(0), meta=True))
            position = match.end()

        events.extend(self._resolve(text[position:]))
        return events

    def _resolve(self, text: str) -> List[KeyPress]:
        if not text:
            return []

        self.term.ungetch(text)
        events = []
        while True:
            keystroke = self.term.inkey(timeout=0, esc_delay=0)
            if not keystroke:
                break
            event = keystroke_to_event(keystroke)
            if event is not None:
                events.append(event)
        return events


class TerminalInput:
    """Reads stdin from the event loop and hands decoded events to a callback."""

    # xterm: button events, any-motion tracking, SGR coordinates
    ENABLE_MOUSE = "\033[?1000h\033[?1003h\033[?1006h"
    DISABLE_MOUSE = "\033[?1006l\033[?1003l\033[?1000l"

    # Seconds to wait for the rest of a split escape sequence
    ESC_DELAY = 0.05

    def __init__(self, term, on_event: Callable[[InputEvent], None], fd: Optional[int] = None):
        self.term = term
        self.on_event = on_event
        self.fd = fd if fd is not None else sys.stdin.fileno()
        self.decoder = InputDecoder(term)
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._loop = None
        self._flush_handle = None

    def enable_mouse(self):
        self.term.stream.write(self.ENABLE_MOUSE)
        self.term.stream.flush()

    def disable_mouse(self):
        self.term.stream.write(self.DISABLE_MOUSE)
        self.term.stream.flush()

    def attach(self, loop):
        self._loop = loop
        self.enable_mouse()
        loop.add_reader(self.fd, self._on_readable)

    def detach(self):
        self._cancel_flush()
        if self._loop is not None:
            self._loop.remove_reader(self.fd)
            self._loop = None
            self.disable_mouse()

    def _on_readable(self):
        data = os.read(self.fd, 4096)
        if not data:
            return
        self._cancel_flush()
        self._dispatch(self.decoder.feed(self._utf8.decode(data)))
        if self.decoder.pending and self._loop is not None:
            self._flush_handle = self._loop.call_later(self.ESC_DELAY, self._flush)

    def _flush(self):
        self._flush_handle = None
        self._dispatch(self.decoder.flush())

    def _cancel_flush(self):
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None

    def _dispatch(self, events: List[InputEvent]):
        for event in events:
            self.on_event(event)


class InputTranslator:
    """
    Forwards terminal input to the page.

    The viewport mapping is rebuilt from the current terminal size for
    every event, so a resize between events is always honoured.
    """

    def __init__(
        self,
        surface,
        size_provider: Callable[[], Tuple[int, int]],
        scale_factor: int = DEFAULT_SCALE_FACTOR,
        pixels_per_tick: int = 50
    ):
        """
        Args:
            surface: Object with async press/type/mouse_move/mouse_down/
                mouse_up/scroll_by methods
            size_provider: Returns the current terminal (columns, rows)
            scale_factor: Browser pixels per terminal cell
            pixels_per_tick: Scroll distance per wheel tick
        """
        self.surface = surface
        self.size_provider = size_provider
        self.scale_factor = scale_factor
        self.pixels_per_tick = pixels_per_tick

    def mapping(self) -> ViewportMapping:
        width, height = self.size_provider()
        return ViewportMapping(width, height, self.scale_factor)

    async def handle(self, event: InputEvent):
        if isinstance(event, KeyPress):
            await self.key(event)
        elif isinstance(event, MouseDown):
            await self._move_to(event.x, event.y)
            await self.surface.mouse_down(event.button)
        elif isinstance(event, MouseUp):
            await self._move_to(event.x, event.y)
            await self.surface.mouse_up(event.button)
        elif isinstance(event, MouseMove):
            await self._move_to(event.x, event.y)
        elif isinstance(event, Scroll):
            await self.scroll(event)

    async def key(self, event: KeyPress):
        named = NAMED_KEYS.get(event.name)
        if named is not None:
            await self.surface.press(named)
        elif len(event.sequence) == 1 and event.sequence.isprintable():
            await self.surface.type(event.sequence)
        elif len(event.name) == 1 and event.name.isprintable() and not (event.ctrl or event.meta):
            await self.surface.type(event.name)
        else:
            logger.debug("dropping key %r", event.name)

    async def scroll(self, event: Scroll):
        amount = event.delta * self.pixels_per_tick
        dx = {"left": -amount, "right": amount}.get(event.direction, 0)
        dy = {"up": -amount, "down": amount}.get(event.direction, 0)
        if dx or dy:
            await self.surface.scroll_by(dx, dy)

    async def _move_to(self, term_x: int, term_y: int):
        x, y = self.mapping().to_source(term_x, term_y)
        await self.surface.mouse_move(x, y)
