"""
Fixed-rate screenshot loop.

Every tick captures the page at the current terminal-derived viewport,
resizes the PNG to terminal pixels, encodes it as half blocks and hands
the grid to the display. Only one capture cycle runs at a time; ticks
that land while one is in flight are skipped.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional, Tuple

from .converter import GlyphGrid, encode_frame, resize_screenshot
from .viewport import DEFAULT_SCALE_FACTOR, ViewportMapping


logger = logging.getLogger(__name__)


class RenderState(Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    RESIZING = "resizing"
    ENCODING = "encoding"
    DISPLAYED = "displayed"


class RenderLoop:
    """
    Drives capture -> resize -> encode -> display at a fixed period.

    A resize calls request_refresh() for an immediate cycle; if a cycle
    is already running, exactly one more runs as soon as it finishes.
    """

    def __init__(
        self,
        surface,
        on_frame: Callable[[GlyphGrid, int, int], None],
        size_provider: Callable[[], Tuple[int, int]],
        interval: float = 1 / 30,
        scale_factor: int = DEFAULT_SCALE_FACTOR
    ):
        """
        Args:
            surface: Object with async capture(width, height) -> PNG bytes
            on_frame: Receives (grid, columns, rows) for each encoded frame
            size_provider: Returns the current terminal (columns, rows)
            interval: Seconds between ticks
            scale_factor: Browser pixels per terminal cell
        """
        self.surface = surface
        self.on_frame = on_frame
        self.size_provider = size_provider
        self.interval = interval
        self.scale_factor = scale_factor

        self.state = RenderState.IDLE
        self.frames = 0
        self.skipped = 0
        self.failures = 0

        self._busy = False
        self._pending = False
        self._stopped = False
        self._timer: Optional[asyncio.Task] = None
        self._cycle: Optional[asyncio.Task] = None

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._stopped

    def start(self):
        if self._timer is None and not self._stopped:
            self._timer = asyncio.ensure_future(self._run())

    async def _run(self):
        while not self._stopped:
            self.tick()
            await asyncio.sleep(self.interval)

    def tick(self) -> bool:
        """Start a cycle unless one is in flight. Returns True if started."""
        if self._stopped:
            return False
        if self._busy:
            self.skipped += 1
            return False
        self._busy = True
        self._cycle = asyncio.ensure_future(self._run_cycles())
        return True

    def request_refresh(self):
        """Refresh out of band, e.g. after a terminal resize."""
        if self._stopped:
            return
        if self._busy:
            self._pending = True
        else:
            self.tick()

    async def _run_cycles(self):
        try:
            while True:
                await self.refresh()
                if self._stopped or not self._pending:
                    break
                self._pending = False
        finally:
            self._busy = False

    async def refresh(self):
        """One capture cycle. Failures are logged and the last frame stays up."""
        columns, rows = self.size_provider()
        mapping = ViewportMapping(columns, rows, self.scale_factor)
        try:
            self.state = RenderState.CAPTURING
            screenshot = await self.surface.capture(*mapping.source_size)

            self.state = RenderState.RESIZING
            pixels = await asyncio.to_thread(resize_screenshot, screenshot, *mapping.frame_size)

            self.state = RenderState.ENCODING
            grid = encode_frame(pixels, columns, rows)
        except asyncio.CancelledError:
            self.state = RenderState.IDLE
            raise
        except Exception:
            self.failures += 1
            self.state = RenderState.IDLE
            logger.exception("render tick failed at %dx%d", columns, rows)
            return

        if self._stopped:
            self.state = RenderState.IDLE
            return

        self.on_frame(grid, columns, rows)
        self.frames += 1
        self.state = RenderState.DISPLAYED

    async def stop(self):
        """Stop ticking and wait until no cycle can touch the surface."""
        self._stopped = True
        self._pending = False
        for task in (self._timer, self._cycle):
            if task is not None and not task.done():
                task.cancel()
        for task in (self._timer, self._cycle):
            if task is not None:
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._busy = False
        self.state = RenderState.IDLE
        logger.info("render loop stopped after %d frames (%d skipped)", self.frames, self.skipped)
