"""
Terminal cell grid.

Holds one glyph with a foreground and background colour per cell and
writes them through blessed. Only rows that changed since the last
flush are redrawn.
"""

from contextlib import contextmanager
from typing import Dict, List, Optional, Tuple

from .converter import RGB, GlyphCell, GlyphGrid


DEFAULT_SIZE = (80, 24)
MAX_CACHED_COLORS = 8192

BLANK = GlyphCell(" ", (255, 255, 255), (0, 0, 0))


@contextmanager
def terminal_mode(term):
    """Alternate screen, raw keyboard, hidden cursor."""
    with term.fullscreen(), term.raw(), term.hidden_cursor():
        try:
            yield
        finally:
            term.stream.write(term.normal)
            term.stream.flush()


class Screen:
    """
    A width x height grid of GlyphCells backed by a blessed Terminal.

    Cells are set freely and painted on flush().
    """

    def __init__(self, term, output=None):
        """
        Args:
            term: blessed Terminal
            output: Stream to write to (defaults to the terminal's stream)
        """
        self.term = term
        self.output = output or term.stream
        self.width, self.height = self.size()
        self._cells: List[List[GlyphCell]] = self._blank(self.width, self.height)
        self._front: List[Optional[str]] = [None] * self.height
        self._fg_codes: Dict[RGB, str] = {}
        self._bg_codes: Dict[RGB, str] = {}

    def size(self) -> Tuple[int, int]:
        """Current terminal (columns, rows)."""
        return (self.term.width or DEFAULT_SIZE[0], self.term.height or DEFAULT_SIZE[1])

    def resize(self):
        """Reallocate the grid for the current terminal size and repaint everything."""
        self.width, self.height = self.size()
        self._cells = self._blank(self.width, self.height)
        self.invalidate()
        self.output.write(self.term.clear)

    def invalidate(self):
        self._front = [None] * self.height

    def cell(self, x: int, y: int) -> GlyphCell:
        return self._cells[y][x]

    def set_cell(self, x: int, y: int, glyph: str, fg: RGB, bg: RGB):
        if 0 <= x < self.width and 0 <= y < self.height:
            self._cells[y][x] = GlyphCell(glyph, fg, bg)

    def draw_grid(self, grid: GlyphGrid):
        """Copy an encoded frame onto the screen, clipped to the current size."""
        for y, row in enumerate(grid[:self.height]):
            line = self._cells[y]
            for x, cell in enumerate(row[:self.width]):
                line[x] = cell

    def fill(self, x: int, y: int, width: int, height: int, bg: RGB, fg: RGB = (255, 255, 255)):
        for row in range(y, y + height):
            for col in range(x, x + width):
                self.set_cell(col, row, " ", fg, bg)

    def draw_text(self, x: int, y: int, text: str, fg: RGB, bg: RGB, width: Optional[int] = None):
        """Write text left to right, truncated (or padded) to width cells."""
        if width is not None:
            text = text[:width].ljust(width)
        for offset, char in enumerate(text):
            self.set_cell(x + offset, y, char, fg, bg)

    def flush(self):
        for y, row in enumerate(self._cells):
            line = self._render_row(row)
            if line != self._front[y]:
                self.output.write(self.term.move_xy(0, y) + line)
                self._front[y] = line
        self.output.write(self.term.normal)
        self.output.flush()

    def _render_row(self, row: List[GlyphCell]) -> str:
        parts = []
        fg = bg = None
        for cell in row:
            if cell.fg != fg:
                fg = cell.fg
                parts.append(self._fg(fg))
            if cell.bg != bg:
                bg = cell.bg
                parts.append(self._bg(bg))
            parts.append(cell.glyph)
        return "".join(parts)

    def _fg(self, rgb: RGB) -> str:
        code = self._fg_codes.get(rgb)
        if code is None:
            if len(self._fg_codes) >= MAX_CACHED_COLORS:
                self._fg_codes.clear()
            code = self._fg_codes[rgb] = self.term.color_rgb(*rgb)
        return code

    def _bg(self, rgb: RGB) -> str:
        code = self._bg_codes.get(rgb)
        if code is None:
            if len(self._bg_codes) >= MAX_CACHED_COLORS:
                self._bg_codes.clear()
            code = self._bg_codes[rgb] = self.term.on_color_rgb(*rgb)
        return code

    @staticmethod
    def _blank(width: int, height: int) -> List[List[GlyphCell]]:
        return [[BLANK] * width for _ in range(height)]
