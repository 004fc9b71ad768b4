"""
Terminal to browser coordinate mapping.

The browser viewport is the terminal grid scaled by a fixed factor, with
the height doubled because each cell shows two pixel rows.
"""

from dataclasses import dataclass
from typing import Tuple


DEFAULT_SCALE_FACTOR = 4


def map_to_source(
    term_x: float,
    term_y: float,
    term_width: int,
    term_height: int,
    source_width: float,
    source_height: float
) -> Tuple[float, float]:
    """
    Map a terminal cell position to a point on the source surface.

    Coordinates outside the terminal are mapped, not clamped.
    """
    if term_width <= 0 or term_height <= 0:
        raise ValueError(f"Invalid terminal size: {term_width}x{term_height}")

    return (
        term_x / term_width * source_width,
        term_y / term_height * source_height,
    )


@dataclass(frozen=True)
class ViewportMapping:
    """Browser viewport size derived from a terminal size."""
    terminal_width: int
    terminal_height: int
    scale_factor: int = DEFAULT_SCALE_FACTOR

    @property
    def source_width(self) -> int:
        return self.terminal_width * self.scale_factor

    @property
    def source_height(self) -> int:
        return self.terminal_height * self.scale_factor * 2

    @property
    def source_size(self) -> Tuple[int, int]:
        return (self.source_width, self.source_height)

    @property
    def frame_size(self) -> Tuple[int, int]:
        """Pixel size a screenshot is resized to before encoding."""
        return (self.terminal_width, self.terminal_height * 2)

    def to_source(self, term_x: float, term_y: float) -> Tuple[float, float]:
        return map_to_source(
            term_x, term_y,
            self.terminal_width, self.terminal_height,
            self.source_width, self.source_height
        )
