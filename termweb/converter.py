"""
Half-block frame encoder.

Converts screenshots to terminal cells:
- Decoding and resizing PNG screenshots to raw RGBA frames
- Packing two pixel rows into each terminal row with the upper half block
"""

import io
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np
from PIL import Image


RGB = Tuple[int, int, int]

# Upper half block: foreground paints the top pixel, background the bottom
HALF_BLOCK = "▀"


@dataclass(frozen=True)
class GlyphCell:
    """One terminal cell of an encoded frame."""
    glyph: str
    fg: RGB
    bg: RGB


GlyphGrid = List[List[GlyphCell]]


def resize_screenshot(screenshot: bytes, width: int, height: int) -> bytes:
    """
    Decode a screenshot and scale it to an exact pixel size.

    Args:
        screenshot: Encoded image bytes (PNG from the browser)
        width: Target width in pixels
        height: Target height in pixels

    Returns:
        Raw RGBA bytes, width * height * 4 long
    """
    image = Image.open(io.BytesIO(screenshot)).convert("RGBA")
    if image.size != (width, height):
        image = image.resize((width, height), Image.Resampling.LANCZOS)
    return image.tobytes()


def encode_frame(pixels: bytes, width: int, height: int) -> GlyphGrid:
    """
    Encode a width x (2 * height) RGBA frame as a grid of half blocks.

    Terminal row y takes its foreground from pixel row 2y and its
    background from pixel row 2y + 1. Every cell uses the same glyph;
    picking among quadrant/sextant glyphs to reduce colour error is not
    attempted.

    Bytes missing from a short buffer read as zero.

    Args:
        pixels: Raw RGBA bytes
        width: Terminal columns
        height: Terminal rows

    Returns:
        height rows of width GlyphCells
    """
    if width <= 0 or height <= 0:
        return []

    needed = width * height * 2 * 4
    data = np.frombuffer(pixels, dtype=np.uint8)[:needed]
    if data.size < needed:
        data = np.concatenate([data, np.zeros(needed - data.size, dtype=np.uint8)])

    frame = data.reshape(height * 2, width, 4)
    top = frame[0::2, :, :3].tolist()
    bottom = frame[1::2, :, :3].tolist()

    grid = []
    for top_row, bottom_row in zip(top, bottom):
        grid.append([
            GlyphCell(HALF_BLOCK, tuple(fg), tuple(bg))
            for fg, bg in zip(top_row, bottom_row)
        ])
    return grid
