from __future__ import annotations

import io

from PIL import Image

from termweb.converter import HALF_BLOCK, GlyphCell, encode_frame, resize_screenshot


def _frame(width: int, rows: int) -> bytes:
    """RGBA frame where pixel (x, py) is (x, py, x + py, 255)."""
    data = bytearray()
    for py in range(rows * 2):
        for x in range(width):
            data.extend((x, py, x + py, 255))
    return bytes(data)


def test_every_cell_takes_top_as_foreground_and_bottom_as_background():
    width, height = 5, 3
    grid = encode_frame(_frame(width, height), width, height)

    assert len(grid) == height
    for y, row in enumerate(grid):
        assert len(row) == width
        for x, cell in enumerate(row):
            assert cell.glyph == HALF_BLOCK
            assert cell.fg == (x, 2 * y, x + 2 * y)
            assert cell.bg == (x, 2 * y + 1, x + 2 * y + 1)


def test_four_by_four_terminal_frame():
    # 4 columns, 4 rows -> 4 x 8 pixels
    grid = encode_frame(_frame(4, 4), 4, 4)
    assert len(grid) == 4
    assert all(len(row) == 4 for row in grid)
    assert grid[3][3] == GlyphCell(HALF_BLOCK, (3, 6, 9), (3, 7, 10))


def test_encode_is_deterministic():
    pixels = _frame(7, 2)
    assert encode_frame(pixels, 7, 2) == encode_frame(pixels, 7, 2)


def test_short_buffer_reads_missing_bytes_as_black():
    pixels = bytes([200, 100, 50, 255])  # one pixel of a 2 x 2 frame
    grid = encode_frame(pixels, 2, 1)

    assert grid[0][0].fg == (200, 100, 50)
    assert grid[0][1].fg == (0, 0, 0)
    assert grid[0][0].bg == (0, 0, 0)
    assert grid[0][1].bg == (0, 0, 0)


def test_partial_pixel_keeps_available_channels():
    grid = encode_frame(bytes([9, 8]), 1, 1)
    assert grid[0][0].fg == (9, 8, 0)


def test_trailing_bytes_are_ignored():
    pixels = _frame(2, 1) + bytes([255] * 64)
    assert encode_frame(pixels, 2, 1) == encode_frame(_frame(2, 1), 2, 1)


def test_alpha_is_ignored():
    opaque = bytes([1, 2, 3, 255, 4, 5, 6, 255])
    clear = bytes([1, 2, 3, 0, 4, 5, 6, 0])
    assert encode_frame(opaque, 1, 1) == encode_frame(clear, 1, 1)


def test_empty_dimensions_give_empty_grid():
    assert encode_frame(b"", 0, 5) == []
    assert encode_frame(b"", 5, 0) == []


def test_resize_screenshot_returns_exact_rgba_buffer():
    buffer = io.BytesIO()
    Image.new("RGB", (64, 48), (255, 0, 0)).save(buffer, format="PNG")

    pixels = resize_screenshot(buffer.getvalue(), 8, 6)

    assert len(pixels) == 8 * 6 * 4
    assert pixels[:4] == bytes([255, 0, 0, 255])


def test_resize_then_encode_matches_terminal_size():
    buffer = io.BytesIO()
    Image.new("RGB", (16, 32), (0, 128, 255)).save(buffer, format="PNG")

    grid = encode_frame(resize_screenshot(buffer.getvalue(), 4, 8), 4, 4)

    assert len(grid) == 4 and len(grid[0]) == 4
    assert grid[2][1].fg == (0, 128, 255)
