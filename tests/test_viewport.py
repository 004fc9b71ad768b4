from __future__ import annotations

import pytest

from termweb.viewport import ViewportMapping, map_to_source


def test_source_size_is_scaled_and_height_doubled():
    mapping = ViewportMapping(4, 4, scale_factor=4)
    assert mapping.source_size == (16, 32)
    assert mapping.frame_size == (4, 8)


def test_corners_map_exactly():
    assert map_to_source(0, 0, 80, 24, 320, 192) == (0, 0)
    assert map_to_source(80, 24, 80, 24, 320, 192) == (320, 192)


def test_midpoint_maps_to_middle_of_surface():
    mapping = ViewportMapping(80, 24)
    assert mapping.to_source(40, 12) == (160.0, 96.0)


def test_out_of_range_coordinates_are_not_clamped():
    mapping = ViewportMapping(10, 10, scale_factor=2)
    assert mapping.to_source(-1, 20) == (-2.0, 80.0)


def test_zero_terminal_size_is_rejected():
    with pytest.raises(ValueError):
        map_to_source(1, 1, 0, 24, 0, 192)
