"""Tests for dem_bakery.core.tiling."""

import math

import numpy as np
import pytest

from dem_bakery.core.errors import IndexOutOfBounds
from dem_bakery.core.tiling import TileLayout, TileRect

LAYOUT_CASES = [
    (8, 8, 4, 4),
    (10, 7, 4, 3),
    (10, 7, 3, 2),
    (5, 5, 8, 8),
    (1, 1, 1, 1),
    (17, 3, 5, 1),
    (3, 17, 1, 5),
    (46080, 23040, 8192, 8192),
]


# ---------------------------------------------------------------------------
# Tile counts
# ---------------------------------------------------------------------------


class TestTileCounts:
    """num_tiles_x / num_tiles_y follow ceil(total / chunk)."""

    @pytest.mark.parametrize("tw,th,cw,ch", LAYOUT_CASES)
    def test_ceil_division(self, tw, th, cw, ch):
        layout = TileLayout(tw, th, cw, ch)
        assert layout.num_tiles_x == math.ceil(tw / cw)
        assert layout.num_tiles_y == math.ceil(th / ch)
        assert layout.num_tiles == layout.num_tiles_x * layout.num_tiles_y

    def test_exact_division(self):
        layout = TileLayout(16, 8, 4, 4)
        assert (layout.num_tiles_x, layout.num_tiles_y) == (4, 2)

    def test_chunk_larger_than_raster_is_single_tile(self):
        layout = TileLayout(5, 3, 100, 100)
        assert layout.num_tiles == 1
        assert layout.tile_rect(0, 0) == TileRect(0, 0, 5, 3)

    def test_mars_mola_grid(self):
        layout = TileLayout(46080, 23040, 8192, 8192)
        assert (layout.num_tiles_x, layout.num_tiles_y) == (6, 3)


# ---------------------------------------------------------------------------
# Rectangles
# ---------------------------------------------------------------------------


class TestTileRect:
    """tile_rect() returns half-open rectangles clipped at the raster edge."""

    def test_interior_tile_is_full_size(self):
        layout = TileLayout(10, 7, 4, 3)
        rect = layout.tile_rect(1, 1)
        assert rect == TileRect(x_start=4, y_start=3, x_end=8, y_end=6)
        assert (rect.width, rect.height) == (4, 3)

    def test_trailing_column_is_narrower(self):
        layout = TileLayout(10, 7, 4, 3)
        rect = layout.tile_rect(2, 0)
        assert (rect.x_start, rect.x_end) == (8, 10)
        assert rect.width == 2

    def test_trailing_row_is_shorter(self):
        layout = TileLayout(10, 7, 4, 3)
        rect = layout.tile_rect(0, 2)
        assert (rect.y_start, rect.y_end) == (6, 7)
        assert rect.height == 1

    def test_corner_tile_is_clipped_both_ways(self):
        layout = TileLayout(10, 7, 4, 3)
        assert layout.tile_rect(2, 2) == TileRect(8, 6, 10, 7)

    @pytest.mark.parametrize("tx,ty", [(-1, 0), (0, -1), (3, 0), (0, 3)])
    def test_out_of_range_raises(self, tx, ty):
        layout = TileLayout(10, 7, 4, 3)
        with pytest.raises(IndexOutOfBounds, match="outside tile grid"):
            layout.tile_rect(tx, ty)


# ---------------------------------------------------------------------------
# Coverage & ordering
# ---------------------------------------------------------------------------


class TestCoverage:
    """Tile rectangles cover the raster exactly once."""

    @pytest.mark.parametrize("tw,th,cw,ch", LAYOUT_CASES[:-1])
    def test_no_gaps_no_overlap(self, tw, th, cw, ch):
        layout = TileLayout(tw, th, cw, ch)
        hits = np.zeros((th, tw), dtype=np.int32)
        for rect in layout.iter_rects():
            hits[rect.y_start : rect.y_end, rect.x_start : rect.x_end] += 1
        assert np.all(hits == 1)

    @pytest.mark.parametrize("tw,th,cw,ch", LAYOUT_CASES)
    def test_area_sums_to_raster(self, tw, th, cw, ch):
        layout = TileLayout(tw, th, cw, ch)
        assert sum(r.width * r.height for r in layout.iter_rects()) == tw * th

    def test_row_major_order(self):
        layout = TileLayout(10, 7, 4, 3)
        starts = [(r.x_start, r.y_start) for r in layout.iter_rects()]
        assert starts == [
            (0, 0), (4, 0), (8, 0),
            (0, 3), (4, 3), (8, 3),
            (0, 6), (4, 6), (8, 6),
        ]  # fmt: skip


class TestTileIndexForPixel:
    """tile_index_for_pixel() maps pixels to row-major tile indices."""

    def test_matches_iteration_order(self):
        layout = TileLayout(10, 7, 4, 3)
        rects = list(layout.iter_rects())
        for y in range(7):
            for x in range(10):
                rect = rects[layout.tile_index_for_pixel(x, y)]
                assert rect.x_start <= x < rect.x_end
                assert rect.y_start <= y < rect.y_end

    def test_last_pixel(self):
        layout = TileLayout(10, 7, 4, 3)
        assert layout.tile_index_for_pixel(9, 6) == 8

    def test_pixel_outside_raster_raises(self):
        layout = TileLayout(10, 7, 4, 3)
        with pytest.raises(IndexOutOfBounds):
            layout.tile_index_for_pixel(10, 0)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    """Constructor argument checks."""

    @pytest.mark.parametrize(
        "args",
        [(0, 7, 4, 3), (10, 0, 4, 3), (10, 7, 0, 3), (10, 7, 4, -1), (10.0, 7, 4, 3), (True, 7, 4, 3)],
    )
    def test_rejects_non_positive_or_non_integer(self, args):
        with pytest.raises(ValueError, match="must be a positive integer"):
            TileLayout(*args)

    def test_accepts_numpy_integers(self):
        layout = TileLayout(np.int64(10), np.uint32(7), np.int32(4), 3)
        assert layout.num_tiles == 9

    def test_tolerant_by_default(self):
        """Partial trailing tiles are accepted unless strict mode is requested."""
        TileLayout(10, 7, 4, 3)

    def test_strict_rejects_uneven_division(self):
        with pytest.raises(ValueError, match="not divisible"):
            TileLayout(10, 7, 4, 3, strict=True)

    def test_strict_accepts_even_division(self):
        layout = TileLayout(16, 9, 4, 3, strict=True)
        assert layout.num_tiles == 12

    def test_repr(self):
        assert repr(TileLayout(10, 7, 4, 3)) == "TileLayout(10x7 px, chunk 4x3, 3x3 tiles)"
