"""
Tile layout arithmetic.

Partitions a raster of ``total_width x total_height`` pixels into a grid of
``chunk_width x chunk_height`` tiles. The last column and row of tiles may
be narrower or shorter than the nominal chunk size when the raster does not
divide evenly.
"""

import math
import numbers
from collections.abc import Iterator
from dataclasses import dataclass

from ..constants import ErrorMessages
from .errors import IndexOutOfBounds


@dataclass(frozen=True)
class TileRect:
    """Half-open pixel rectangle ``[x_start, x_end) x [y_start, y_end)``."""

    x_start: int
    y_start: int
    x_end: int
    y_end: int

    @property
    def width(self) -> int:
        return self.x_end - self.x_start

    @property
    def height(self) -> int:
        return self.y_end - self.y_start


class TileLayout:
    """Row-major tile grid over a raster."""

    def __init__(
        self,
        total_width: int,
        total_height: int,
        chunk_width: int,
        chunk_height: int,
        strict: bool = False,
    ) -> None:
        for name, value in (
            ("total_width", total_width),
            ("total_height", total_height),
            ("chunk_width", chunk_width),
            ("chunk_height", chunk_height),
        ):
            _require_positive(name, value)

        if strict and (total_width % chunk_width or total_height % chunk_height):
            raise ValueError(
                ErrorMessages.NOT_DIVISIBLE.format(
                    total_width, total_height, chunk_width, chunk_height
                )
            )

        self.total_width = int(total_width)
        self.total_height = int(total_height)
        self.chunk_width = int(chunk_width)
        self.chunk_height = int(chunk_height)

    @property
    def num_tiles_x(self) -> int:
        return math.ceil(self.total_width / self.chunk_width)

    @property
    def num_tiles_y(self) -> int:
        return math.ceil(self.total_height / self.chunk_height)

    @property
    def num_tiles(self) -> int:
        return self.num_tiles_x * self.num_tiles_y

    def tile_rect(self, tx: int, ty: int) -> TileRect:
        """Pixel rectangle of tile ``(tx, ty)``, clipped to the raster."""
        if not (0 <= tx < self.num_tiles_x and 0 <= ty < self.num_tiles_y):
            raise IndexOutOfBounds(
                ErrorMessages.TILE_OUT_OF_RANGE.format(tx, ty, self.num_tiles_x, self.num_tiles_y)
            )
        return TileRect(
            x_start=tx * self.chunk_width,
            y_start=ty * self.chunk_height,
            x_end=min((tx + 1) * self.chunk_width, self.total_width),
            y_end=min((ty + 1) * self.chunk_height, self.total_height),
        )

    def tile_index_for_pixel(self, x: int, y: int) -> int:
        """Row-major index of the tile that owns pixel ``(x, y)``."""
        if not (0 <= x < self.total_width and 0 <= y < self.total_height):
            raise IndexOutOfBounds(
                ErrorMessages.PIXEL_OUT_OF_RANGE.format(x, y, self.total_width, self.total_height)
            )
        return (y // self.chunk_height) * self.num_tiles_x + (x // self.chunk_width)

    def iter_rects(self) -> Iterator[TileRect]:
        """Yield every tile rectangle, ``ty`` outer and ``tx`` inner."""
        for ty in range(self.num_tiles_y):
            for tx in range(self.num_tiles_x):
                yield self.tile_rect(tx, ty)

    def __repr__(self) -> str:
        return (
            f"TileLayout({self.total_width}x{self.total_height} px, "
            f"chunk {self.chunk_width}x{self.chunk_height}, "
            f"{self.num_tiles_x}x{self.num_tiles_y} tiles)"
        )


def _require_positive(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value <= 0:
        raise ValueError(ErrorMessages.INVALID_DIMENSION.format(name, value))
