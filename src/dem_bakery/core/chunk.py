"""
Elevation chunks and point sampling.

A chunk is an immutable rectangular piece of a larger elevation mosaic. Its
grid stores each sample as the bit pattern of a half-precision float holding
the normalised elevation fraction; the profile's ``max_elevation_m`` scales
that fraction back to metres on read.
"""

import logging
import math
import numbers
from dataclasses import asdict, dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray

from ..constants import DEFAULT_INTERPOLATION, INTERPOLATION_METHODS, ErrorMessages
from .errors import CorruptChunk, IndexOutOfBounds
from .tiling import TileRect

logger = logging.getLogger(__name__)

# Type aliases
HalfBits = NDArray[np.uint16]
FloatArray = NDArray[np.floating[Any]]

# Distance (in pixels) within which a scaled coordinate is treated as lying
# exactly on a grid point
_GRID_SNAP = 1e-9


# ---------------------------------------------------------------------------
# Half-precision codec
# ---------------------------------------------------------------------------


def quantize(fractions: FloatArray) -> HalfBits:
    """Convert elevation fractions to half-precision bit patterns.

    numpy's float32 -> float16 cast rounds to nearest, ties to even, so
    ``dequantize(quantize(f))`` is the closest representable half to ``f``.
    """
    halves = np.asarray(fractions, dtype=np.float32).astype(np.float16)
    return halves.view(np.uint16)


def dequantize(bits: HalfBits) -> NDArray[np.float32]:
    """Decode half-precision bit patterns back to float32 fractions."""
    return np.asarray(bits, dtype=np.uint16).view(np.float16).astype(np.float32)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ElevationProfile:
    """Metadata for a whole (unchunked) mosaic.

    ``max_elevation_m`` is applied when reading every chunk baked from this
    profile, so the same value must travel with each chunk.
    """

    total_width_px: int = 1
    total_height_px: int = 1
    meters_per_pixel: float = 1.0
    max_elevation_m: float = 1.0

    def __post_init__(self) -> None:
        for name in ("total_width_px", "total_height_px"):
            value = getattr(self, name)
            if isinstance(value, bool) or int(value) != value or value <= 0:
                raise ValueError(ErrorMessages.INVALID_DIMENSION.format(name, value))
            object.__setattr__(self, name, int(value))
        if not math.isfinite(self.max_elevation_m):
            raise ValueError(f"max_elevation_m must be finite, got {self.max_elevation_m}")
        object.__setattr__(self, "meters_per_pixel", float(self.meters_per_pixel))
        object.__setattr__(self, "max_elevation_m", float(self.max_elevation_m))

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ElevationProfile":
        return cls(
            total_width_px=data["total_width_px"],
            total_height_px=data["total_height_px"],
            meters_per_pixel=data["meters_per_pixel"],
            max_elevation_m=data["max_elevation_m"],
        )


@dataclass(frozen=True, eq=False)
class ElevationChunk:
    """A rectangular, independently loadable piece of an elevation mosaic.

    Attributes:
        offset_x: Column of the chunk's top-left pixel within the mosaic
        offset_y: Row of the chunk's top-left pixel within the mosaic
        width: Chunk width in pixels (may be short at the mosaic edge)
        height: Chunk height in pixels (may be short at the mosaic edge)
        profile: Copy of the mosaic profile
        grid: Row-major half-precision bit patterns, ``width * height`` long
    """

    offset_x: int
    offset_y: int
    width: int
    height: int
    profile: ElevationProfile
    grid: HalfBits = field(repr=False)

    def __post_init__(self) -> None:
        for name in ("offset_x", "offset_y"):
            value = int(getattr(self, name))
            if value < 0:
                raise CorruptChunk(ErrorMessages.CORRUPT_CHUNK.format(f"{name} is {value}"))
            object.__setattr__(self, name, value)
        for name in ("width", "height"):
            value = int(getattr(self, name))
            if value <= 0:
                raise CorruptChunk(ErrorMessages.CORRUPT_CHUNK.format(f"{name} is {value}"))
            object.__setattr__(self, name, value)

        grid = np.asarray(self.grid)
        if grid.ndim != 1 or (grid.size and grid.dtype.kind not in "ui"):
            raise CorruptChunk(
                ErrorMessages.CORRUPT_CHUNK.format(
                    f"grid must be a flat integer array, got {grid.dtype} {grid.shape}"
                )
            )
        expected = self.width * self.height
        if grid.size != expected:
            raise CorruptChunk(
                ErrorMessages.GRID_LENGTH.format(grid.size, self.width, self.height, expected)
            )

        if grid.dtype != np.uint16 and grid.size:
            low, high = int(grid.min()), int(grid.max())
            if low < 0 or high > np.iinfo(np.uint16).max:
                raise CorruptChunk(ErrorMessages.GRID_RANGE.format(low, high))

        grid = grid.astype(np.uint16, copy=False).view()
        grid.flags.writeable = False
        object.__setattr__(self, "grid", grid)
        object.__setattr__(self, "_halves", grid.view(np.float16))

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    @property
    def rect(self) -> TileRect:
        """Pixel rectangle covered by this chunk within the mosaic."""
        return TileRect(
            x_start=self.offset_x,
            y_start=self.offset_y,
            x_end=self.offset_x + self.width,
            y_end=self.offset_y + self.height,
        )

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------

    def get_elevation(self, x: int, y: int) -> float:
        """Elevation in metres at local pixel ``(x, y)``.

        Indices must be integers; use ``sample_unit_square`` for fractional
        positions.
        """
        if not (_is_index(x) and _is_index(y)):
            raise IndexOutOfBounds(ErrorMessages.NON_INTEGER_PIXEL.format(x, y))
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexOutOfBounds(
                ErrorMessages.PIXEL_OUT_OF_RANGE.format(x, y, self.width, self.height)
            )
        return self._fraction(int(x), int(y)) * self.profile.max_elevation_m

    def sample_geographic(
        self,
        latitude_rad: float,
        longitude_rad: float,
        interpolation: str = DEFAULT_INTERPOLATION,
    ) -> float:
        """Sample elevation at a latitude/longitude given in radians.

        The chunk is treated as spanning longitude -180..180 (left to right)
        and latitude 90..-90 (top to bottom). Callers sampling one piece of
        a larger mosaic translate coordinates into that piece first.
        """
        u = (math.degrees(longitude_rad) + 180.0) / 360.0
        v = (90.0 - math.degrees(latitude_rad)) / 180.0
        return self.sample_unit_square(u, v, interpolation)

    def sample_unit_square(
        self,
        u: float,
        v: float,
        interpolation: str = DEFAULT_INTERPOLATION,
    ) -> float:
        """Sample elevation at unit-square coordinate ``(u, v)``.

        ``u`` runs left to right and ``v`` top to bottom. Values outside
        ``[0, 1]`` are clamped to the chunk edge.

        Args:
            u: Horizontal coordinate in [0, 1]
            v: Vertical coordinate in [0, 1]
            interpolation: "bilinear" (default) or "nearest"

        Returns:
            Elevation in metres
        """
        if math.isnan(u) or math.isnan(v):
            raise ValueError(ErrorMessages.NAN_COORDINATE.format(u, v))

        fx = _to_pixel_space(min(max(u, 0.0), 1.0), self.width)
        fy = _to_pixel_space(min(max(v, 0.0), 1.0), self.height)

        if interpolation == "nearest":
            x = min(int(math.floor(fx + 0.5)), self.width - 1)
            y = min(int(math.floor(fy + 0.5)), self.height - 1)
            return self._fraction(x, y) * self.profile.max_elevation_m

        elif interpolation == "bilinear":
            return self._bilinear(fx, fy) * self.profile.max_elevation_m

        else:
            raise ValueError(
                ErrorMessages.INVALID_INTERPOLATION.format(
                    interpolation, ", ".join(INTERPOLATION_METHODS)
                )
            )

    def sample_points(
        self,
        points: list[list[float]],
        interpolation: str = DEFAULT_INTERPOLATION,
    ) -> list[float]:
        """Sample elevation at multiple ``[latitude_rad, longitude_rad]`` points."""
        return [self.sample_geographic(lat, lon, interpolation) for lat, lon in points]

    def elevation_grid(self) -> NDArray[np.float32]:
        """Dequantised grid in metres, shaped ``(height, width)``."""
        fractions = dequantize(self.grid).reshape(self.height, self.width)
        return fractions * np.float32(self.profile.max_elevation_m)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _fraction(self, x: int, y: int) -> float:
        """Dequantised (unscaled) fraction at local pixel ``(x, y)``."""
        return float(self._halves[y * self.width + x])

    def _bilinear(self, fx: float, fy: float) -> float:
        """Bilinear blend of the four texels around pixel-space ``(fx, fy)``."""
        x0 = int(math.floor(fx))
        y0 = int(math.floor(fy))

        # Clamp rather than wrap so the far edge repeats its last pixel
        x1 = min(x0 + 1, self.width - 1)
        y1 = min(y0 + 1, self.height - 1)

        tx = fx - x0
        ty = fy - y0

        v00 = self._fraction(x0, y0)  # top-left
        v10 = self._fraction(x1, y0)  # top-right
        v01 = self._fraction(x0, y1)  # bottom-left
        v11 = self._fraction(x1, y1)  # bottom-right

        top = v00 * (1.0 - tx) + v10 * tx
        bottom = v01 * (1.0 - tx) + v11 * tx
        return top * (1.0 - ty) + bottom * ty


def _is_index(value: Any) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def _to_pixel_space(t: float, size: int) -> float:
    """Scale a clamped unit coordinate onto ``[0, size - 1]``."""
    if size <= 1:
        return 0.0
    f = t * (size - 1)
    nearest = round(f)
    if abs(f - nearest) < _GRID_SNAP:
        return float(nearest)
    return f
