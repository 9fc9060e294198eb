"""Baking and sampling core."""

from .chunk import ElevationChunk, ElevationProfile, dequantize, quantize
from .errors import (
    CorruptChunk,
    DecodeFailure,
    DemBakeryError,
    DimensionMismatch,
    IndexOutOfBounds,
)
from .ingest import ingest, ingest_whole
from .tiling import TileLayout, TileRect

__all__ = [
    "ElevationProfile",
    "ElevationChunk",
    "quantize",
    "dequantize",
    "TileLayout",
    "TileRect",
    "ingest",
    "ingest_whole",
    "DemBakeryError",
    "DimensionMismatch",
    "DecodeFailure",
    "IndexOutOfBounds",
    "CorruptChunk",
]
