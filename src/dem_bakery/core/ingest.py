"""
Tiled ingestion of a decoded elevation raster into half-precision chunks.

The elevation is read from the first channel of the raster, normalised by
the channel's maximum representable value, and quantised to half precision.
Each pixel lands in exactly one chunk, so chunks are filled block by block
from slices of the source array.
"""

import dataclasses
import logging
from collections.abc import Callable
from typing import Any

import numpy as np
from numpy.typing import NDArray

from ..constants import ErrorMessages
from .chunk import ElevationChunk, ElevationProfile, quantize
from .errors import DecodeFailure, DimensionMismatch
from .tiling import TileLayout

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def ingest(
    raster: NDArray[Any],
    total_width: int,
    total_height: int,
    chunk_width: int,
    chunk_height: int,
    profile: ElevationProfile,
    progress_callback: ProgressCallback | None = None,
) -> list[ElevationChunk]:
    """
    Split a raster into quantised elevation chunks.

    Args:
        raster: Decoded pixels, shaped (H, W) or (H, W, C), unsigned integers
        total_width: Expected raster width in pixels
        total_height: Expected raster height in pixels
        chunk_width: Nominal chunk width in pixels
        chunk_height: Nominal chunk height in pixels
        profile: Mosaic profile copied into every chunk
        progress_callback: Optional ``callback(done, total)`` called after
            each chunk is filled

    Returns:
        Chunks in row-major tile order

    Raises:
        DimensionMismatch: Raster size differs from ``total_width x total_height``
        DecodeFailure: Raster is not an unsigned-integer image
    """
    pixels = elevation_channel(raster)
    height, width = pixels.shape
    if (width, height) != (total_width, total_height):
        raise DimensionMismatch(
            ErrorMessages.DIMENSION_MISMATCH.format(width, height, total_width, total_height)
        )

    layout = TileLayout(total_width, total_height, chunk_width, chunk_height)
    channel_max = np.float32(np.iinfo(pixels.dtype).max)
    total = layout.num_tiles
    logger.info(f"Ingesting {width}x{height} raster as {layout}")

    chunks: list[ElevationChunk] = []
    for index, rect in enumerate(layout.iter_rects()):
        block = pixels[rect.y_start : rect.y_end, rect.x_start : rect.x_end]
        grid = quantize(block.astype(np.float32) / channel_max).reshape(-1)

        chunks.append(
            ElevationChunk(
                offset_x=rect.x_start,
                offset_y=rect.y_start,
                width=rect.width,
                height=rect.height,
                profile=dataclasses.replace(profile),
                grid=grid,
            )
        )

        done = index + 1
        if progress_callback is not None:
            progress_callback(done, total)
        if done % layout.num_tiles_x == 0:
            logger.info(f"Parsed tile row {done // layout.num_tiles_x}/{layout.num_tiles_y}")

    logger.info(f"Finished ingesting {len(chunks)} chunks")
    return chunks


def ingest_whole(raster: NDArray[Any], profile: ElevationProfile | None = None) -> ElevationChunk:
    """Load a raster as a single chunk covering the whole image.

    When no profile is given, one sized to the raster with unit scale is used.
    """
    height, width = elevation_channel(raster).shape
    if profile is None:
        profile = ElevationProfile(total_width_px=width, total_height_px=height)
    return ingest(raster, width, height, width, height, profile)[0]


def elevation_channel(raster: NDArray[Any]) -> NDArray[np.unsignedinteger[Any]]:
    """Return the elevation-carrying (first) channel as a 2-D array."""
    array = np.asarray(raster)

    if array.ndim == 3:
        array = array[:, :, 0]
    elif array.ndim != 2:
        raise DecodeFailure(ErrorMessages.UNSUPPORTED_SHAPE.format(array.shape))

    if array.dtype.kind != "u":
        raise DecodeFailure(ErrorMessages.UNSUPPORTED_DTYPE.format(array.dtype))

    return array
