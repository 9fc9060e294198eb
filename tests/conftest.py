"""Shared test fixtures for dem-bakery."""

import numpy as np
import pytest
from PIL import Image


@pytest.fixture
def ramp_raster():
    """4x4 single-channel raster with [0, 85, 170, 255] repeated per row."""
    return np.tile(np.array([0, 85, 170, 255], dtype=np.uint8), (4, 1))


@pytest.fixture
def ramp_profile():
    """Profile matching ramp_raster with a 100m elevation scale."""
    from dem_bakery.core.chunk import ElevationProfile

    return ElevationProfile(
        total_width_px=4, total_height_px=4, meters_per_pixel=1.0, max_elevation_m=100.0
    )


@pytest.fixture
def ramp_chunk(ramp_raster, ramp_profile):
    """The single 4x4 chunk baked from ramp_raster."""
    from dem_bakery.core.ingest import ingest

    return ingest(ramp_raster, 4, 4, 4, 4, ramp_profile)[0]


def gradient_values(width: int, height: int) -> np.ndarray:
    """uint16 raster where the value at (x, y) is 5000*x + 700*y."""
    ys, xs = np.mgrid[0:height, 0:width]
    return (xs * 5000 + ys * 700).astype(np.uint16)


@pytest.fixture
def gradient_raster():
    """10x7 uint16 raster with a known linear gradient."""
    return gradient_values(10, 7)


@pytest.fixture
def gradient_profile():
    """Profile matching gradient_raster with a 2000m elevation scale."""
    from dem_bakery.core.chunk import ElevationProfile

    return ElevationProfile(
        total_width_px=10, total_height_px=7, meters_per_pixel=463.0, max_elevation_m=2000.0
    )


@pytest.fixture
def gradient_chunk(gradient_raster, gradient_profile):
    """The gradient raster as one 10x7 chunk."""
    from dem_bakery.core.ingest import ingest_whole

    return ingest_whole(gradient_raster, gradient_profile)


@pytest.fixture
def raster_png(tmp_path):
    """10x7 8-bit grayscale PNG on disk; value at (x, y) is 20*x + 3*y."""
    ys, xs = np.mgrid[0:7, 0:10]
    pixels = (xs * 20 + ys * 3).astype(np.uint8)
    path = tmp_path / "terrain.png"
    Image.fromarray(pixels).save(path)
    return path


@pytest.fixture
def manager(tmp_path):
    """ChunkManager writing into a temporary directory."""
    from dem_bakery.core.chunk_manager import ChunkManager

    return ChunkManager(output_dir=tmp_path / "out", chunk_width=4, chunk_height=3)
