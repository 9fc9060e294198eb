"""Tests for dem_bakery.core.ingest."""

from unittest.mock import MagicMock

import numpy as np
import pytest

from conftest import gradient_values
from dem_bakery.core.chunk import ElevationProfile, dequantize, quantize
from dem_bakery.core.errors import DecodeFailure, DimensionMismatch
from dem_bakery.core.ingest import elevation_channel, ingest, ingest_whole


def _profile(width, height, max_elevation_m=1.0):
    return ElevationProfile(width, height, 1.0, max_elevation_m)


class TestIngestScenario:
    """4x4 ramp baked as one chunk."""

    def test_single_chunk(self, ramp_raster, ramp_profile):
        chunks = ingest(ramp_raster, 4, 4, 4, 4, ramp_profile)
        assert len(chunks) == 1
        chunk = chunks[0]
        assert (chunk.offset_x, chunk.offset_y, chunk.width, chunk.height) == (0, 0, 4, 4)
        assert chunk.get_elevation(2, 0) == pytest.approx(66.67, abs=0.05)

    def test_full_channel_value_is_exactly_one(self, ramp_chunk):
        assert int(ramp_chunk.grid[3]) == 0x3C00
        assert int(ramp_chunk.grid[0]) == 0x0000


class TestIngestTiling:
    """Chunks follow the tile layout."""

    def test_trailing_tiles_are_clipped(self, gradient_raster, gradient_profile):
        chunks = ingest(gradient_raster, 10, 7, 4, 3, gradient_profile)
        assert len(chunks) == 9
        sizes = [(c.width, c.height) for c in chunks]
        assert sizes == [
            (4, 3), (4, 3), (2, 3),
            (4, 3), (4, 3), (2, 3),
            (4, 1), (4, 1), (2, 1),
        ]  # fmt: skip

    def test_row_major_offsets(self, gradient_raster, gradient_profile):
        chunks = ingest(gradient_raster, 10, 7, 4, 3, gradient_profile)
        offsets = [(c.offset_x, c.offset_y) for c in chunks]
        assert offsets[:4] == [(0, 0), (4, 0), (8, 0), (0, 3)]
        assert offsets[-1] == (8, 6)

    def test_every_pixel_lands_in_its_chunk(self, gradient_raster, gradient_profile):
        """Each source pixel is reproduced at its local position in the owning chunk."""
        chunks = ingest(gradient_raster, 10, 7, 4, 3, gradient_profile)
        expected = quantize(gradient_raster.astype(np.float32) / np.float32(65535))
        for chunk in chunks:
            local = chunk.grid.reshape(chunk.height, chunk.width)
            rect = chunk.rect
            np.testing.assert_array_equal(
                local, expected[rect.y_start : rect.y_end, rect.x_start : rect.x_end]
            )

    def test_pixel_fidelity(self, gradient_raster, gradient_profile):
        chunks = ingest(gradient_raster, 10, 7, 4, 3, gradient_profile)
        chunk = chunks[4]  # offset (4, 3)
        source = int(gradient_raster[4, 6])
        expected = source / 65535 * gradient_profile.max_elevation_m
        assert chunk.get_elevation(2, 1) == pytest.approx(expected, rel=2.0**-11)

    def test_matches_per_pixel_quantisation(self):
        raster = gradient_values(5, 5)
        chunk = ingest(raster, 5, 5, 5, 5, _profile(5, 5))[0]
        for y in range(5):
            for x in range(5):
                fraction = np.float32(raster[y, x]) / np.float32(65535)
                assert int(chunk.grid[y * 5 + x]) == int(quantize(fraction))

    def test_chunk_larger_than_raster(self, gradient_raster, gradient_profile):
        chunks = ingest(gradient_raster, 10, 7, 64, 64, gradient_profile)
        assert len(chunks) == 1
        assert (chunks[0].width, chunks[0].height) == (10, 7)

    def test_profile_is_copied_into_each_chunk(self, gradient_raster, gradient_profile):
        chunks = ingest(gradient_raster, 10, 7, 4, 3, gradient_profile)
        for chunk in chunks:
            assert chunk.profile == gradient_profile
        assert chunks[0].profile is not chunks[1].profile

    def test_invalid_chunk_size(self, gradient_raster, gradient_profile):
        with pytest.raises(ValueError, match="must be a positive integer"):
            ingest(gradient_raster, 10, 7, 0, 3, gradient_profile)


class TestIngestChannels:
    """Only the first channel carries elevation."""

    def test_first_channel_only(self):
        rgb = np.zeros((2, 2, 3), dtype=np.uint8)
        rgb[:, :, 0] = 255
        rgb[:, :, 1] = 17
        rgb[:, :, 2] = 200
        chunk = ingest(rgb, 2, 2, 2, 2, _profile(2, 2, 50.0))[0]
        assert all(int(bits) == 0x3C00 for bits in chunk.grid)
        assert chunk.get_elevation(1, 1) == 50.0

    def test_sixteen_bit_normalised_by_65535(self):
        raster = np.array([[0, 32768, 65535]], dtype=np.uint16)
        chunk = ingest(raster, 3, 1, 3, 1, _profile(3, 1))[0]
        np.testing.assert_allclose(
            dequantize(chunk.grid), [0.0, 32768 / 65535, 1.0], rtol=2.0**-11
        )

    def test_elevation_channel_two_dimensional_passthrough(self, ramp_raster):
        assert elevation_channel(ramp_raster) is not None
        assert elevation_channel(ramp_raster).shape == (4, 4)

    def test_signed_raster_rejected(self):
        with pytest.raises(DecodeFailure, match="Unsupported raster dtype"):
            elevation_channel(np.zeros((2, 2), dtype=np.int16))

    def test_float_raster_rejected(self):
        with pytest.raises(DecodeFailure):
            elevation_channel(np.zeros((2, 2), dtype=np.float32))

    def test_one_dimensional_raster_rejected(self):
        with pytest.raises(DecodeFailure, match="Unsupported raster shape"):
            elevation_channel(np.zeros(4, dtype=np.uint8))


class TestIngestErrors:
    def test_dimension_mismatch(self, ramp_raster, ramp_profile):
        with pytest.raises(DimensionMismatch, match="Raster is 4x4 pixels but the profile expects 5x4"):
            ingest(ramp_raster, 5, 4, 4, 4, ramp_profile)

    def test_dimension_mismatch_is_value_error(self, ramp_raster, ramp_profile):
        with pytest.raises(ValueError):
            ingest(ramp_raster, 4, 3, 4, 4, ramp_profile)

    def test_no_progress_on_failure(self, ramp_raster, ramp_profile):
        callback = MagicMock()
        with pytest.raises(DimensionMismatch):
            ingest(ramp_raster, 8, 8, 4, 4, ramp_profile, progress_callback=callback)
        callback.assert_not_called()


class TestProgress:
    def test_called_once_per_chunk(self, gradient_raster, gradient_profile):
        callback = MagicMock()
        ingest(gradient_raster, 10, 7, 4, 3, gradient_profile, progress_callback=callback)
        assert callback.call_count == 9
        assert callback.call_args_list[0].args == (1, 9)
        assert callback.call_args_list[-1].args == (9, 9)

    def test_logs_each_tile_row(self, gradient_raster, gradient_profile, caplog):
        with caplog.at_level("INFO", logger="dem_bakery.core.ingest"):
            ingest(gradient_raster, 10, 7, 4, 3, gradient_profile)
        rows = [r.getMessage() for r in caplog.records if "Parsed tile row" in r.getMessage()]
        assert rows == ["Parsed tile row 1/3", "Parsed tile row 2/3", "Parsed tile row 3/3"]


class TestIngestWhole:
    def test_default_profile(self, gradient_raster):
        chunk = ingest_whole(gradient_raster)
        assert (chunk.width, chunk.height) == (10, 7)
        assert chunk.profile == ElevationProfile(10, 7, 1.0, 1.0)

    def test_given_profile(self, gradient_raster, gradient_profile):
        chunk = ingest_whole(gradient_raster, gradient_profile)
        assert chunk.profile.max_elevation_m == 2000.0
        assert chunk.get_elevation(0, 0) == 0.0
