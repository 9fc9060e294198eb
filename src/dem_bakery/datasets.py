"""
Registry of known elevation mosaics.

Each entry pairs a mosaic's profile with the chunk size it is baked at and
the places its source raster can be fetched from.
"""

from dataclasses import dataclass

from .constants import DEFAULT_CHUNK_SIZE, DatasetId, ErrorMessages
from .core.chunk import ElevationProfile


@dataclass(frozen=True)
class DatasetEntry:
    """Static configuration for one mosaic."""

    id: str
    name: str
    original_data_src: str
    archived_data_src: str
    profile: ElevationProfile
    chunk_size: int = DEFAULT_CHUNK_SIZE

    @property
    def source_name(self) -> str:
        """Stem of the source file name, used to name baked chunks."""
        filename = self.original_data_src.rsplit("/", 1)[-1]
        return filename.rsplit(".", 1)[0]


DATASETS: dict[str, DatasetEntry] = {
    DatasetId.MARS_MOLA: DatasetEntry(
        id=DatasetId.MARS_MOLA,
        name="Mars MGS MOLA DEM 463m",
        original_data_src=(
            "https://planetarymaps.usgs.gov/mosaic/Mars_MGS_MOLA_DEM_mosaic_global_463m.tif"
        ),
        archived_data_src=(
            "https://drive.google.com/file/d/1wWgo6Fg_CNKGA26MO2i125k1knwDA6fs/view?usp=sharing"
        ),
        profile=ElevationProfile(
            total_width_px=46080,
            total_height_px=23040,
            meters_per_pixel=463.0,
            max_elevation_m=1.0,
        ),
    ),
    DatasetId.MARS_HRSC_MOLA_BLEND: DatasetEntry(
        id=DatasetId.MARS_HRSC_MOLA_BLEND,
        name="Mars HRSC/MOLA Blended DEM 200m",
        original_data_src=(
            "https://planetarymaps.usgs.gov/mosaic/Mars/HRSC_MOLA_Blend/"
            "Mars_HRSC_MOLA_BlendDEM_Global_200mp_v2.tif"
        ),
        archived_data_src=(
            "https://drive.google.com/file/d/1G_x3rypkYM_UoqroRskB8oMpKIKr55S3/view?usp=sharing"
        ),
        profile=ElevationProfile(
            total_width_px=106694,
            total_height_px=53347,
            meters_per_pixel=200.0,
            max_elevation_m=1.0,
        ),
    ),
}

ALL_DATASET_IDS = list(DATASETS.keys())


def get_dataset(dataset_id: str) -> DatasetEntry:
    """Look up a dataset entry by id."""
    if dataset_id not in DATASETS:
        raise ValueError(
            ErrorMessages.UNKNOWN_DATASET.format(dataset_id, ", ".join(ALL_DATASET_IDS))
        )
    return DATASETS[dataset_id]
