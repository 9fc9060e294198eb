"""
Constants for dem-bakery.

All magic strings, defaults, and message templates live here.
"""


class BakeryConfig:
    NAME = "dem-bakery"
    VERSION = "0.1.0"
    DESCRIPTION = "Tiled half-precision baking and sampling of planetary elevation mosaics"


class EnvVar:
    OUTPUT_DIR = "DEM_BAKERY_OUTPUT_DIR"
    CHUNK_SIZE = "DEM_BAKERY_CHUNK_SIZE"
    LOG_LEVEL = "DEM_BAKERY_LOG_LEVEL"


class DatasetId:
    MARS_MOLA = "mars_mola"
    MARS_HRSC_MOLA_BLEND = "mars_hrsc_mola_blend"


DEFAULT_DATASET = DatasetId.MARS_MOLA

# Chunking
DEFAULT_CHUNK_SIZE = 1024 * 8
CHUNK_FILE_EXTENSION = "dem"
MANIFEST_FILENAME = "manifest.json"
CHUNK_FORMAT_VERSION = 1

# Fields written to every persisted chunk
CHUNK_FIELDS = ["version", "offset", "size", "profile_size", "profile_scale", "grid"]

# Sampling
INTERPOLATION_METHODS = ["nearest", "bilinear"]
DEFAULT_INTERPOLATION = "bilinear"

# Chunk cache (decoded grids, bytes of uint16 payload)
CHUNK_CACHE_MAX_BYTES = 512 * 1024 * 1024  # 512 MB total
CHUNK_CACHE_MAX_ITEM = 256 * 1024 * 1024  # 256 MB per chunk

# Download & retry
DOWNLOAD_BLOCK_BYTES = 1024 * 1024
DOWNLOAD_TIMEOUT_S = 60
RETRY_ATTEMPTS = 3
RETRY_WAIT_MIN = 1
RETRY_WAIT_MAX = 10

# Output
OUTPUT_MODES = ["json", "text"]
DEFAULT_LOG_LEVEL = "INFO"


class ErrorMessages:
    UNKNOWN_DATASET = "Unknown dataset '{}'. Available: {}"
    INVALID_DIMENSION = "{} must be a positive integer, got {}"
    NOT_DIVISIBLE = "Raster size {}x{} is not divisible by chunk size {}x{}"
    TILE_OUT_OF_RANGE = "Tile ({}, {}) outside tile grid {}x{}"
    PIXEL_OUT_OF_RANGE = "Pixel ({}, {}) outside chunk of size {}x{}"
    NON_INTEGER_PIXEL = "Pixel ({!r}, {!r}) is not an integer index"
    DIMENSION_MISMATCH = "Raster is {}x{} pixels but the profile expects {}x{}"
    DECODE_FAILED = "Failed to decode raster {}: {}"
    UNSUPPORTED_DTYPE = "Unsupported raster dtype '{}'. Expected an unsigned integer type"
    UNSUPPORTED_SHAPE = "Unsupported raster shape {}. Expected (H, W) or (H, W, C)"
    GRID_LENGTH = "Chunk grid has {} samples but its size {}x{} needs {}"
    GRID_RANGE = "Chunk grid values must fit in 16 bits, got range [{}, {}]"
    CORRUPT_CHUNK = "Corrupt chunk: {}"
    MISSING_FIELD = "missing field '{}'"
    INVALID_INTERPOLATION = "Invalid interpolation '{}'. Available: {}"
    NAN_COORDINATE = "Sampling coordinate must not be NaN, got ({}, {})"
    NO_OWNING_CHUNK = "No chunk in the manifest covers pixel ({}, {})"
    NO_PROFILE = "Either a dataset or a full profile (width, height) is required"


class SuccessMessages:
    DATASETS_LIST = "{} datasets available"
    DATASET_DESCRIBE = "Dataset: {} ({}x{} px, {}m/px)"
    BAKE_COMPLETE = "Baked {} chunks ({}x{} tiles) from {}"
    CHUNK_INFO = "Chunk at offset ({}, {}), {}x{} px"
    SAMPLE_COMPLETE = "Elevation at point: {:.3f}m"
    PREVIEW_WRITTEN = "Preview written to {}"
    DOWNLOAD_COMPLETE = "Downloaded {:.1f} MB to {}"
