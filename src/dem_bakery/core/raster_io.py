"""
Raster and chunk I/O.

Decodes source rasters with Pillow, downloads dataset mosaics, encodes
chunks to and from bytes, and renders chunk previews. The ingestion and
sampling core never touches files; everything here sits around it.
"""

import io
import logging
import zipfile
from pathlib import Path
from typing import Any

import numpy as np
import requests
from numpy.typing import NDArray
from PIL import Image, UnidentifiedImageError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..constants import (
    CHUNK_FIELDS,
    CHUNK_FILE_EXTENSION,
    CHUNK_FORMAT_VERSION,
    DOWNLOAD_BLOCK_BYTES,
    DOWNLOAD_TIMEOUT_S,
    RETRY_ATTEMPTS,
    RETRY_WAIT_MAX,
    RETRY_WAIT_MIN,
    ErrorMessages,
)
from .chunk import ElevationChunk, ElevationProfile
from .errors import CorruptChunk, DecodeFailure

logger = logging.getLogger(__name__)

# Pillow modes whose samples are already unsigned integers per channel
_UINT8_MODES = {"L", "LA", "RGB", "RGBA", "RGBX"}
_UINT16_MODES = {"I;16", "I;16L", "I;16B", "I;16N"}

# Expected (shape, dtype kinds) of every scalar/pair field of a chunk archive
_FIELD_LAYOUT = [
    ("version", (), "ui"),
    ("offset", (2,), "ui"),
    ("size", (2,), "ui"),
    ("profile_size", (2,), "ui"),
    ("profile_scale", (2,), "f"),
]


# ---------------------------------------------------------------------------
# Retry decorator for network I/O
# ---------------------------------------------------------------------------

_retry_network = retry(
    stop=stop_after_attempt(RETRY_ATTEMPTS),
    wait=wait_exponential(multiplier=1, min=RETRY_WAIT_MIN, max=RETRY_WAIT_MAX),
    retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
    reraise=True,
)


# ---------------------------------------------------------------------------
# Raster decoding
# ---------------------------------------------------------------------------


def read_raster(path: str | Path) -> NDArray[np.unsignedinteger[Any]]:
    """
    Decode a raster file into an unsigned-integer pixel array.

    Args:
        path: Image file readable by Pillow (PNG, TIFF, ...)

    Returns:
        Array shaped (H, W) or (H, W, C), dtype uint8 or uint16

    Raises:
        DecodeFailure: The file is missing, corrupt, or has unsupported pixels
    """
    # Planetary mosaics are far above Pillow's decompression-bomb limit
    pixel_limit = Image.MAX_IMAGE_PIXELS
    Image.MAX_IMAGE_PIXELS = None

    try:
        with Image.open(path) as img:
            img.load()
            array = image_to_array(img)
    except (UnidentifiedImageError, OSError) as e:
        raise DecodeFailure(ErrorMessages.DECODE_FAILED.format(path, e)) from e
    finally:
        Image.MAX_IMAGE_PIXELS = pixel_limit

    logger.info(f"Decoded {path}: {array.shape[1]}x{array.shape[0]} px, {array.dtype}")
    return array


def image_to_array(img: Image.Image) -> NDArray[np.unsignedinteger[Any]]:
    """Convert a decoded Pillow image to a native-endian unsigned array."""
    if img.mode in _UINT8_MODES:
        return np.asarray(img, dtype=np.uint8)

    if img.mode in _UINT16_MODES:
        return np.asarray(img).astype(np.uint16)

    if img.mode == "I":
        # 32-bit signed container, commonly holding 16-bit samples
        return np.clip(np.asarray(img), 0, np.iinfo(np.uint16).max).astype(np.uint16)

    if img.mode in ("P", "PA", "1"):
        return np.asarray(img.convert("RGB"), dtype=np.uint8)

    raise DecodeFailure(ErrorMessages.UNSUPPORTED_DTYPE.format(img.mode))


# ---------------------------------------------------------------------------
# Source download
# ---------------------------------------------------------------------------


@_retry_network
def download_source(
    url: str,
    dest: str | Path,
    block_bytes: int = DOWNLOAD_BLOCK_BYTES,
) -> int:
    """
    Stream a dataset source file to disk.

    The body is written to ``<dest>.part`` and renamed once complete, so an
    interrupted download never leaves a truncated file at ``dest``.

    Args:
        url: HTTP(S) URL of the source raster
        dest: Destination file path
        block_bytes: Streaming block size

    Returns:
        Number of bytes written
    """
    dest = Path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    partial = dest.with_name(dest.name + ".part")

    written = 0
    with requests.get(url, stream=True, timeout=DOWNLOAD_TIMEOUT_S) as response:
        response.raise_for_status()
        with open(partial, "wb") as fh:
            for block in response.iter_content(chunk_size=block_bytes):
                fh.write(block)
                written += len(block)

    partial.replace(dest)
    logger.info(f"Downloaded {url} -> {dest} ({written} bytes)")
    return written


# ---------------------------------------------------------------------------
# Chunk persistence
# ---------------------------------------------------------------------------


def chunk_filename(source_name: str, chunk: ElevationChunk) -> str:
    """File name for a chunk: ``<source>_<x-offset>_<y-offset>.dem``."""
    return f"{source_name}_{chunk.offset_x}_{chunk.offset_y}.{CHUNK_FILE_EXTENSION}"


def chunk_to_bytes(chunk: ElevationChunk) -> bytes:
    """Encode a chunk's fields as an uncompressed ``.npz`` archive."""
    profile = chunk.profile
    buf = io.BytesIO()
    np.savez(
        buf,
        version=np.array(CHUNK_FORMAT_VERSION, dtype=np.uint32),
        offset=np.array([chunk.offset_x, chunk.offset_y], dtype=np.uint32),
        size=np.array([chunk.width, chunk.height], dtype=np.uint32),
        profile_size=np.array(
            [profile.total_width_px, profile.total_height_px], dtype=np.uint32
        ),
        profile_scale=np.array(
            [profile.meters_per_pixel, profile.max_elevation_m], dtype=np.float64
        ),
        grid=chunk.grid,
    )
    return buf.getvalue()


def chunk_from_bytes(data: bytes) -> ElevationChunk:
    """
    Decode a chunk written by ``chunk_to_bytes``.

    Raises:
        CorruptChunk: The archive is unreadable, incomplete, or inconsistent
    """
    try:
        archive = np.load(io.BytesIO(data), allow_pickle=False)
    except (ValueError, OSError, EOFError, zipfile.BadZipFile) as e:
        raise CorruptChunk(ErrorMessages.CORRUPT_CHUNK.format(e)) from e

    if not isinstance(archive, np.lib.npyio.NpzFile):
        raise CorruptChunk(ErrorMessages.CORRUPT_CHUNK.format("not a chunk archive"))

    with archive:
        for name in CHUNK_FIELDS:
            if name not in archive.files:
                raise CorruptChunk(
                    ErrorMessages.CORRUPT_CHUNK.format(ErrorMessages.MISSING_FIELD.format(name))
                )
        try:
            fields = {name: archive[name] for name in CHUNK_FIELDS}
        except (ValueError, OSError, zipfile.BadZipFile) as e:
            raise CorruptChunk(ErrorMessages.CORRUPT_CHUNK.format(e)) from e

    for name, shape, kinds in _FIELD_LAYOUT:
        value = fields[name]
        if value.shape != shape:
            raise CorruptChunk(
                ErrorMessages.CORRUPT_CHUNK.format(f"field '{name}' has shape {value.shape}")
            )
        if value.dtype.kind not in kinds:
            raise CorruptChunk(
                ErrorMessages.CORRUPT_CHUNK.format(f"field '{name}' has dtype {value.dtype}")
            )

    version = int(fields["version"])
    if version != CHUNK_FORMAT_VERSION:
        raise CorruptChunk(ErrorMessages.CORRUPT_CHUNK.format(f"unsupported version {version}"))

    grid = fields["grid"]
    if grid.dtype != np.uint16:
        raise CorruptChunk(ErrorMessages.CORRUPT_CHUNK.format(f"grid dtype is {grid.dtype}"))

    try:
        profile = ElevationProfile(
            total_width_px=int(fields["profile_size"][0]),
            total_height_px=int(fields["profile_size"][1]),
            meters_per_pixel=float(fields["profile_scale"][0]),
            max_elevation_m=float(fields["profile_scale"][1]),
        )
        offset_x, offset_y = (int(v) for v in fields["offset"])
        width, height = (int(v) for v in fields["size"])
    except (TypeError, ValueError) as e:
        raise CorruptChunk(ErrorMessages.CORRUPT_CHUNK.format(e)) from e

    return ElevationChunk(
        offset_x=offset_x,
        offset_y=offset_y,
        width=width,
        height=height,
        profile=profile,
        grid=grid,
    )


def write_chunk(path: str | Path, chunk: ElevationChunk) -> int:
    """Write a chunk to ``path``. Returns the number of bytes written."""
    data = chunk_to_bytes(chunk)
    Path(path).write_bytes(data)
    return len(data)


def read_chunk(path: str | Path) -> ElevationChunk:
    """Read a chunk file written by ``write_chunk``."""
    return chunk_from_bytes(Path(path).read_bytes())


# ---------------------------------------------------------------------------
# Preview rendering
# ---------------------------------------------------------------------------


def chunk_to_preview_png(chunk: ElevationChunk) -> bytes:
    """Render a chunk as a min/max-stretched 8-bit grayscale PNG."""
    elevation = chunk.elevation_grid()

    vmin, vmax = float(np.min(elevation)), float(np.max(elevation))
    if vmax == vmin:
        img = Image.new("L", (chunk.width, chunk.height), 0)
    else:
        norm = np.clip((elevation - vmin) / (vmax - vmin), 0.0, 1.0)
        img = Image.fromarray((norm * 255.0).astype(np.uint8))

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
