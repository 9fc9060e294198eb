"""
Chunk Manager — central orchestrator for baking and querying chunk sets.

Ties the dataset registry, raster decoding, ingestion, chunk persistence,
and sampling together. Keeps recently loaded chunks in a size-bounded LRU
cache so repeated queries against one chunk decode it only once.
"""

import logging
import math
from dataclasses import dataclass
from pathlib import Path

from ..constants import (
    CHUNK_CACHE_MAX_BYTES,
    CHUNK_CACHE_MAX_ITEM,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_INTERPOLATION,
    MANIFEST_FILENAME,
    ErrorMessages,
)
from ..datasets import DATASETS, get_dataset
from ..models.responses import BakeManifest, ChunkInfo
from . import raster_io
from .chunk import ElevationChunk, ElevationProfile
from .errors import CorruptChunk
from .ingest import ProgressCallback, ingest
from .tiling import TileLayout

logger = logging.getLogger(__name__)


@dataclass
class BakeResult:
    """Result of baking one raster into chunk files."""

    source_name: str
    output_dir: str
    manifest_path: str
    chunk_paths: list[str]
    tiles: list[int]
    total_bytes: int


@dataclass
class LocateResult:
    """Owning chunk of a geographic point and its chunk-local coordinate."""

    filename: str
    u: float
    v: float


@dataclass
class SampleResult:
    """Result of sampling a point in a baked mosaic."""

    elevation_m: float
    chunk_path: str


class ChunkManager:
    """Central manager for chunk baking and sampling."""

    def __init__(
        self,
        output_dir: str | Path = ".",
        chunk_width: int = DEFAULT_CHUNK_SIZE,
        chunk_height: int | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.chunk_width = chunk_width
        self.chunk_height = chunk_height or chunk_width
        self.progress_callback = progress_callback

        # Chunk LRU cache: resolved path -> chunk
        self._chunk_cache: dict[str, ElevationChunk] = {}
        self._chunk_cache_sizes: dict[str, int] = {}
        self._chunk_cache_total: int = 0

    # ------------------------------------------------------------------
    # Discovery (no I/O)
    # ------------------------------------------------------------------

    def list_datasets(self) -> list[dict]:
        """List all registered datasets."""
        return [
            {
                "id": entry.id,
                "name": entry.name,
                "total_width_px": entry.profile.total_width_px,
                "total_height_px": entry.profile.total_height_px,
                "meters_per_pixel": entry.profile.meters_per_pixel,
                "chunk_size": entry.chunk_size,
            }
            for entry in DATASETS.values()
        ]

    def describe_dataset(self, dataset_id: str) -> dict:
        """Get full metadata for a dataset, including its tile grid."""
        entry = get_dataset(dataset_id)
        layout = TileLayout(
            entry.profile.total_width_px,
            entry.profile.total_height_px,
            entry.chunk_size,
            entry.chunk_size,
        )
        return {
            "id": entry.id,
            "name": entry.name,
            "original_data_src": entry.original_data_src,
            "archived_data_src": entry.archived_data_src,
            "total_width_px": entry.profile.total_width_px,
            "total_height_px": entry.profile.total_height_px,
            "meters_per_pixel": entry.profile.meters_per_pixel,
            "max_elevation_m": entry.profile.max_elevation_m,
            "chunk_size": entry.chunk_size,
            "tiles": [layout.num_tiles_x, layout.num_tiles_y],
        }

    # ------------------------------------------------------------------
    # Baking
    # ------------------------------------------------------------------

    def bake_file(
        self,
        path: str | Path,
        profile: ElevationProfile,
        source_name: str | None = None,
        chunk_width: int | None = None,
        chunk_height: int | None = None,
    ) -> BakeResult:
        """
        Decode a raster, split it into chunks, and write one file per chunk.

        Chunks land in ``<output_dir>/<source_name>/`` together with a
        ``manifest.json`` listing them in row-major tile order.

        Args:
            path: Source raster file
            profile: Mosaic profile; its total size must match the raster
            source_name: Stem for chunk file names (default: raster file stem)
            chunk_width: Override the manager's chunk width
            chunk_height: Override the manager's chunk height

        Returns:
            BakeResult with written paths and tile grid
        """
        path = Path(path)
        source_name = source_name or path.stem
        chunk_width = chunk_width or self.chunk_width
        chunk_height = chunk_height or self.chunk_height

        logger.info(f"Loading {path}")
        raster = raster_io.read_raster(path)
        logger.info(f"Successfully loaded {path}")

        chunks = ingest(
            raster,
            profile.total_width_px,
            profile.total_height_px,
            chunk_width,
            chunk_height,
            profile,
            self.progress_callback,
        )
        del raster

        result_dir = self.output_dir / source_name
        result_dir.mkdir(parents=True, exist_ok=True)

        chunk_paths: list[str] = []
        chunk_infos: list[ChunkInfo] = []
        total_bytes = 0
        for chunk in chunks:
            filename = raster_io.chunk_filename(source_name, chunk)
            chunk_path = result_dir / filename
            total_bytes += raster_io.write_chunk(chunk_path, chunk)
            chunk_paths.append(str(chunk_path))
            chunk_infos.append(
                ChunkInfo(
                    filename=filename,
                    offset=[chunk.offset_x, chunk.offset_y],
                    size=[chunk.width, chunk.height],
                )
            )

        layout = TileLayout(
            profile.total_width_px, profile.total_height_px, chunk_width, chunk_height
        )
        manifest = BakeManifest(
            source_name=source_name,
            total_width_px=profile.total_width_px,
            total_height_px=profile.total_height_px,
            meters_per_pixel=profile.meters_per_pixel,
            max_elevation_m=profile.max_elevation_m,
            chunk_width=chunk_width,
            chunk_height=chunk_height,
            tiles=[layout.num_tiles_x, layout.num_tiles_y],
            chunks=chunk_infos,
        )
        manifest_path = result_dir / MANIFEST_FILENAME
        manifest_path.write_text(manifest.model_dump_json(indent=2))

        logger.info(f"Wrote {len(chunks)} chunks ({total_bytes} bytes) to {result_dir}")

        return BakeResult(
            source_name=source_name,
            output_dir=str(result_dir),
            manifest_path=str(manifest_path),
            chunk_paths=chunk_paths,
            tiles=[layout.num_tiles_x, layout.num_tiles_y],
            total_bytes=total_bytes,
        )

    def bake_dataset(
        self,
        dataset_id: str,
        path: str | Path,
        chunk_width: int | None = None,
        chunk_height: int | None = None,
    ) -> BakeResult:
        """Bake a registered dataset using its profile and chunk size."""
        entry = get_dataset(dataset_id)
        return self.bake_file(
            path,
            entry.profile,
            source_name=entry.source_name,
            chunk_width=chunk_width or entry.chunk_size,
            chunk_height=chunk_height or chunk_width or entry.chunk_size,
        )

    def download_dataset(
        self,
        dataset_id: str,
        dest: str | Path | None = None,
    ) -> tuple[str, int]:
        """Download a dataset's original source raster.

        Returns:
            Tuple of (destination path, bytes written)
        """
        entry = get_dataset(dataset_id)
        url = entry.original_data_src
        if dest is None:
            dest = self.output_dir / url.rsplit("/", 1)[-1]

        try:
            written = raster_io.download_source(url, dest)
        except Exception as e:
            logger.error(f"Failed to download {url}: {e}")
            raise
        return str(dest), written

    # ------------------------------------------------------------------
    # Loading & sampling
    # ------------------------------------------------------------------

    def load_chunk(self, path: str | Path) -> ElevationChunk:
        """Load a chunk file, served from the LRU cache when possible."""
        key = str(Path(path).resolve())
        cached = self._get_cached_chunk(key)
        if cached is not None:
            return cached

        chunk = raster_io.read_chunk(path)
        self._cache_chunk(key, chunk)
        return chunk

    def load_manifest(self, manifest_path: str | Path) -> BakeManifest:
        """Read and validate a bake manifest."""
        return BakeManifest.model_validate_json(Path(manifest_path).read_text())

    def sample_chunk(
        self,
        path: str | Path,
        latitude_rad: float,
        longitude_rad: float,
        interpolation: str = DEFAULT_INTERPOLATION,
    ) -> float:
        """Sample a single chunk file at a geographic point."""
        chunk = self.load_chunk(path)
        return chunk.sample_geographic(latitude_rad, longitude_rad, interpolation)

    def locate(
        self,
        manifest: BakeManifest,
        latitude_rad: float,
        longitude_rad: float,
    ) -> LocateResult:
        """
        Find the chunk owning a geographic point of a baked mosaic.

        The mosaic spans longitude -180..180 and latitude 90..-90. The
        returned ``(u, v)`` is the point's position inside the owning chunk;
        points between a chunk's last pixel and its neighbour's first pixel
        fall just outside ``[0, 1]`` and clamp to the chunk edge.
        """
        width = manifest.total_width_px
        height = manifest.total_height_px

        u = min(max((math.degrees(longitude_rad) + 180.0) / 360.0, 0.0), 1.0)
        v = min(max((90.0 - math.degrees(latitude_rad)) / 180.0, 0.0), 1.0)
        gx = u * (width - 1)
        gy = v * (height - 1)

        x = min(int(math.floor(gx)), width - 1)
        y = min(int(math.floor(gy)), height - 1)

        layout = TileLayout(width, height, manifest.chunk_width, manifest.chunk_height)
        index = layout.tile_index_for_pixel(x, y)
        if index >= len(manifest.chunks):
            raise CorruptChunk(ErrorMessages.NO_OWNING_CHUNK.format(x, y))

        info = manifest.chunks[index]
        ox, oy = info.offset
        cw, ch = info.size
        if not (ox <= x < ox + cw and oy <= y < oy + ch):
            raise CorruptChunk(ErrorMessages.NO_OWNING_CHUNK.format(x, y))

        local_u = (gx - ox) / (cw - 1) if cw > 1 else 0.0
        local_v = (gy - oy) / (ch - 1) if ch > 1 else 0.0
        return LocateResult(filename=info.filename, u=local_u, v=local_v)

    def sample_mosaic(
        self,
        manifest_path: str | Path,
        latitude_rad: float,
        longitude_rad: float,
        interpolation: str = DEFAULT_INTERPOLATION,
    ) -> SampleResult:
        """Sample a baked mosaic at a geographic point via its owning chunk."""
        manifest_path = Path(manifest_path)
        manifest = self.load_manifest(manifest_path)
        located = self.locate(manifest, latitude_rad, longitude_rad)

        chunk_path = manifest_path.parent / located.filename
        chunk = self.load_chunk(chunk_path)
        elevation = chunk.sample_unit_square(located.u, located.v, interpolation)
        return SampleResult(elevation_m=elevation, chunk_path=str(chunk_path))

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------

    @property
    def cache_size_bytes(self) -> int:
        return self._chunk_cache_total

    def _cache_chunk(self, key: str, chunk: ElevationChunk) -> None:
        """Cache a chunk with LRU eviction."""
        size = chunk.grid.nbytes
        if size > CHUNK_CACHE_MAX_ITEM:
            return

        while self._chunk_cache_total + size > CHUNK_CACHE_MAX_BYTES and self._chunk_cache:
            oldest_key = next(iter(self._chunk_cache))
            evicted_size = self._chunk_cache_sizes.pop(oldest_key, 0)
            del self._chunk_cache[oldest_key]
            self._chunk_cache_total -= evicted_size

        self._chunk_cache[key] = chunk
        self._chunk_cache_sizes[key] = size
        self._chunk_cache_total += size

    def _get_cached_chunk(self, key: str) -> ElevationChunk | None:
        """Get a cached chunk, moving it to the end of the LRU."""
        if key not in self._chunk_cache:
            return None
        chunk = self._chunk_cache.pop(key)
        size = self._chunk_cache_sizes.pop(key)
        self._chunk_cache[key] = chunk
        self._chunk_cache_sizes[key] = size
        return chunk
