#!/usr/bin/env python3
"""
dem-bakery - Command-line entry point

Bakes elevation rasters into half-precision chunk files and samples them.
Defaults for the output directory, chunk size, and log level can be set in
the environment or in a ``.env`` file.
"""

import argparse
import logging
import math
import os
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_DATASET,
    DEFAULT_INTERPOLATION,
    DEFAULT_LOG_LEVEL,
    INTERPOLATION_METHODS,
    OUTPUT_MODES,
    BakeryConfig,
    EnvVar,
    ErrorMessages,
    SuccessMessages,
)
from .core import raster_io
from .core.chunk import ElevationProfile
from .core.chunk_manager import ChunkManager
from .models.responses import (
    BakeResponse,
    ChunkSummaryResponse,
    DatasetDetailResponse,
    DatasetInfo,
    DatasetsResponse,
    ErrorResponse,
    FileWrittenResponse,
    SampleResponse,
    format_response,
)

# Load environment variables from .env file
env_path = Path.cwd() / ".env"
if env_path.exists():
    load_dotenv(env_path)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(prog=BakeryConfig.NAME, description=BakeryConfig.DESCRIPTION)
    parser.add_argument("--version", action="version", version=BakeryConfig.VERSION)
    parser.add_argument(
        "--output-mode",
        choices=OUTPUT_MODES,
        default="text",
        help="Print results as text (default) or JSON",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("datasets", help="List registered datasets")

    describe = sub.add_parser("describe", help="Describe a registered dataset")
    describe.add_argument("dataset", help="Dataset identifier")

    bake = sub.add_parser("bake", help="Bake a raster into chunk files")
    bake.add_argument("raster", help="Source raster file")
    bake.add_argument("--dataset", help="Use a registered dataset's profile")
    bake.add_argument("--width", type=int, help="Mosaic width in pixels")
    bake.add_argument("--height", type=int, help="Mosaic height in pixels")
    bake.add_argument("--meters-per-pixel", type=float, default=1.0)
    bake.add_argument("--max-elevation", type=float, default=1.0)
    bake.add_argument("--chunk-width", type=int, help="Chunk width in pixels")
    bake.add_argument("--chunk-height", type=int, help="Chunk height in pixels")
    bake.add_argument("--name", help="Stem for chunk file names (default: raster stem)")
    bake.add_argument("--output", help="Output directory")

    info = sub.add_parser("info", help="Describe a chunk file")
    info.add_argument("chunk", help="Chunk file")

    sample = sub.add_parser("sample", help="Sample a chunk file or baked manifest")
    sample.add_argument("target", help="Chunk file, or manifest.json of a baked mosaic")
    sample.add_argument("--lat", type=float, required=True, help="Latitude (radians)")
    sample.add_argument("--lon", type=float, required=True, help="Longitude (radians)")
    sample.add_argument(
        "--degrees", action="store_true", help="Interpret --lat/--lon as degrees"
    )
    sample.add_argument(
        "--interpolation", choices=INTERPOLATION_METHODS, default=DEFAULT_INTERPOLATION
    )

    preview = sub.add_parser("preview", help="Render a chunk as a grayscale PNG")
    preview.add_argument("chunk", help="Chunk file")
    preview.add_argument("png", help="Destination PNG file")

    download = sub.add_parser("download", help="Download a dataset's source raster")
    download.add_argument("dataset", nargs="?", default=DEFAULT_DATASET)
    download.add_argument("dest", nargs="?", help="Destination file")

    return parser


def run(args: argparse.Namespace, manager: ChunkManager) -> Any:
    """Execute a parsed command and return its response model."""
    if args.command == "datasets":
        datasets = [DatasetInfo(**d) for d in manager.list_datasets()]
        return DatasetsResponse(
            datasets=datasets,
            default=DEFAULT_DATASET,
            message=SuccessMessages.DATASETS_LIST.format(len(datasets)),
        )

    if args.command == "describe":
        detail = manager.describe_dataset(args.dataset)
        return DatasetDetailResponse(
            **detail,
            message=SuccessMessages.DATASET_DESCRIBE.format(
                detail["name"],
                detail["total_width_px"],
                detail["total_height_px"],
                detail["meters_per_pixel"],
            ),
        )

    if args.command == "bake":
        if args.dataset:
            result = manager.bake_dataset(
                args.dataset, args.raster, args.chunk_width, args.chunk_height
            )
        else:
            if not (args.width and args.height):
                raise ValueError(ErrorMessages.NO_PROFILE)
            profile = ElevationProfile(
                total_width_px=args.width,
                total_height_px=args.height,
                meters_per_pixel=args.meters_per_pixel,
                max_elevation_m=args.max_elevation,
            )
            result = manager.bake_file(
                args.raster,
                profile,
                source_name=args.name,
                chunk_width=args.chunk_width,
                chunk_height=args.chunk_height,
            )
        return BakeResponse(
            source_name=result.source_name,
            output_dir=result.output_dir,
            manifest_path=result.manifest_path,
            chunk_count=len(result.chunk_paths),
            tiles=result.tiles,
            total_bytes=result.total_bytes,
            message=SuccessMessages.BAKE_COMPLETE.format(
                len(result.chunk_paths), result.tiles[0], result.tiles[1], args.raster
            ),
        )

    if args.command == "info":
        chunk = manager.load_chunk(args.chunk)
        elevation = chunk.elevation_grid()
        return ChunkSummaryResponse(
            path=args.chunk,
            offset=[chunk.offset_x, chunk.offset_y],
            size=[chunk.width, chunk.height],
            total_size=[chunk.profile.total_width_px, chunk.profile.total_height_px],
            meters_per_pixel=chunk.profile.meters_per_pixel,
            max_elevation_m=chunk.profile.max_elevation_m,
            elevation_range=[float(elevation.min()), float(elevation.max())],
            message=SuccessMessages.CHUNK_INFO.format(
                chunk.offset_x, chunk.offset_y, chunk.width, chunk.height
            ),
        )

    if args.command == "sample":
        if args.degrees:
            lat_deg, lon_deg = args.lat, args.lon
            lat_rad, lon_rad = math.radians(args.lat), math.radians(args.lon)
        else:
            lat_deg, lon_deg = math.degrees(args.lat), math.degrees(args.lon)
            lat_rad, lon_rad = args.lat, args.lon

        if Path(args.target).suffix == ".json":
            sampled = manager.sample_mosaic(args.target, lat_rad, lon_rad, args.interpolation)
            elevation, chunk_path = sampled.elevation_m, sampled.chunk_path
        else:
            elevation = manager.sample_chunk(args.target, lat_rad, lon_rad, args.interpolation)
            chunk_path = args.target

        return SampleResponse(
            latitude_deg=lat_deg,
            longitude_deg=lon_deg,
            elevation_m=elevation,
            interpolation=args.interpolation,
            chunk=chunk_path,
            message=SuccessMessages.SAMPLE_COMPLETE.format(elevation),
        )

    if args.command == "preview":
        chunk = manager.load_chunk(args.chunk)
        png = raster_io.chunk_to_preview_png(chunk)
        Path(args.png).write_bytes(png)
        return FileWrittenResponse(
            path=args.png,
            bytes_written=len(png),
            message=SuccessMessages.PREVIEW_WRITTEN.format(args.png),
        )

    if args.command == "download":
        dest, written = manager.download_dataset(args.dataset, args.dest)
        return FileWrittenResponse(
            path=dest,
            bytes_written=written,
            message=SuccessMessages.DOWNLOAD_COMPLETE.format(written / (1024 * 1024), dest),
        )

    raise ValueError(f"Unknown command: {args.command}")


def _manager_from_env(args: argparse.Namespace) -> ChunkManager:
    """Create a ChunkManager from environment defaults and command flags."""
    output_dir = getattr(args, "output", None) or os.environ.get(EnvVar.OUTPUT_DIR, ".")
    chunk_size = int(os.environ.get(EnvVar.CHUNK_SIZE, DEFAULT_CHUNK_SIZE))

    def report(done: int, total: int) -> None:
        print(f"Parsing {done}/{total}", file=sys.stderr)

    return ChunkManager(output_dir=output_dir, chunk_width=chunk_size, progress_callback=report)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the dem-bakery CLI."""
    logging.basicConfig(
        level=os.environ.get(EnvVar.LOG_LEVEL, DEFAULT_LOG_LEVEL).upper(),
        stream=sys.stderr,
    )

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        manager = _manager_from_env(args)
        response = run(args, manager)
    except Exception as e:
        logger.error(f"{args.command} failed: {e}")
        print(format_response(ErrorResponse(error=str(e)), args.output_mode))
        return 1

    print(format_response(response, args.output_mode))
    return 0


if __name__ == "__main__":
    sys.exit(main())
