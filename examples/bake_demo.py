#!/usr/bin/env python3
"""
Bake Demo -- dem-bakery

Quick-start script showing the full bake-and-sample cycle without any
network access. Synthesises a small equirectangular "planet", bakes it
into chunk files, inspects one chunk, samples the mosaic at a few
landmarks, and demonstrates the dual output mode (JSON vs text).

Usage:
    python examples/bake_demo.py
"""

import math
import tempfile
from pathlib import Path

import numpy as np
from PIL import Image

from dem_bakery.core.chunk import ElevationProfile
from dem_bakery.core.chunk_manager import ChunkManager
from dem_bakery.models import SampleResponse, format_response

WIDTH, HEIGHT = 360, 180
MAX_ELEVATION_M = 21000.0


def synthetic_planet() -> np.ndarray:
    """16-bit raster with one tall volcano and a rolling background."""
    ys, xs = np.mgrid[0:HEIGHT, 0:WIDTH]
    lon = xs / (WIDTH - 1) * 360.0 - 180.0
    lat = 90.0 - ys / (HEIGHT - 1) * 180.0

    background = 0.2 + 0.05 * np.sin(np.radians(lon) * 3) * np.cos(np.radians(lat) * 2)
    volcano = 0.75 * np.exp(-(((lon + 134.0) ** 2 + (lat - 18.0) ** 2) / 40.0))
    fraction = np.clip(background + volcano, 0.0, 1.0)
    return (fraction * 65535).astype(np.uint16)


def main() -> None:
    print("=" * 60)
    print("dem-bakery -- Bake & Sample")
    print("=" * 60)

    with tempfile.TemporaryDirectory() as tmp:
        tmp_path = Path(tmp)
        raster_path = tmp_path / "planet.png"
        Image.fromarray(synthetic_planet()).save(raster_path)
        print(f"\nSynthetic raster: {raster_path.name} ({WIDTH}x{HEIGHT} px, 16-bit)")

        def report(done: int, total: int) -> None:
            if done == total:
                print(f"  Parsed {done}/{total} chunks")

        manager = ChunkManager(tmp_path / "baked", chunk_width=128, progress_callback=report)
        profile = ElevationProfile(
            total_width_px=WIDTH,
            total_height_px=HEIGHT,
            meters_per_pixel=59000.0,
            max_elevation_m=MAX_ELEVATION_M,
        )

        # Bake
        result = manager.bake_file(raster_path, profile)
        print(f"\nBaked {len(result.chunk_paths)} chunks ({result.tiles[0]}x{result.tiles[1]} tiles)")
        for path in result.chunk_paths:
            print(f"  - {Path(path).name}")

        # Inspect one chunk
        chunk = manager.load_chunk(result.chunk_paths[0])
        grid = chunk.elevation_grid()
        print(f"\nFirst chunk: offset ({chunk.offset_x}, {chunk.offset_y}), {chunk.width}x{chunk.height} px")
        print(f"  Elevation range: {grid.min():.1f}m to {grid.max():.1f}m")
        print(f"  Cache: {manager.cache_size_bytes / 1024:.1f} KB")

        # Sample landmarks
        landmarks = {
            "Volcano summit": (18.0, -134.0),
            "Equator / prime meridian": (0.0, 0.0),
            "North pole": (90.0, 0.0),
        }
        print("\nLandmarks (bilinear vs nearest):")
        for name, (lat, lon) in landmarks.items():
            lat_rad, lon_rad = math.radians(lat), math.radians(lon)
            bilinear = manager.sample_mosaic(result.manifest_path, lat_rad, lon_rad)
            nearest = manager.sample_mosaic(
                result.manifest_path, lat_rad, lon_rad, interpolation="nearest"
            )
            print(
                f"  {name:26s} {bilinear.elevation_m:9.1f}m  {nearest.elevation_m:9.1f}m  "
                f"({Path(bilinear.chunk_path).name})"
            )

        # ---------------------------------------------------------------
        # Dual output mode: text vs JSON
        # ---------------------------------------------------------------
        print("\n" + "-" * 60)
        print("Dual Output Mode Demo")
        print("-" * 60)

        summit = manager.sample_mosaic(result.manifest_path, math.radians(18.0), math.radians(-134.0))
        response = SampleResponse(
            latitude_deg=18.0,
            longitude_deg=-134.0,
            elevation_m=summit.elevation_m,
            interpolation="bilinear",
            chunk=summit.chunk_path,
            message=f"Elevation at point: {summit.elevation_m:.3f}m",
        )
        print("\noutput_mode='text':")
        print(format_response(response, "text"))
        print("\noutput_mode='json':")
        print(format_response(response, "json"))

    print("\n" + "=" * 60)
    print("Done.")


if __name__ == "__main__":
    main()
