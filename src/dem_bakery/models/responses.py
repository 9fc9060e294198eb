"""
Response models for dem-bakery commands.

All command output and the on-disk bake manifest are Pydantic models for
type safety and a consistent JSON shape.
"""

from pydantic import BaseModel, ConfigDict, Field


def format_response(model: BaseModel, output_mode: str = "json") -> str:
    """Format a response model as JSON or human-readable text.

    Args:
        model: Pydantic response model instance
        output_mode: "json" (default) or "text"

    Returns:
        Formatted string
    """
    if output_mode == "text" and hasattr(model, "to_text"):
        return str(model.to_text())
    return str(model.model_dump_json())


class ErrorResponse(BaseModel):
    """Error response model for command failures."""

    model_config = ConfigDict(extra="forbid")

    error: str = Field(..., description="Error message describing what went wrong")

    def to_text(self) -> str:
        return f"Error: {self.error}"


# ---------------------------------------------------------------------------
# Dataset registry
# ---------------------------------------------------------------------------


class DatasetInfo(BaseModel):
    """Summary information about a registered mosaic."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., description="Dataset identifier (e.g., mars_mola)")
    name: str = Field(..., description="Human-readable dataset name")
    total_width_px: int = Field(..., description="Mosaic width in pixels", ge=1)
    total_height_px: int = Field(..., description="Mosaic height in pixels", ge=1)
    meters_per_pixel: float = Field(..., description="Ground sample distance in metres")
    chunk_size: int = Field(..., description="Chunk edge length in pixels", ge=1)

    def to_text(self) -> str:
        return (
            f"{self.id}: {self.name} ({self.total_width_px}x{self.total_height_px} px, "
            f"{self.meters_per_pixel:g}m/px, chunk {self.chunk_size})"
        )


class DatasetsResponse(BaseModel):
    """Response model for listing registered datasets."""

    model_config = ConfigDict(extra="forbid")

    datasets: list[DatasetInfo] = Field(..., description="Registered datasets")
    default: str = Field(..., description="Default dataset identifier")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message, f"Default: {self.default}", ""]
        for d in self.datasets:
            lines.append(f"  {d.to_text()}")
        return "\n".join(lines)


class DatasetDetailResponse(BaseModel):
    """Response model for a detailed dataset description."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., description="Dataset identifier")
    name: str = Field(..., description="Human-readable dataset name")
    original_data_src: str = Field(..., description="Original source raster URL")
    archived_data_src: str = Field(..., description="Archived copy of the source raster")
    total_width_px: int = Field(..., description="Mosaic width in pixels", ge=1)
    total_height_px: int = Field(..., description="Mosaic height in pixels", ge=1)
    meters_per_pixel: float = Field(..., description="Ground sample distance in metres")
    max_elevation_m: float = Field(..., description="Scale applied to stored fractions")
    chunk_size: int = Field(..., description="Chunk edge length in pixels", ge=1)
    tiles: list[int] = Field(..., description="Tile grid [columns, rows]")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            f"{self.name} ({self.id})",
            f"Size: {self.total_width_px}x{self.total_height_px} px",
            f"Resolution: {self.meters_per_pixel:g}m/px",
            f"Max elevation scale: {self.max_elevation_m:g}",
            f"Chunk size: {self.chunk_size} ({self.tiles[0]}x{self.tiles[1]} tiles)",
            f"Source: {self.original_data_src}",
            f"Archive: {self.archived_data_src}",
        ]
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Baking
# ---------------------------------------------------------------------------


class ChunkInfo(BaseModel):
    """Location of one baked chunk within its mosaic."""

    model_config = ConfigDict(extra="forbid")

    filename: str = Field(..., description="Chunk file name relative to the manifest")
    offset: list[int] = Field(..., description="Top-left pixel [x, y] within the mosaic")
    size: list[int] = Field(..., description="Chunk size [width, height] in pixels")


class BakeManifest(BaseModel):
    """Index of a baked chunk set, written next to the chunk files."""

    model_config = ConfigDict(extra="forbid")

    source_name: str = Field(..., description="Stem used to name chunk files")
    total_width_px: int = Field(..., description="Mosaic width in pixels", ge=1)
    total_height_px: int = Field(..., description="Mosaic height in pixels", ge=1)
    meters_per_pixel: float = Field(..., description="Ground sample distance in metres")
    max_elevation_m: float = Field(..., description="Scale applied to stored fractions")
    chunk_width: int = Field(..., description="Nominal chunk width in pixels", ge=1)
    chunk_height: int = Field(..., description="Nominal chunk height in pixels", ge=1)
    tiles: list[int] = Field(..., description="Tile grid [columns, rows]")
    chunks: list[ChunkInfo] = Field(..., description="Chunks in row-major tile order")


class BakeResponse(BaseModel):
    """Response model for a completed bake."""

    model_config = ConfigDict(extra="forbid")

    source_name: str = Field(..., description="Stem used to name chunk files")
    output_dir: str = Field(..., description="Directory holding the chunk files")
    manifest_path: str = Field(..., description="Path of the written manifest")
    chunk_count: int = Field(..., description="Number of chunks written", ge=1)
    tiles: list[int] = Field(..., description="Tile grid [columns, rows]")
    total_bytes: int = Field(..., description="Bytes written across all chunks", ge=0)
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            self.message,
            f"Output: {self.output_dir}",
            f"Manifest: {self.manifest_path}",
            f"Tiles: {self.tiles[0]}x{self.tiles[1]} ({self.chunk_count} chunks)",
            f"Written: {self.total_bytes / (1024 * 1024):.1f} MB",
        ]
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Chunk queries
# ---------------------------------------------------------------------------


class ChunkSummaryResponse(BaseModel):
    """Response model describing a single chunk file."""

    model_config = ConfigDict(extra="forbid")

    path: str = Field(..., description="Chunk file path")
    offset: list[int] = Field(..., description="Top-left pixel [x, y] within the mosaic")
    size: list[int] = Field(..., description="Chunk size [width, height] in pixels")
    total_size: list[int] = Field(..., description="Mosaic size [width, height] in pixels")
    meters_per_pixel: float = Field(..., description="Ground sample distance in metres")
    max_elevation_m: float = Field(..., description="Scale applied to stored fractions")
    elevation_range: list[float] = Field(..., description="[min, max] elevation in metres")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        elev_min, elev_max = self.elevation_range
        lines = [
            self.message,
            f"File: {self.path}",
            f"Mosaic: {self.total_size[0]}x{self.total_size[1]} px, "
            f"{self.meters_per_pixel:g}m/px",
            f"Max elevation scale: {self.max_elevation_m:g}",
            f"Elevation range: {elev_min:.3f}m to {elev_max:.3f}m",
        ]
        return "\n".join(lines)


class SampleResponse(BaseModel):
    """Response model for a point elevation sample."""

    model_config = ConfigDict(extra="forbid")

    latitude_deg: float = Field(..., description="Latitude of the query point in degrees")
    longitude_deg: float = Field(..., description="Longitude of the query point in degrees")
    elevation_m: float = Field(..., description="Sampled elevation in metres")
    interpolation: str = Field(..., description="Interpolation method used")
    chunk: str = Field(..., description="Chunk file that answered the query")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            f"Elevation at ({self.latitude_deg:.6f}, {self.longitude_deg:.6f}): "
            f"{self.elevation_m:.3f}m",
            f"Interpolation: {self.interpolation}",
            f"Chunk: {self.chunk}",
        ]
        return "\n".join(lines)


class FileWrittenResponse(BaseModel):
    """Response model for commands that write a single file."""

    model_config = ConfigDict(extra="forbid")

    path: str = Field(..., description="Written file path")
    bytes_written: int = Field(..., description="File size in bytes", ge=0)
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        return self.message
