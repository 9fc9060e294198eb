"""Response models for dem-bakery."""

from .responses import (
    BakeManifest,
    BakeResponse,
    ChunkInfo,
    ChunkSummaryResponse,
    DatasetDetailResponse,
    DatasetInfo,
    DatasetsResponse,
    ErrorResponse,
    FileWrittenResponse,
    SampleResponse,
    format_response,
)

__all__ = [
    "ErrorResponse",
    "DatasetInfo",
    "DatasetsResponse",
    "DatasetDetailResponse",
    "ChunkInfo",
    "BakeManifest",
    "BakeResponse",
    "ChunkSummaryResponse",
    "SampleResponse",
    "FileWrittenResponse",
    "format_response",
]
