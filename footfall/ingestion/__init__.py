"""
Data Ingestion Module
"""
from .batch_loader import (
    FileFormat,
    LoadResult,
    LoadStatus,
    TelecomBatchLoader,
    detect_format,
    frame_to_aggregates,
    prepare_frame,
)

__all__ = [
    "FileFormat",
    "LoadResult",
    "LoadStatus",
    "TelecomBatchLoader",
    "detect_format",
    "frame_to_aggregates",
    "prepare_frame",
]
