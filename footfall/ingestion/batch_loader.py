"""
Telecom Batch Loader

Batch ingestion of telecom aggregate files (CSV, JSON, JSON Lines, Parquet).
Supports:
- Timestamp normalization to naive UTC
- Rule-based validation; a batch with any error is rejected whole
- Dead-letter copies of rejected batches
- Audit fields (file hash, timings) on every result

Usage:
    python -m footfall.ingestion.batch_loader data/generated/telecom.csv
"""

import argparse
import asyncio
import hashlib
import json
import sys
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import polars as pl
import structlog
from pydantic import BaseModel

from footfall.domain.models import (
    DataSource,
    DeviceFootfall,
    Location,
    TelecomAggregate,
    TimeWindow,
)
from footfall.quality.validators import DataValidator, ValidationStatus, create_telecom_validator
from footfall.store.interfaces import FootfallStore

logger = structlog.get_logger(__name__)


class FileFormat(str, Enum):
    """Supported file formats"""
    CSV = "csv"
    JSON = "json"
    JSONL = "jsonl"
    PARQUET = "parquet"


class LoadStatus(str, Enum):
    """Batch load status"""
    COMPLETED = "completed"
    FAILED = "failed"


class LoadResult(BaseModel):
    """Result of a batch load operation"""
    file_path: str
    status: LoadStatus
    rows_read: int = 0
    rows_loaded: int = 0
    error_message: Optional[str] = None
    errors: List[str] = []
    load_duration_seconds: float = 0
    started_at: datetime
    completed_at: Optional[datetime] = None
    file_hash: Optional[str] = None


NULL_VALUES = ["", "NULL", "null", "None", "NA", "N/A"]

OPTIONAL_COLUMNS = {
    "district": pl.String,
    "city": pl.String,
    "tourist_place": pl.String,
    "location_id": pl.String,
    "domestic_devices": pl.Int64,
    "international_devices": pl.Int64,
    "international_breakdown": pl.String,
    "network_distribution": pl.String,
    "window_minutes": pl.Int64,
    "data_source": pl.String,
}


def detect_format(path: Union[str, Path]) -> FileFormat:
    """Infer the file format from the extension."""
    suffix = Path(path).suffix.lower().lstrip(".")
    if suffix == "ndjson":
        suffix = "jsonl"
    try:
        return FileFormat(suffix)
    except ValueError:
        raise ValueError(f"Unsupported file format: {suffix or path}") from None


def read_frame(path: Union[str, Path], file_format: FileFormat) -> pl.DataFrame:
    """Read a telecom file with polars"""
    readers = {
        FileFormat.CSV: lambda p: pl.read_csv(p, null_values=NULL_VALUES),
        FileFormat.JSON: pl.read_json,
        FileFormat.JSONL: pl.read_ndjson,
        FileFormat.PARQUET: pl.read_parquet,
    }
    return readers[FileFormat(file_format)](path)


# Offset-aware layouts are tried first; anything they miss is read as naive UTC
_AWARE_FORMATS = ("%Y-%m-%dT%H:%M:%S%.f%z", "%Y-%m-%dT%H:%M:%S%z")
_NAIVE_FORMATS = ("%Y-%m-%dT%H:%M:%S%.f", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M")


def _parse_timestamps(column: str) -> pl.Expr:
    """ISO 8601 strings, with or without an offset, as naive UTC datetimes."""
    text = (
        pl.col(column)
        .str.strip_chars()
        .str.replace(" ", "T", literal=True)
        .str.replace(r"[Zz]$", "+00:00")
    )
    aware = [
        text.str.to_datetime(fmt, time_unit="us", strict=False).dt.replace_time_zone(None)
        for fmt in _AWARE_FORMATS
    ]
    naive = [text.str.to_datetime(fmt, time_unit="us", strict=False) for fmt in _NAIVE_FORMATS]
    return pl.coalesce(aware + naive).alias(column)


def _naive_utc_column(df: pl.DataFrame, column: str) -> pl.DataFrame:
    if column not in df.columns:
        return df
    if df.schema[column] == pl.String:
        return df.with_columns(_parse_timestamps(column))
    dtype = df.schema[column]
    if isinstance(dtype, pl.Datetime) and dtype.time_zone is not None:
        df = df.with_columns(
            pl.col(column).dt.convert_time_zone("UTC").dt.replace_time_zone(None)
        )
    return df


def prepare_frame(df: pl.DataFrame) -> pl.DataFrame:
    """
    Bring a raw frame into the flat telecom layout.

    Missing optional columns are added, counts default to 0, the data
    source defaults to TELCO and window length to 60 minutes.
    """
    df = df.filter(~pl.all_horizontal(pl.all().is_null()))

    missing = [
        pl.lit(None, dtype=dtype).alias(column)
        for column, dtype in OPTIONAL_COLUMNS.items()
        if column not in df.columns
    ]
    if missing:
        df = df.with_columns(missing)

    for column in ("window_start", "window_end"):
        df = _naive_utc_column(df, column)

    return df.with_columns(
        pl.col("domestic_devices").fill_null(0),
        pl.col("international_devices").fill_null(0),
        pl.col("window_minutes").fill_null(60),
        pl.col("data_source").fill_null(DataSource.TELCO.value),
    )


def _breakdown(value: Any) -> Dict[str, int]:
    if value is None:
        return {}
    if isinstance(value, str):
        value = json.loads(value) if value.strip() else {}
    if not isinstance(value, dict):
        raise ValueError(f"Breakdown must be an object, got {type(value).__name__}")
    return {str(k): int(v) for k, v in value.items() if v is not None}


def frame_to_aggregates(df: pl.DataFrame) -> List[TelecomAggregate]:
    """Convert a prepared, validated frame into domain aggregates."""
    return [
        TelecomAggregate(
            time_window=TimeWindow(
                start=row["window_start"],
                end=row["window_end"],
                window_minutes=int(row["window_minutes"]),
            ),
            location=Location(
                state=row["state"],
                district=row["district"],
                city=row["city"],
                tourist_place=row["tourist_place"],
                location_id=row["location_id"],
            ),
            footfall=DeviceFootfall(
                total_devices=int(row["total_devices"]),
                domestic_devices=int(row["domestic_devices"]),
                international_devices=int(row["international_devices"]),
            ),
            international_breakdown=_breakdown(row["international_breakdown"]),
            network_distribution=_breakdown(row["network_distribution"]),
            confidence_score=float(row["confidence_score"]),
            data_source=DataSource(row["data_source"]),
        )
        for row in df.iter_rows(named=True)
    ]


class TelecomBatchLoader:
    """
    Loads telecom aggregate files into a footfall store.

    Example:
        loader = TelecomBatchLoader(store)
        result = await loader.load("data/generated/telecom.csv")
        assert result.status == LoadStatus.COMPLETED
    """

    def __init__(
        self,
        store: FootfallStore,
        validator: Optional[DataValidator] = None,
        dead_letter_dir: Optional[Union[str, Path]] = None,
    ):
        self.store = store
        self.validator = validator or create_telecom_validator()
        self.dead_letter_dir = Path(dead_letter_dir) if dead_letter_dir else None

    @staticmethod
    def _compute_file_hash(file_path: Path) -> str:
        """Compute MD5 hash of file for audit"""
        hash_md5 = hashlib.md5()
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(4096), b""):
                hash_md5.update(chunk)
        return hash_md5.hexdigest()

    def _write_dead_letter(self, df: pl.DataFrame, file_path: Path, error: str) -> None:
        """Keep a copy of a rejected batch for inspection"""
        if self.dead_letter_dir is None:
            return
        self.dead_letter_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        target = self.dead_letter_dir / f"{file_path.stem}_{stamp}.parquet"
        df.with_columns(pl.lit(error).alias("_error_message")).write_parquet(target)
        logger.warning("Rejected batch written to dead letter", file=str(target), records=df.height)

    def _finish(self, result: LoadResult) -> LoadResult:
        result.completed_at = datetime.now(timezone.utc)
        result.load_duration_seconds = (result.completed_at - result.started_at).total_seconds()
        return result

    def _reject(self, result: LoadResult, df: Optional[pl.DataFrame], file_path: Path, errors: List[str]) -> LoadResult:
        result.status = LoadStatus.FAILED
        result.errors = errors
        result.error_message = "; ".join(errors)
        logger.error("Batch rejected", file=str(file_path), errors=errors)
        if df is not None:
            self._write_dead_letter(df, file_path, result.error_message)
        return self._finish(result)

    async def load(
        self,
        file_path: Union[str, Path],
        file_format: Optional[Union[FileFormat, str]] = None,
    ) -> LoadResult:
        """
        Load one telecom file.

        Unreadable or invalid files produce a FAILED result and nothing is
        written. Store failures propagate.

        Args:
            file_path: File to load
            file_format: Format, inferred from the extension if omitted

        Returns:
            LoadResult: Result of the load operation
        """
        file_path = Path(file_path)
        result = LoadResult(
            file_path=str(file_path),
            status=LoadStatus.FAILED,
            started_at=datetime.now(timezone.utc),
        )
        logger.info("Starting batch load", file=str(file_path))

        try:
            fmt = FileFormat(file_format) if file_format else detect_format(file_path)
            result.file_hash = self._compute_file_hash(file_path)
            df = prepare_frame(read_frame(file_path, fmt))
        except (OSError, ValueError, pl.exceptions.PolarsError) as e:
            return self._reject(result, None, file_path, [f"Unreadable file: {e}"])

        result.rows_read = df.height

        validation = self.validator.validate(df)
        if validation.status == ValidationStatus.FAILED:
            return self._reject(result, df, file_path, validation.errors)

        try:
            aggregates = frame_to_aggregates(df)
        except (ValueError, TypeError) as e:
            return self._reject(result, df, file_path, [f"Malformed row: {e}"])

        result.rows_loaded = await self.store.insert_telecom_aggregates(aggregates)
        result.status = LoadStatus.COMPLETED

        self._finish(result)
        logger.info(
            "Batch load completed",
            file=str(file_path),
            rows_loaded=result.rows_loaded,
            duration_seconds=result.load_duration_seconds,
        )
        return result


async def _run(args: argparse.Namespace) -> LoadResult:
    from footfall.config.logging import configure_logging
    from footfall.config.settings import get_settings
    from footfall.database.connection import close_database, create_schema, init_database
    from footfall.store.sql_store import SqlFootfallStore

    settings = get_settings()
    configure_logging(log_format="text")

    engine = await init_database(settings.database)
    try:
        if settings.database.create_schema or engine.dialect.name == "sqlite":
            await create_schema(engine)
        loader = TelecomBatchLoader(
            SqlFootfallStore(engine, history_limit=settings.footfall.history_limit),
            dead_letter_dir=args.dead_letter,
        )
        return await loader.load(args.file, args.format)
    finally:
        await close_database(engine)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Load telecom aggregate files into the footfall store")
    parser.add_argument("file", help="CSV, JSON, JSONL or Parquet file")
    parser.add_argument(
        "--format",
        choices=[f.value for f in FileFormat],
        default=None,
        help="File format (default: from extension)",
    )
    parser.add_argument("--dead-letter", default=None, help="Directory for rejected batches")
    args = parser.parse_args(argv)

    result = asyncio.run(_run(args))
    print(result.model_dump_json(indent=2))
    return 0 if result.status == LoadStatus.COMPLETED else 1


if __name__ == "__main__":
    sys.exit(main())
