"""
Integration Tests - Telecom Batch Loader
"""
import pytest
import polars as pl
from datetime import datetime

from footfall.domain.models import DataSource
from footfall.ingestion.batch_loader import (
    FileFormat,
    LoadStatus,
    TelecomBatchLoader,
    detect_format,
    frame_to_aggregates,
    prepare_frame,
)
from footfall.store.interfaces import TelecomQuery

pytestmark = pytest.mark.integration


class TestFrameHelpers:
    """Tests for format detection and frame preparation"""

    @pytest.mark.parametrize("name,fmt", [
        ("telecom.csv", FileFormat.CSV),
        ("telecom.JSON", FileFormat.JSON),
        ("telecom.ndjson", FileFormat.JSONL),
        ("telecom.parquet", FileFormat.PARQUET),
    ])
    def test_detect_format(self, name, fmt):
        """Test the format follows the file extension"""
        assert detect_format(name) == fmt

    def test_unknown_format(self):
        """Test unsupported extensions raise"""
        with pytest.raises(ValueError):
            detect_format("telecom.xlsx")

    def test_defaults_filled(self):
        """Test optional columns get their defaults"""
        df = prepare_frame(pl.DataFrame({
            "window_start": ["2024-05-01T10:00:00"],
            "window_end": ["2024-05-01T11:00:00"],
            "state": ["Rajasthan"],
            "total_devices": [100],
            "confidence_score": [0.8],
        }))

        row = df.row(0, named=True)
        assert row["window_minutes"] == 60
        assert row["data_source"] == "TELCO"
        assert row["domestic_devices"] == 0
        assert row["window_start"] == datetime(2024, 5, 1, 10, 0)

    def test_offsets_converted_to_utc(self):
        """Test timestamps with offsets become naive UTC"""
        df = prepare_frame(pl.DataFrame({
            "window_start": ["2024-05-01T15:30:00+05:30"],
            "window_end": ["2024-05-01T16:30:00+05:30"],
        }))

        assert df["window_start"][0] == datetime(2024, 5, 1, 10, 0)
        assert df.schema["window_start"].time_zone is None

    def test_blank_rows_dropped(self, sample_telecom_df):
        """Test fully empty rows are removed"""
        blank = pl.DataFrame([[None] * sample_telecom_df.width], schema=sample_telecom_df.schema, orient="row")

        df = prepare_frame(pl.concat([sample_telecom_df, blank]))

        assert df.height == 3

    def test_frame_to_aggregates(self, sample_telecom_df):
        """Test rows convert with parsed breakdowns"""
        aggregates = frame_to_aggregates(prepare_frame(sample_telecom_df))

        first = aggregates[0]
        assert first.location.tourist_place == "Amber Fort"
        assert first.international_breakdown == {"US": 1200, "UK": 800}
        assert first.network_distribution == {"Jio": 6000, "Airtel": 4000}
        assert aggregates[2].data_source == DataSource.SIMULATED


class TestTelecomBatchLoader:
    """Tests for loading files into a store"""

    async def test_load_csv(self, tmp_path, memory_store, sample_telecom_df):
        """Test a valid CSV lands in the store"""
        path = tmp_path / "telecom.csv"
        sample_telecom_df.write_csv(path)

        result = await TelecomBatchLoader(memory_store).load(path)

        assert result.status == LoadStatus.COMPLETED
        assert (result.rows_read, result.rows_loaded) == (3, 3)
        assert result.file_hash
        stored = await memory_store.query_telecom_aggregates(TelecomQuery(place="Amber Fort"))
        assert [a.footfall.total_devices for a in stored] == [12000, 14000]

    async def test_load_jsonl(self, tmp_path, memory_store, sample_telecom_df):
        """Test JSON Lines files load"""
        path = tmp_path / "telecom.jsonl"
        sample_telecom_df.write_ndjson(path)

        result = await TelecomBatchLoader(memory_store).load(path)

        assert result.status == LoadStatus.COMPLETED
        assert result.rows_loaded == 3

    async def test_load_offset_timestamps(self, tmp_path, memory_store):
        """Test windows written with UTC offsets load as naive UTC"""
        path = tmp_path / "telecom.jsonl"
        pl.DataFrame({
            "window_start": ["2024-05-01T15:30:00+05:30", "2024-05-01T11:00:00Z"],
            "window_end": ["2024-05-01T16:30:00+05:30", "2024-05-01T12:00:00Z"],
            "state": ["Rajasthan", "Rajasthan"],
            "city": ["Jaipur", "Jaipur"],
            "tourist_place": ["Amber Fort", "Amber Fort"],
            "total_devices": [100, 200],
            "confidence_score": [0.8, 0.8],
        }).write_ndjson(path)

        result = await TelecomBatchLoader(memory_store).load(path)

        assert result.status == LoadStatus.COMPLETED
        assert result.rows_loaded == 2
        stored = await memory_store.query_telecom_aggregates(TelecomQuery(place="Amber Fort"))
        assert [a.time_window.start for a in stored] == [datetime(2024, 5, 1, 10, 0), datetime(2024, 5, 1, 11, 0)]
        assert stored[0].time_window.end == datetime(2024, 5, 1, 11, 0)

    async def test_load_parquet_into_sql(self, tmp_path, sql_store, sample_telecom_df):
        """Test Parquet files load into the SQL store"""
        path = tmp_path / "telecom.parquet"
        prepare_frame(sample_telecom_df).write_parquet(path)

        result = await TelecomBatchLoader(sql_store).load(path)

        assert result.status == LoadStatus.COMPLETED
        assert await sql_store.latest_telecom_window_start() == datetime(2024, 5, 1, 11, 0)

    async def test_invalid_batch_rejected_whole(self, tmp_path, memory_store, sample_telecom_df):
        """Test one bad row rejects every row of the file"""
        path = tmp_path / "telecom.csv"
        sample_telecom_df.with_columns(
            pl.Series("confidence_score", [0.9, 1.7, 0.5])
        ).write_csv(path)
        dead_letter = tmp_path / "dead_letter"

        result = await TelecomBatchLoader(memory_store, dead_letter_dir=dead_letter).load(path)

        assert result.status == LoadStatus.FAILED
        assert result.rows_loaded == 0
        assert any("confidence_score" in e for e in result.errors)
        assert await memory_store.query_telecom_aggregates(TelecomQuery()) == []
        [rejected] = list(dead_letter.glob("*.parquet"))
        assert pl.read_parquet(rejected).height == 3

    async def test_missing_file(self, tmp_path, memory_store):
        """Test an unreadable file fails without raising"""
        result = await TelecomBatchLoader(memory_store).load(tmp_path / "missing.csv")

        assert result.status == LoadStatus.FAILED
        assert result.error_message.startswith("Unreadable file")

    async def test_malformed_breakdown(self, tmp_path, memory_store, sample_telecom_df):
        """Test a breakdown that is not a JSON object rejects the batch"""
        path = tmp_path / "telecom.csv"
        sample_telecom_df.with_columns(
            pl.Series("international_breakdown", ["[1, 2]", "{}", "{}"])
        ).write_csv(path)

        result = await TelecomBatchLoader(memory_store).load(path)

        assert result.status == LoadStatus.FAILED
        assert result.error_message.startswith("Malformed row")
