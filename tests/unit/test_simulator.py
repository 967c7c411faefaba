"""
Unit Tests - Telecom Simulator
"""
import json

import pytest
import polars as pl
from datetime import datetime

from footfall.data.simulator import PLACES, TelecomSimulator, diurnal_factor
from footfall.ingestion.batch_loader import frame_to_aggregates, prepare_frame
from footfall.quality.validators import ValidationStatus, create_telecom_validator

START = datetime(2024, 5, 1)


@pytest.fixture
def frame() -> pl.DataFrame:
    return TelecomSimulator(seed=7).generate(START, hours=6)


class TestTelecomSimulator:
    """Tests for simulated telecom aggregates"""

    def test_one_row_per_place_per_window(self, frame):
        """Test every catalogue place appears in every window"""
        assert frame.height == 6 * len(PLACES)
        assert frame["window_start"].n_unique() == 6

    def test_quarter_hour_windows(self):
        """Test window length controls the number of windows"""
        df = TelecomSimulator(seed=1).generate(START, hours=1, window_minutes=15)

        assert df.height == 4 * len(PLACES)
        assert df["window_minutes"].unique().to_list() == [15]

    def test_deterministic_for_seed(self):
        """Test the same seed reproduces the same frame"""
        a = TelecomSimulator(seed=3).generate(START, hours=2)
        b = TelecomSimulator(seed=3).generate(START, hours=2)

        assert a.equals(b)

    def test_device_split_adds_up(self, frame):
        """Test domestic and international devices sum to the total"""
        mismatched = frame.filter(
            pl.col("domestic_devices") + pl.col("international_devices") != pl.col("total_devices")
        )
        assert mismatched.height == 0

    def test_breakdown_matches_international(self, frame):
        """Test the country breakdown sums to the international count"""
        for row in frame.iter_rows(named=True):
            assert sum(json.loads(row["international_breakdown"]).values()) == row["international_devices"]

    def test_marked_as_simulated(self, frame):
        """Test every row carries the SIMULATED source"""
        assert frame["data_source"].unique().to_list() == ["SIMULATED"]

    def test_passes_telecom_validation(self, frame):
        """Test generated data satisfies the batch rules"""
        result = create_telecom_validator().validate(prepare_frame(frame))
        assert result.status == ValidationStatus.PASSED

    def test_converts_to_aggregates(self, frame):
        """Test generated rows convert to domain aggregates"""
        aggregates = frame_to_aggregates(prepare_frame(frame))

        assert len(aggregates) == frame.height
        assert aggregates[0].location.state == "Rajasthan"
        assert aggregates[0].time_window.start == START

    def test_diurnal_peak(self):
        """Test demand peaks early afternoon and is low at night"""
        assert diurnal_factor(13) == pytest.approx(1.0)
        assert diurnal_factor(3) < 0.2
        assert diurnal_factor(13) > diurnal_factor(9) > diurnal_factor(5)
