"""
Unit Tests - Footfall Merger
"""
import pytest
from dataclasses import replace
from datetime import datetime, timedelta

from footfall.analytics.matching import place_key
from footfall.analytics.merger import FootfallMerger, MergeWeights, summarize_telecom
from footfall.domain.models import Interval, TouristType

from tests.factories import BASE_TIME, make_aggregate, make_ticket


@pytest.fixture
def merger() -> FootfallMerger:
    return FootfallMerger()


class TestMergeWeights:
    """Tests for the weighted blend"""

    def test_default_weights(self):
        """Test default weights are 0.7 telecom and 0.3 tickets"""
        weights = MergeWeights()
        assert (weights.telecom, weights.ticket) == (0.7, 0.3)

    def test_blend_rounds_half_up(self):
        """Test 1.5 rounds to 2"""
        assert MergeWeights().blend(0, 5) == 2

    def test_blend_zero(self):
        """Test no data on either side gives zero"""
        assert MergeWeights().blend(0, 0) == 0


class TestMergePlaces:
    """Tests for per-place reconciliation"""

    def test_telecom_averaged_tickets_summed(self, merger):
        """Test telecom snapshots are averaged and ticket visitors summed"""
        aggregates = [
            make_aggregate(10000, start=BASE_TIME),
            make_aggregate(12000, start=BASE_TIME + timedelta(hours=1)),
        ]
        tickets = [make_ticket(4), make_ticket(6, ticket_id="t-2")]

        [result] = merger.merge_places(aggregates, tickets)

        assert result.telecom_footfall == 11000
        assert result.ticket_footfall == 10
        assert result.crowd_count == 7703

    def test_ticket_only_place(self, merger):
        """Test a place with only bookings gets the ticket share"""
        [result] = merger.merge_places([], [make_ticket(100, place="Hawa Mahal")])

        assert result.place == "Hawa Mahal"
        assert result.telecom_footfall == 0
        assert result.crowd_count == 30
        assert result.district is None

    def test_telecom_only_place(self, merger):
        """Test a place with only telecom data gets the telecom share"""
        [result] = merger.merge_places([make_aggregate(10001)], [])

        assert result.ticket_footfall == 0
        assert result.crowd_count == 7001
        assert result.district == "Jaipur"

    def test_telecom_detail_carried(self, merger):
        """Test device split and confidence are averaged and breakdowns come from the latest window"""
        earlier = replace(
            make_aggregate(1000, start=BASE_TIME, confidence=0.8, domestic=600, international=400),
            international_breakdown={"US": 400},
            network_distribution={"Jio": 1000},
        )
        later = replace(
            make_aggregate(2000, start=BASE_TIME + timedelta(hours=1), confidence=1.0, domestic=1400, international=600),
            international_breakdown={"UK": 600},
            network_distribution={"Airtel": 2000},
        )

        [result] = merger.merge_places([later, earlier], [])

        assert result.domestic_devices == 1000
        assert result.international_devices == 500
        assert result.confidence_score == pytest.approx(0.9)
        assert result.international_breakdown == {"UK": 600}
        assert result.network_distribution == {"Airtel": 2000}

    def test_ticket_only_place_has_no_telecom_detail(self, merger):
        """Test a place without telecom data reports empty telecom detail"""
        [result] = merger.merge_places([], [make_ticket(5)])

        assert (result.domestic_devices, result.international_devices) == (0, 0)
        assert result.confidence_score is None
        assert result.international_breakdown == {}
        assert result.network_distribution == {}

    def test_low_confidence_excluded(self, merger):
        """Test aggregates under the threshold never reach the merge"""
        aggregates = [make_aggregate(10000, confidence=0.9), make_aggregate(90000, confidence=0.3)]

        [result] = merger.merge_places(aggregates, [])

        assert result.telecom_footfall == 10000

    def test_only_low_confidence_data_leaves_ticket_places(self, merger):
        """Test a fully filtered telecom side behaves like no telecom data"""
        result = merger.merge_places(
            [make_aggregate(10000, place="Hawa Mahal", confidence=0.1)],
            [make_ticket(10)],
        )

        assert [r.place for r in result] == ["Amber Fort"]
        assert result[0].crowd_count == 3

    def test_names_match_case_insensitively(self, merger):
        """Test differently cased names merge into one place"""
        result = merger.merge_places(
            [make_aggregate(1000, place="AMBER FORT", city="JAIPUR", state="RAJASTHAN")],
            [make_ticket(10, place="amber fort", city="jaipur", state="rajasthan")],
        )

        assert len(result) == 1
        assert result[0].crowd_count == 703

    def test_different_cities_do_not_merge(self, merger):
        """Test same place name in another city is a different place"""
        result = merger.merge_places(
            [make_aggregate(1000, place="City Palace", city="Jaipur")],
            [make_ticket(10, place="City Palace", city="Udaipur")],
        )

        assert len(result) == 2

    def test_sorted_by_city_then_place(self, merger):
        """Test output order follows the normalized key"""
        aggregates = [
            make_aggregate(100, place="Lake Pichola", city="Udaipur"),
            make_aggregate(100, place="Hawa Mahal", city="Jaipur"),
            make_aggregate(100, place="Amber Fort", city="Jaipur"),
        ]

        result = merger.merge_places(aggregates, [])

        assert [r.place for r in result] == ["Amber Fort", "Hawa Mahal", "Lake Pichola"]

    def test_telecom_groups_capped_by_recency(self):
        """Test the cap keeps the places with the latest windows"""
        merger = FootfallMerger(max_telecom_groups=2)
        aggregates = [
            make_aggregate(100, place="Old", start=BASE_TIME),
            make_aggregate(100, place="Newer", start=BASE_TIME + timedelta(hours=1)),
            make_aggregate(100, place="Newest", start=BASE_TIME + timedelta(hours=2)),
        ]
        tickets = [make_ticket(10, place="Booked Only")]

        result = merger.merge_places(aggregates, tickets)

        assert sorted(r.place for r in result) == ["Booked Only", "Newer", "Newest"]

    def test_invalid_cap(self):
        """Test a cap below one is rejected"""
        with pytest.raises(ValueError):
            FootfallMerger(max_telecom_groups=0)

    def test_empty_inputs(self, merger):
        """Test no data gives no estimates"""
        assert merger.merge_places([], []) == []


class TestMergeSeries:
    """Tests for the per-bucket crowd curve"""

    def test_hourly_series(self, merger):
        """Test windows in one hour are averaged and tickets land in their hour"""
        aggregates = [
            make_aggregate(1000, start=datetime(2024, 5, 1, 10, 0)),
            make_aggregate(2000, start=datetime(2024, 5, 1, 10, 30)),
        ]
        tickets = [make_ticket(10, created_at=datetime(2024, 5, 1, 11, 20))]

        points = merger.merge_series(aggregates, tickets, Interval.HOUR)

        assert [(p.time, p.visitors) for p in points] == [
            (datetime(2024, 5, 1, 10, 0), 1050),
            (datetime(2024, 5, 1, 11, 0), 3),
        ]

    def test_quarter_hour_series(self, merger):
        """Test 15-minute buckets keep the windows apart"""
        aggregates = [
            make_aggregate(1000, start=datetime(2024, 5, 1, 10, 0)),
            make_aggregate(2000, start=datetime(2024, 5, 1, 10, 30)),
        ]

        points = merger.merge_series(aggregates, [], "15-minute")

        assert [p.visitors for p in points] == [700, 1400]
        assert points[1].time == datetime(2024, 5, 1, 10, 30)

    def test_series_filtered_by_key(self, merger):
        """Test records of other places are ignored"""
        aggregates = [
            make_aggregate(1000),
            make_aggregate(50000, place="Hawa Mahal"),
        ]
        tickets = [make_ticket(10, place="Hawa Mahal")]

        points = merger.merge_series(
            aggregates, tickets, Interval.HOUR, key=place_key("Rajasthan", "Jaipur", "amber fort")
        )

        assert [p.visitors for p in points] == [700]

    def test_series_ascending(self, merger):
        """Test points come out in time order regardless of input order"""
        aggregates = [
            make_aggregate(100, start=BASE_TIME + timedelta(hours=2)),
            make_aggregate(100, start=BASE_TIME),
        ]

        points = merger.merge_series(aggregates, [], Interval.HOUR)

        assert points[0].time < points[1].time

    def test_empty_series(self, merger):
        """Test no data gives an empty curve"""
        assert merger.merge_series([], [], Interval.HOUR) == []


class TestFleetTotals:
    """Tests for dashboard-wide totals"""

    def test_sources_are_added(self, merger):
        """Test telecom and ticket counts are summed, not blended"""
        aggregates = [
            make_aggregate(1000, domestic=800, international=200),
            make_aggregate(2000, domestic=1500, international=500, place="Hawa Mahal"),
            make_aggregate(5000, domestic=5000, confidence=0.2),
        ]
        tickets = [
            make_ticket(4, tourist_type=TouristType.DOMESTIC),
            make_ticket(6, tourist_type=TouristType.INTERNATIONAL, ticket_id="t-2"),
        ]

        totals = merger.fleet_totals(aggregates, tickets)

        assert totals.total_footfall == 3010
        assert totals.domestic_visitors == 2304
        assert totals.international_visitors == 706

    def test_empty_totals(self, merger):
        """Test no data gives zero totals"""
        totals = merger.fleet_totals([], [])
        assert (totals.total_footfall, totals.domestic_visitors, totals.international_visitors) == (0, 0, 0)


class TestSummarizeTelecom:
    """Tests for telecom-only visitor analytics"""

    def test_grouped_and_sorted(self):
        """Test totals per place, busiest first, without confidence filtering"""
        aggregates = [
            make_aggregate(1000, domestic=900, international=100, confidence=0.9),
            make_aggregate(2000, domestic=1800, international=200, confidence=0.4),
            make_aggregate(5000, domestic=4000, international=1000, place="Hawa Mahal", confidence=0.8),
        ]

        rows = summarize_telecom(aggregates)

        assert [r.place for r in rows] == ["Hawa Mahal", "Amber Fort"]
        amber = rows[1]
        assert amber.total_visitors == 3000
        assert amber.domestic_visitors == 2700
        assert amber.international_visitors == 300
        assert amber.avg_confidence == pytest.approx(0.65)

    def test_empty(self):
        """Test no aggregates gives no rows"""
        assert summarize_telecom([]) == []
