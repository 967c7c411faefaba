"""
Footfall Merger

Reconciles two independently collected signals into one crowd estimate:

- Telecom aggregates: approximate, confidence-scored, pre-bucketed. Repeated
  snapshots of the same place are redundant samples, so they are averaged.
- Ticket events: exact per booking. Each ticket is a distinct party, so
  visitor counts are summed.

Per place the two are blended with fixed weights (0.7 telecom, 0.3 tickets);
a side with no data contributes 0. Fleet-wide totals are additive instead of
blended. Both behaviours are deliberate and must stay different.
"""

import json
from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Union

import polars as pl
import structlog

from footfall.analytics.bucketing import bucket_start
from footfall.analytics.confidence import DEFAULT_MIN_CONFIDENCE, filter_by_confidence
from footfall.analytics.matching import PlaceKey, same_place, telecom_place_key, ticket_place_key
from footfall.domain.models import (
    FleetTotals,
    Interval,
    MergedPlaceEstimate,
    PlaceVisitorAnalytics,
    SeriesPoint,
    TelecomAggregate,
    TicketEvent,
    TouristType,
    round_half_up,
)

logger = structlog.get_logger(__name__)

KEY_COLUMNS = ["state_key", "city_key", "place_key"]

DEFAULT_MAX_TELECOM_GROUPS = 50

TELECOM_SCHEMA = {
    "state_key": pl.String,
    "city_key": pl.String,
    "place_key": pl.String,
    "bucket": pl.Int64,
    "state": pl.String,
    "city": pl.String,
    "place": pl.String,
    "district": pl.String,
    "window_order": pl.Int64,
    "total_devices": pl.Float64,
    "domestic_devices": pl.Int64,
    "international_devices": pl.Int64,
    "confidence_score": pl.Float64,
    "international_breakdown": pl.String,
    "network_distribution": pl.String,
}

TICKET_SCHEMA = {
    "state_key": pl.String,
    "city_key": pl.String,
    "place_key": pl.String,
    "bucket": pl.Int64,
    "state": pl.String,
    "city": pl.String,
    "place": pl.String,
    "visitors": pl.Int64,
}


@dataclass(frozen=True)
class MergeWeights:
    """Blend weights for per-place estimates"""
    telecom: float = 0.7
    ticket: float = 0.3

    def blend(self, telecom_average: float, ticket_sum: float) -> int:
        """crowd count = round(telecom average * w_telecom + ticket sum * w_ticket)"""
        return round_half_up(telecom_average * self.telecom + ticket_sum * self.ticket)


def _ordinal(values: Iterable[Hashable]) -> Dict[Hashable, int]:
    """Order-preserving integer ids for sortable values."""
    return {value: i for i, value in enumerate(sorted(set(values)))}


def _telecom_row(aggregate: TelecomAggregate, bucket: int, window_order: int) -> dict:
    key = telecom_place_key(aggregate)
    loc = aggregate.location
    return {
        "state_key": key.state,
        "city_key": key.city,
        "place_key": key.place,
        "bucket": bucket,
        "state": loc.state,
        "city": loc.city or loc.tourist_place,
        "place": loc.tourist_place or loc.city,
        "district": loc.district,
        "window_order": window_order,
        "total_devices": float(aggregate.footfall.total_devices),
        "domestic_devices": aggregate.footfall.domestic_devices,
        "international_devices": aggregate.footfall.international_devices,
        "confidence_score": aggregate.confidence_score,
        "international_breakdown": json.dumps(aggregate.international_breakdown, sort_keys=True),
        "network_distribution": json.dumps(aggregate.network_distribution, sort_keys=True),
    }


def _ticket_row(ticket: TicketEvent, bucket: int) -> dict:
    key = ticket_place_key(ticket)
    return {
        "state_key": key.state,
        "city_key": key.city,
        "place_key": key.place,
        "bucket": bucket,
        "state": ticket.state,
        "city": ticket.city,
        "place": ticket.place,
        "visitors": ticket.visitors,
    }


def _breakdown(encoded: Optional[str]) -> Dict[str, int]:
    """Decode a breakdown column; ticket-only places have none."""
    return json.loads(encoded) if encoded else {}


def _full_join(telecom: pl.DataFrame, tickets: pl.DataFrame, on: Sequence[str]) -> pl.DataFrame:
    """Outer join the two grouped sides; a missing side counts as zero."""
    merged = telecom.join(tickets, on=list(on), how="full", coalesce=True, suffix="_ticket")
    labels = [c for c in ("state", "city", "place") if f"{c}_ticket" in merged.columns]
    return merged.with_columns(
        *[pl.coalesce(c, f"{c}_ticket").alias(c) for c in labels],
        pl.col("telecom_footfall").fill_null(0.0),
        pl.col("ticket_footfall").fill_null(0),
    )


class FootfallMerger:
    """
    Telecom + ticket reconciliation engine.

    Example:
        merger = FootfallMerger()
        estimates = merger.merge_places(aggregates, tickets)
    """

    def __init__(
        self,
        weights: Optional[MergeWeights] = None,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
        max_telecom_groups: int = DEFAULT_MAX_TELECOM_GROUPS,
    ):
        if max_telecom_groups < 1:
            raise ValueError("max_telecom_groups must be at least 1")
        self.weights = weights or MergeWeights()
        self.min_confidence = min_confidence
        self.max_telecom_groups = max_telecom_groups

    # -------------------------------------------------------------------------
    # Per place
    # -------------------------------------------------------------------------

    def merge_places(
        self,
        aggregates: Iterable[TelecomAggregate],
        tickets: Iterable[TicketEvent],
    ) -> List[MergedPlaceEstimate]:
        """
        Produce one crowd estimate per place.

        Places are matched on the normalized (state, city, place) key. At most
        ``max_telecom_groups`` telecom places enter the merge, preferring the
        ones with the most recent window; ticket-only places are always kept.

        Returns:
            Estimates ordered by city, then place
        """
        kept = filter_by_confidence(aggregates, self.min_confidence)
        window_order = _ordinal(a.time_window.start for a in kept)

        telecom = pl.DataFrame(
            [_telecom_row(a, 0, window_order[a.time_window.start]) for a in kept],
            schema=TELECOM_SCHEMA,
        )
        ticket = pl.DataFrame(
            [_ticket_row(t, 0) for t in tickets],
            schema=TICKET_SCHEMA,
        )

        telecom_groups = telecom.group_by(KEY_COLUMNS, maintain_order=True).agg(
            pl.col("state").first(),
            pl.col("city").first(),
            pl.col("place").first(),
            pl.col("district").drop_nulls().first(),
            pl.col("total_devices").mean().alias("telecom_footfall"),
            pl.col("window_order").max().alias("latest_window"),
            pl.col("domestic_devices").mean(),
            pl.col("international_devices").mean(),
            pl.col("confidence_score").mean(),
            pl.col("international_breakdown").sort_by("window_order").last(),
            pl.col("network_distribution").sort_by("window_order").last(),
        )

        if telecom_groups.height > self.max_telecom_groups:
            logger.info(
                "Telecom groups capped",
                groups=telecom_groups.height,
                cap=self.max_telecom_groups,
            )
            telecom_groups = telecom_groups.sort(
                "latest_window", descending=True, maintain_order=True
            ).head(self.max_telecom_groups)

        ticket_groups = ticket.group_by(KEY_COLUMNS, maintain_order=True).agg(
            pl.col("state").first(),
            pl.col("city").first(),
            pl.col("place").first(),
            pl.col("visitors").sum().alias("ticket_footfall"),
        )

        merged = _full_join(telecom_groups, ticket_groups, KEY_COLUMNS).sort(KEY_COLUMNS)

        estimates = [
            MergedPlaceEstimate(
                place=row["place"],
                city=row["city"],
                state=row["state"],
                district=row["district"],
                telecom_footfall=row["telecom_footfall"],
                ticket_footfall=row["ticket_footfall"],
                crowd_count=self.weights.blend(row["telecom_footfall"], row["ticket_footfall"]),
                domestic_devices=row["domestic_devices"] or 0.0,
                international_devices=row["international_devices"] or 0.0,
                confidence_score=row["confidence_score"],
                international_breakdown=_breakdown(row["international_breakdown"]),
                network_distribution=_breakdown(row["network_distribution"]),
            )
            for row in merged.iter_rows(named=True)
        ]

        logger.debug(
            "Places merged",
            telecom_records=len(kept),
            ticket_records=ticket.height,
            places=len(estimates),
        )
        return estimates

    # -------------------------------------------------------------------------
    # Per place and time bucket
    # -------------------------------------------------------------------------

    def merge_series(
        self,
        aggregates: Iterable[TelecomAggregate],
        tickets: Iterable[TicketEvent],
        interval: Union[Interval, str] = Interval.HOUR,
        key: Optional[PlaceKey] = None,
    ) -> List[SeriesPoint]:
        """
        Produce a crowd curve: one blended estimate per time bucket.

        Telecom records are bucketed by window start, tickets by booking
        time. When ``key`` is given, records of other places are ignored.

        Returns:
            Points in ascending bucket order
        """
        kept = filter_by_confidence(aggregates, self.min_confidence)
        tickets = list(tickets)
        if key is not None:
            kept = [a for a in kept if same_place(telecom_place_key(a), key)]
            tickets = [t for t in tickets if same_place(ticket_place_key(t), key)]

        telecom_buckets = [bucket_start(a.time_window.start, interval) for a in kept]
        ticket_buckets = [bucket_start(t.created_at, interval) for t in tickets]
        buckets = sorted(set(telecom_buckets) | set(ticket_buckets))
        bucket_ids = {b: i for i, b in enumerate(buckets)}

        telecom = pl.DataFrame(
            [_telecom_row(a, bucket_ids[b], 0) for a, b in zip(kept, telecom_buckets)],
            schema=TELECOM_SCHEMA,
        )
        ticket = pl.DataFrame(
            [_ticket_row(t, bucket_ids[b]) for t, b in zip(tickets, ticket_buckets)],
            schema=TICKET_SCHEMA,
        )

        telecom_groups = telecom.group_by("bucket").agg(
            pl.col("total_devices").mean().alias("telecom_footfall"),
        )
        ticket_groups = ticket.group_by("bucket").agg(
            pl.col("visitors").sum().alias("ticket_footfall"),
        )

        merged = _full_join(telecom_groups, ticket_groups, ["bucket"]).sort("bucket")

        return [
            SeriesPoint(
                time=buckets[row["bucket"]],
                visitors=self.weights.blend(row["telecom_footfall"], row["ticket_footfall"]),
            )
            for row in merged.iter_rows(named=True)
        ]

    # -------------------------------------------------------------------------
    # Fleet wide
    # -------------------------------------------------------------------------

    def fleet_totals(
        self,
        aggregates: Iterable[TelecomAggregate],
        tickets: Iterable[TicketEvent],
    ) -> FleetTotals:
        """
        Dashboard totals: telecom device sums plus ticket visitor sums.

        At fleet scale the two sources count complementary populations, so
        they are added rather than blended.
        """
        kept = filter_by_confidence(aggregates, self.min_confidence)
        tickets = list(tickets)

        domestic_tickets = sum(t.visitors for t in tickets if t.tourist_type == TouristType.DOMESTIC)
        international_tickets = sum(t.visitors for t in tickets if t.tourist_type == TouristType.INTERNATIONAL)

        return FleetTotals(
            total_footfall=sum(a.footfall.total_devices for a in kept) + sum(t.visitors for t in tickets),
            domestic_visitors=sum(a.footfall.domestic_devices for a in kept) + domestic_tickets,
            international_visitors=sum(a.footfall.international_devices for a in kept) + international_tickets,
        )


def summarize_telecom(aggregates: Iterable[TelecomAggregate]) -> List[PlaceVisitorAnalytics]:
    """
    Telecom-only visitor totals per place with average confidence.

    No confidence filtering is applied; the average confidence is reported
    so consumers can judge the figures themselves.

    Returns:
        Rows sorted by total visitors, highest first
    """
    frame = pl.DataFrame(
        [_telecom_row(a, 0, 0) for a in aggregates],
        schema=TELECOM_SCHEMA,
    )

    grouped = (
        frame.group_by(KEY_COLUMNS, maintain_order=True)
        .agg(
            pl.col("state").first(),
            pl.col("city").first(),
            pl.col("place").first(),
            pl.col("total_devices").sum().cast(pl.Int64).alias("total_visitors"),
            pl.col("domestic_devices").sum().alias("domestic_visitors"),
            pl.col("international_devices").sum().alias("international_visitors"),
            pl.col("confidence_score").mean().round(2).alias("avg_confidence"),
        )
        .sort("total_visitors", descending=True, maintain_order=True)
    )

    return [
        PlaceVisitorAnalytics(
            state=row["state"],
            city=row["city"],
            place=row["place"],
            total_visitors=row["total_visitors"],
            domestic_visitors=row["domestic_visitors"],
            international_visitors=row["international_visitors"],
            avg_confidence=row["avg_confidence"],
        )
        for row in grouped.iter_rows(named=True)
    ]
