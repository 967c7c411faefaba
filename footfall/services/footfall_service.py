"""
Footfall Service

Composes the analytics core over a store. Read operations fetch the telecom
and ticket sources concurrently and degrade per source: a source that is
unavailable is logged and treated as empty. Write operations validate first
and propagate store failures.
"""

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, TypeVar, Union

import structlog

from footfall.analytics.classifier import classify_crowd
from footfall.analytics.matching import normalize_name, place_key
from footfall.analytics.merger import FootfallMerger, MergeWeights, summarize_telecom
from footfall.analytics.recommender import recommend
from footfall.config.settings import FootfallSettings
from footfall.domain.errors import StoreUnavailableError, ValidationError
from footfall.domain.models import (
    DashboardStats,
    Direction,
    EntryEvent,
    Hotel,
    HotelCapacity,
    Interval,
    MergedPlaceEstimate,
    PlaceVisitorAnalytics,
    SeriesPoint,
    TelecomAggregate,
    TicketEvent,
    TimeRange,
)
from footfall.quality.validators import Invalid, validate_booking, validate_checkin, validate_hotel
from footfall.store.interfaces import FootfallStore, TelecomQuery, TicketQuery

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Naive UTC, the storage convention for all timestamps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _check_range(time_range: Optional[TimeRange]) -> None:
    if time_range is None or time_range.start is None or time_range.end is None:
        return
    if time_range.start > time_range.end:
        raise ValidationError(["start must not be after end"])


class FootfallService:
    """
    Footfall operations over an injected store.

    Example:
        service = FootfallService(InMemoryFootfallStore())
        ticket_id = await service.book_ticket({...})
        cities = await service.compute_footfall_summary("Rajasthan")
    """

    def __init__(
        self,
        store: FootfallStore,
        settings: Optional[FootfallSettings] = None,
        merger: Optional[FootfallMerger] = None,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.settings = settings or FootfallSettings()
        self.merger = merger or FootfallMerger(
            weights=MergeWeights(
                telecom=self.settings.telecom_weight,
                ticket=self.settings.ticket_weight,
            ),
            min_confidence=self.settings.min_confidence,
            max_telecom_groups=self.settings.max_telecom_groups,
        )
        self._clock = clock

    # -------------------------------------------------------------------------
    # Source fetching
    # -------------------------------------------------------------------------

    async def _degrade(self, source: str, fetch: Awaitable[T], fallback: T) -> T:
        try:
            return await fetch
        except StoreUnavailableError as e:
            logger.warning("Source unavailable, using empty result", source=source, error=e.message)
            return fallback

    async def _fetch_sources(
        self,
        telecom_query: TelecomQuery,
        ticket_query: TicketQuery,
    ) -> Tuple[List[TelecomAggregate], List[TicketEvent]]:
        telecom, tickets = await asyncio.gather(
            self._degrade("telecom", self.store.query_telecom_aggregates(telecom_query), []),
            self._degrade("tickets", self.store.query_ticket_events(ticket_query), []),
        )
        return telecom, tickets

    async def _default_window(self) -> TimeRange:
        """Lookback window ending at the newest telecom window, or now."""
        latest = await self._degrade("telecom", self.store.latest_telecom_window_start(), None)
        anchor = latest or self._clock()
        return TimeRange(start=anchor - timedelta(hours=self.settings.lookback_hours), end=anchor)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def compute_footfall_summary(
        self,
        state: Optional[str] = None,
        time_range: Optional[TimeRange] = None,
    ) -> Dict[str, List[MergedPlaceEstimate]]:
        """
        Merged estimates for every place of a state, grouped by city.

        Returns:
            City name -> places ordered by name
        """
        _check_range(time_range)
        state = state or self.settings.default_state

        telecom, tickets = await self._fetch_sources(
            TelecomQuery(state=state, time_range=time_range),
            TicketQuery(state=state, time_range=time_range),
        )
        estimates = self.merger.merge_places(telecom, tickets)

        cities: Dict[str, List[MergedPlaceEstimate]] = {}
        labels: Dict[str, str] = {}
        for estimate in estimates:
            label = labels.setdefault(normalize_name(estimate.city), estimate.city)
            cities.setdefault(label, []).append(
                replace(estimate, crowd_level=classify_crowd(estimate.crowd_count))
            )

        logger.info("Footfall summary computed", state=state, cities=len(cities), places=len(estimates))
        return cities

    async def compute_footfall_series(
        self,
        state: Optional[str],
        city: Optional[str],
        place: Optional[str],
        time_range: Optional[TimeRange] = None,
        interval: Union[Interval, str] = Interval.HOUR,
    ) -> List[SeriesPoint]:
        """Crowd curve for one place, one point per time bucket."""
        if not city or not place:
            raise ValidationError(["city and tourist_place are required"])
        _check_range(time_range)
        state = state or self.settings.default_state
        interval = Interval(interval)

        telecom, tickets = await self._fetch_sources(
            TelecomQuery(state=state, city=city, place=place, time_range=time_range),
            TicketQuery(state=state, city=city, place=place, time_range=time_range),
        )
        return self.merger.merge_series(
            telecom,
            tickets,
            interval,
            key=place_key(state, city, place),
        )

    async def _recommend(
        self,
        direction: Direction,
        state: Optional[str],
        district: Optional[str],
        search: Optional[str],
        limit: Optional[int],
    ) -> List[MergedPlaceEstimate]:
        state = state or self.settings.default_state
        window = await self._default_window()

        telecom, tickets = await self._fetch_sources(
            TelecomQuery(state=state, time_range=window),
            TicketQuery(state=state, time_range=window),
        )
        estimates = self.merger.merge_places(telecom, tickets)

        if district:
            wanted = normalize_name(district)
            estimates = [e for e in estimates if normalize_name(e.district) == wanted]
        if search:
            needle = search.lower()
            estimates = [e for e in estimates if needle in e.place.lower() or needle in e.city.lower()]

        return recommend(estimates, direction, limit or self.settings.recommendation_limit)

    async def recommend_low_crowd(
        self,
        state: Optional[str] = None,
        district: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[MergedPlaceEstimate]:
        """Quietest places first, at most 15000 visitors."""
        return await self._recommend(Direction.LOW, state, district, search, limit)

    async def recommend_high_crowd(
        self,
        state: Optional[str] = None,
        district: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[MergedPlaceEstimate]:
        """Busiest places first, at least 8000 visitors, with crowd level."""
        return await self._recommend(Direction.HIGH, state, district, search, limit)

    async def dashboard_stats(self, time_range: Optional[TimeRange] = None) -> DashboardStats:
        """Fleet-wide footfall with hotel occupancy."""
        _check_range(time_range)
        window = time_range or await self._default_window()

        (telecom, tickets), capacity = await asyncio.gather(
            self._fetch_sources(TelecomQuery(time_range=window), TicketQuery(time_range=window)),
            self._degrade("hotels", self.store.hotel_capacity(), HotelCapacity()),
        )
        totals = self.merger.fleet_totals(telecom, tickets)

        return DashboardStats(
            total_footfall=totals.total_footfall,
            domestic_visitors=totals.domestic_visitors,
            international_visitors=totals.international_visitors,
            hotel_occupancy=capacity.occupancy_percent,
            window=window,
        )

    async def visitor_analytics(
        self,
        state: Optional[str] = None,
        city: Optional[str] = None,
        place: Optional[str] = None,
        time_range: Optional[TimeRange] = None,
    ) -> List[PlaceVisitorAnalytics]:
        """Telecom-only visitor totals per place, busiest first."""
        _check_range(time_range)
        telecom = await self._degrade(
            "telecom",
            self.store.query_telecom_aggregates(
                TelecomQuery(state=state, city=city, place=place, time_range=time_range)
            ),
            [],
        )
        return summarize_telecom(telecom)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def book_ticket(self, fields: Mapping[str, Any]) -> str:
        """
        Record a booking and bump the place counter.

        The ticket insert and the counter update form one unit of work.
        The ticket snapshots the place's crowd count from before the booking.

        Returns:
            The new ticket id

        Raises:
            ValidationError: the request is malformed; nothing is written
            StoreUnavailableError: the store failed; nothing is written
        """
        outcome = validate_booking(fields)
        if isinstance(outcome, Invalid):
            raise ValidationError(outcome.reasons)
        draft = outcome.record

        now = self._clock()
        async with self.store.atomic() as tx:
            place = await tx.get_place(draft.state, draft.city, draft.place)
            current = place.crowd_count if place is not None else 0
            ticket = await tx.insert_ticket_event(draft, classify_crowd(current), current, now)
            await tx.upsert_place_counter(draft.state, draft.city, draft.place, draft.visitors, now)

        logger.info(
            "Ticket booked",
            ticket_id=ticket.id,
            place=draft.place,
            city=draft.city,
            visitors=draft.visitors,
            crowd_status=ticket.crowd_status.value,
        )
        return ticket.id

    async def record_checkin(self, fields: Mapping[str, Any]) -> EntryEvent:
        """Append a QR check-in event."""
        outcome = validate_checkin(fields)
        if isinstance(outcome, Invalid):
            raise ValidationError(outcome.reasons)

        event = await self.store.insert_entry_event(outcome.record, self._clock())
        logger.info("Check-in recorded", location_id=event.location_id, event_type=event.event_type.value)
        return event

    async def add_hotel(self, fields: Mapping[str, Any]) -> Hotel:
        """Add a hotel, replacing any hotel with the same serial number."""
        outcome = validate_hotel(fields)
        if isinstance(outcome, Invalid):
            raise ValidationError(outcome.reasons)

        hotel = await self.store.add_hotel(outcome.record)
        logger.info("Hotel saved", serial_no=hotel.serial_no, city=hotel.city, vacancy=hotel.vacancy)
        return hotel

    async def list_hotels(self) -> List[Hotel]:
        return await self.store.list_hotels()
