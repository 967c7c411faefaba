"""
In-Memory Footfall Store

Process-local store for development and tests. Writers are serialized with
one asyncio.Lock; ``atomic()`` holds the lock for the whole unit of work and
restores a snapshot when the block raises.
"""

import asyncio
import uuid
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import datetime
from typing import AsyncIterator, Dict, List, Optional, Sequence

import structlog

from footfall.analytics.counter import HISTORY_LIMIT, PlaceCrowdCounter
from footfall.analytics.matching import PlaceKey, normalize_name, place_key, telecom_place_key, ticket_place_key
from footfall.domain.models import (
    CrowdLevel,
    EntryDraft,
    EntryEvent,
    Hotel,
    HotelCapacity,
    TelecomAggregate,
    TicketDraft,
    TicketEvent,
    TimeRange,
    TouristPlace,
    to_naive_utc,
)
from footfall.store.interfaces import FootfallStore, TelecomQuery, TicketQuery

logger = structlog.get_logger(__name__)

# store whose lock the current task already holds
_active_store: ContextVar[Optional["InMemoryFootfallStore"]] = ContextVar("_active_store", default=None)


def _key_matches(key: PlaceKey, state: Optional[str], city: Optional[str], place: Optional[str]) -> bool:
    if state is not None and key.state != normalize_name(state):
        return False
    if city is not None and key.city != normalize_name(city):
        return False
    if place is not None and key.place != normalize_name(place):
        return False
    return True


def _in_range(ts: datetime, time_range: Optional[TimeRange]) -> bool:
    if time_range is None:
        return True
    bounds = TimeRange(
        start=to_naive_utc(time_range.start) if time_range.start else None,
        end=to_naive_utc(time_range.end) if time_range.end else None,
    )
    return bounds.contains(to_naive_utc(ts))


class InMemoryFootfallStore(FootfallStore):
    """
    Dict and list backed store.

    Example:
        store = InMemoryFootfallStore()
        async with store.atomic() as tx:
            await tx.upsert_place_counter("Rajasthan", "Jaipur", "Amber Fort", 4, now)
    """

    def __init__(self, history_limit: int = HISTORY_LIMIT):
        self._counter = PlaceCrowdCounter(history_limit)
        self._lock = asyncio.Lock()

        self._telecom: List[TelecomAggregate] = []
        self._tickets: List[TicketEvent] = []
        self._places: Dict[PlaceKey, TouristPlace] = {}
        self._entries: List[EntryEvent] = []
        self._hotels: Dict[int, Hotel] = {}

    # -------------------------------------------------------------------------
    # Locking
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def _write(self) -> AsyncIterator[None]:
        if _active_store.get() is self:
            yield
            return
        async with self._lock:
            yield

    def _snapshot(self) -> tuple:
        return (
            list(self._telecom),
            list(self._tickets),
            dict(self._places),
            list(self._entries),
            dict(self._hotels),
        )

    def _restore(self, snapshot: tuple) -> None:
        self._telecom, self._tickets, self._places, self._entries, self._hotels = snapshot

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator["InMemoryFootfallStore"]:
        if _active_store.get() is self:
            yield self
            return

        async with self._lock:
            snapshot = self._snapshot()
            token = _active_store.set(self)
            try:
                yield self
            except BaseException:
                self._restore(snapshot)
                logger.debug("Unit of work rolled back")
                raise
            finally:
                _active_store.reset(token)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def query_telecom_aggregates(self, query: TelecomQuery) -> List[TelecomAggregate]:
        rows = [
            a for a in self._telecom
            if _key_matches(telecom_place_key(a), query.state, query.city, query.place)
            and _in_range(a.time_window.start, query.time_range)
            and (query.min_confidence is None or a.confidence_score >= query.min_confidence)
        ]
        return sorted(rows, key=lambda a: a.time_window.start)

    async def query_ticket_events(self, query: TicketQuery) -> List[TicketEvent]:
        rows = [
            t for t in self._tickets
            if _key_matches(ticket_place_key(t), query.state, query.city, query.place)
            and _in_range(t.created_at, query.time_range)
        ]
        return sorted(rows, key=lambda t: t.created_at)

    async def get_place(self, state: str, city: str, name: str) -> Optional[TouristPlace]:
        return self._places.get(place_key(state, city, name))

    async def latest_telecom_window_start(self) -> Optional[datetime]:
        if not self._telecom:
            return None
        return max(a.time_window.start for a in self._telecom)

    async def list_hotels(self) -> List[Hotel]:
        return [self._hotels[serial_no] for serial_no in sorted(self._hotels)]

    async def hotel_capacity(self) -> HotelCapacity:
        return HotelCapacity(
            total_rooms=sum(h.total_rooms for h in self._hotels.values()),
            total_vacancy=sum(h.vacancy for h in self._hotels.values()),
        )

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def upsert_place_counter(
        self,
        state: str,
        city: str,
        name: str,
        visitors: int,
        at: datetime,
    ) -> TouristPlace:
        key = place_key(state, city, name)
        async with self._write():
            updated = self._counter.apply(self._places.get(key), state, city, name, visitors, at)
            if updated.id is None:
                updated = TouristPlace(
                    id=str(uuid.uuid4()),
                    state=updated.state,
                    city=updated.city,
                    name=updated.name,
                    crowd_count=updated.crowd_count,
                    footfall_history=updated.footfall_history,
                )
            self._places[key] = updated
        return updated

    async def insert_ticket_event(
        self,
        draft: TicketDraft,
        crowd_status: CrowdLevel,
        crowd_count_at_booking: int,
        created_at: datetime,
    ) -> TicketEvent:
        ticket = TicketEvent(
            id=str(uuid.uuid4()),
            tourist_type=draft.tourist_type,
            phone=draft.phone,
            visitors=draft.visitors,
            state=draft.state,
            city=draft.city,
            place=draft.place,
            crowd_status=crowd_status,
            crowd_count_at_booking=crowd_count_at_booking,
            created_at=created_at,
            country_code=draft.country_code,
            from_city=draft.from_city,
            country=draft.country,
        )
        async with self._write():
            self._tickets.append(ticket)
        return ticket

    async def insert_telecom_aggregates(self, aggregates: Sequence[TelecomAggregate]) -> int:
        async with self._write():
            self._telecom.extend(aggregates)
        return len(aggregates)

    async def insert_entry_event(self, draft: EntryDraft, timestamp: datetime) -> EntryEvent:
        event = EntryEvent(
            id=str(uuid.uuid4()),
            ticket_id=draft.ticket_id,
            location_id=draft.location_id,
            visitor_type=draft.visitor_type,
            event_type=draft.event_type,
            source=draft.source,
            verification_level=draft.verification_level,
            geo_opted_in=draft.geo_opted_in,
            geo_location=draft.geo_location,
            timestamp=timestamp,
        )
        async with self._write():
            self._entries.append(event)
        return event

    async def add_hotel(self, hotel: Hotel) -> Hotel:
        async with self._write():
            self._hotels[hotel.serial_no] = hotel
        return hotel
