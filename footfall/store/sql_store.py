"""
SQL Footfall Store

SQLAlchemy 2.0 async implementation. PostgreSQL (asyncpg) in production,
SQLite (aiosqlite) in development and tests.

The place counter is incremented with a single dialect-native
``INSERT ... ON CONFLICT DO UPDATE`` on the unique normalized place key, so
concurrent bookings for one place never lose an update. Every driver or
SQLAlchemy failure leaves this module as StoreUnavailableError.
"""

import copy
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, List, Optional, Sequence

import structlog
from sqlalchemy import case, delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from footfall.analytics.counter import HISTORY_LIMIT
from footfall.analytics.matching import normalize_name, place_key
from footfall.database.models import (
    EntryEventRecord,
    FootfallHistoryRecord,
    HotelRecord,
    TelecomAggregateRecord,
    TicketRecord,
    TouristPlaceRecord,
)
from footfall.domain.errors import StoreUnavailableError
from footfall.domain.models import (
    CrowdLevel,
    DataSource,
    DeviceFootfall,
    EntryDraft,
    EntryEvent,
    EntryEventType,
    EntrySource,
    FootfallEntry,
    GeoLocation,
    Hotel,
    HotelCapacity,
    Location,
    TelecomAggregate,
    TicketDraft,
    TicketEvent,
    TimeRange,
    TimeWindow,
    TouristPlace,
    TouristType,
    VerificationLevel,
    VisitorType,
    to_naive_utc,
)
from footfall.store.interfaces import FootfallStore, TelecomQuery, TicketQuery

logger = structlog.get_logger(__name__)


# =============================================================================
# RECORD <-> DOMAIN
# =============================================================================

def _telecom_record(aggregate: TelecomAggregate) -> TelecomAggregateRecord:
    loc = aggregate.location
    key = place_key(loc.state, loc.city, loc.tourist_place)
    return TelecomAggregateRecord(
        window_start=to_naive_utc(aggregate.time_window.start),
        window_end=to_naive_utc(aggregate.time_window.end),
        window_minutes=aggregate.time_window.window_minutes,
        state=loc.state,
        district=loc.district,
        city=loc.city,
        tourist_place=loc.tourist_place,
        location_id=loc.location_id,
        state_key=key.state,
        city_key=key.city,
        place_key=key.place,
        total_devices=aggregate.footfall.total_devices,
        domestic_devices=aggregate.footfall.domestic_devices,
        international_devices=aggregate.footfall.international_devices,
        international_breakdown=dict(aggregate.international_breakdown),
        network_distribution=dict(aggregate.network_distribution),
        confidence_score=aggregate.confidence_score,
        data_source=DataSource(aggregate.data_source).value,
    )


def _telecom_aggregate(record: TelecomAggregateRecord) -> TelecomAggregate:
    return TelecomAggregate(
        id=str(record.id),
        time_window=TimeWindow(
            start=record.window_start,
            end=record.window_end,
            window_minutes=record.window_minutes,
        ),
        location=Location(
            state=record.state,
            district=record.district,
            city=record.city,
            tourist_place=record.tourist_place,
            location_id=record.location_id,
        ),
        footfall=DeviceFootfall(
            total_devices=record.total_devices,
            domestic_devices=record.domestic_devices or 0,
            international_devices=record.international_devices or 0,
        ),
        international_breakdown=dict(record.international_breakdown or {}),
        network_distribution=dict(record.network_distribution or {}),
        confidence_score=record.confidence_score,
        data_source=DataSource(record.data_source),
        ingested_at=record.ingested_at,
    )


def _ticket_event(record: TicketRecord) -> TicketEvent:
    return TicketEvent(
        id=str(record.id),
        tourist_type=TouristType(record.tourist_type),
        phone=record.phone,
        visitors=record.visitors,
        state=record.state,
        city=record.city,
        place=record.place,
        crowd_status=CrowdLevel(record.crowd_status),
        crowd_count_at_booking=record.crowd_count_at_booking,
        created_at=record.created_at,
        country_code=record.country_code,
        from_city=record.from_city,
        country=record.country,
    )


def _hotel(record: HotelRecord) -> Hotel:
    return Hotel(
        serial_no=record.serial_no,
        name=record.name,
        address=record.address,
        city=record.city,
        total_rooms=record.total_rooms,
        vacancy=record.vacancy,
        rating=record.rating,
        reviews=record.reviews,
        category=record.category,
        nearby_places=tuple(record.nearby_places or ()),
    )


def _entry_event(record: EntryEventRecord) -> EntryEvent:
    geo = None
    if record.latitude is not None and record.longitude is not None:
        geo = GeoLocation(latitude=record.latitude, longitude=record.longitude, accuracy=record.accuracy)
    return EntryEvent(
        id=str(record.id),
        ticket_id=record.ticket_id,
        location_id=record.location_id,
        visitor_type=VisitorType(record.visitor_type),
        event_type=EntryEventType(record.event_type),
        source=EntrySource(record.source),
        verification_level=VerificationLevel(record.verification_level),
        geo_opted_in=record.geo_opted_in,
        timestamp=record.timestamp,
        geo_location=geo,
    )


class SqlFootfallStore(FootfallStore):
    """
    Footfall store over an async SQLAlchemy engine.

    The engine is owned by the caller; ``close()`` does not dispose it.

    Example:
        engine = await init_database(settings.database)
        store = SqlFootfallStore(engine)
        async with store.atomic() as tx:
            await tx.insert_ticket_event(...)
            await tx.upsert_place_counter(...)
    """

    def __init__(self, engine: AsyncEngine, history_limit: int = HISTORY_LIMIT):
        if history_limit < 1:
            raise ValueError("history_limit must be at least 1")
        self._engine = engine
        self._sessions = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        self._session: Optional[AsyncSession] = None
        self.history_limit = history_limit

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def _session_scope(self) -> AsyncIterator[AsyncSession]:
        if self._session is not None:
            yield self._session
            return

        try:
            async with self._sessions() as session:
                async with session.begin():
                    yield session
        except (SQLAlchemyError, OSError) as e:
            logger.error("Store operation failed", error=str(e), error_type=type(e).__name__)
            raise StoreUnavailableError(str(e)) from e

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator["SqlFootfallStore"]:
        if self._session is not None:
            yield self
            return

        async with self._session_scope() as session:
            bound = copy.copy(self)
            bound._session = session
            yield bound

    def _insert(self, model):
        dialect = self._engine.dialect.name
        if dialect == "postgresql":
            return postgresql.insert(model)
        if dialect == "sqlite":
            return sqlite.insert(model)
        raise StoreUnavailableError(f"Unsupported database dialect: {dialect}")

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def query_telecom_aggregates(self, query: TelecomQuery) -> List[TelecomAggregate]:
        stmt = select(TelecomAggregateRecord)
        if query.state is not None:
            stmt = stmt.where(TelecomAggregateRecord.state_key == normalize_name(query.state))
        if query.city is not None:
            stmt = stmt.where(TelecomAggregateRecord.city_key == normalize_name(query.city))
        if query.place is not None:
            stmt = stmt.where(TelecomAggregateRecord.place_key == normalize_name(query.place))
        stmt = self._time_filter(stmt, TelecomAggregateRecord.window_start, query.time_range)
        if query.min_confidence is not None:
            stmt = stmt.where(TelecomAggregateRecord.confidence_score >= query.min_confidence)
        stmt = stmt.order_by(TelecomAggregateRecord.window_start, TelecomAggregateRecord.ingested_at)

        async with self._session_scope() as session:
            records = (await session.execute(stmt)).scalars().all()
        return [_telecom_aggregate(r) for r in records]

    async def query_ticket_events(self, query: TicketQuery) -> List[TicketEvent]:
        stmt = select(TicketRecord)
        if query.state is not None:
            stmt = stmt.where(TicketRecord.state_key == normalize_name(query.state))
        if query.city is not None:
            stmt = stmt.where(TicketRecord.city_key == normalize_name(query.city))
        if query.place is not None:
            stmt = stmt.where(TicketRecord.place_key == normalize_name(query.place))
        stmt = self._time_filter(stmt, TicketRecord.created_at, query.time_range)
        stmt = stmt.order_by(TicketRecord.created_at)

        async with self._session_scope() as session:
            records = (await session.execute(stmt)).scalars().all()
        return [_ticket_event(r) for r in records]

    @staticmethod
    def _time_filter(stmt, column, time_range: Optional[TimeRange]):
        if time_range is None:
            return stmt
        if time_range.start is not None:
            stmt = stmt.where(column >= to_naive_utc(time_range.start))
        if time_range.end is not None:
            stmt = stmt.where(column <= to_naive_utc(time_range.end))
        return stmt

    async def get_place(self, state: str, city: str, name: str) -> Optional[TouristPlace]:
        key = place_key(state, city, name)
        stmt = select(TouristPlaceRecord).where(
            TouristPlaceRecord.state_key == key.state,
            TouristPlaceRecord.city_key == key.city,
            TouristPlaceRecord.name_key == key.place,
        )

        async with self._session_scope() as session:
            record = (await session.execute(stmt)).scalar_one_or_none()
            if record is None:
                return None
            history = await self._history(session, record.id)

        return TouristPlace(
            id=str(record.id),
            state=record.state,
            city=record.city,
            name=record.name,
            crowd_count=record.crowd_count,
            footfall_history=history,
        )

    @staticmethod
    async def _history(session: AsyncSession, place_id: uuid.UUID) -> tuple:
        stmt = (
            select(FootfallHistoryRecord.time, FootfallHistoryRecord.visitors)
            .where(FootfallHistoryRecord.place_id == place_id)
            .order_by(FootfallHistoryRecord.id)
        )
        rows = (await session.execute(stmt)).all()
        return tuple(FootfallEntry(time=row.time, visitors=row.visitors) for row in rows)

    async def latest_telecom_window_start(self) -> Optional[datetime]:
        async with self._session_scope() as session:
            return (await session.execute(select(func.max(TelecomAggregateRecord.window_start)))).scalar()

    async def list_hotels(self) -> List[Hotel]:
        async with self._session_scope() as session:
            records = (await session.execute(select(HotelRecord).order_by(HotelRecord.serial_no))).scalars().all()
        return [_hotel(record) for record in records]

    async def hotel_capacity(self) -> HotelCapacity:
        stmt = select(
            func.coalesce(func.sum(HotelRecord.total_rooms), 0),
            func.coalesce(func.sum(HotelRecord.vacancy), 0),
        )
        async with self._session_scope() as session:
            total_rooms, total_vacancy = (await session.execute(stmt)).one()
        return HotelCapacity(total_rooms=int(total_rooms), total_vacancy=int(total_vacancy))

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
        incremented = TouristPlaceRecord.crowd_count + visitors

        stmt = self._insert(TouristPlaceRecord).values(
            id=uuid.uuid4(),
            state=state,
            city=city,
            name=name,
            state_key=key.state,
            city_key=key.city,
            name_key=key.place,
            crowd_count=max(0, visitors),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["state_key", "city_key", "name_key"],
            set_={
                "crowd_count": case((incremented < 0, 0), else_=incremented),
                "updated_at": func.now(),
            },
        ).returning(
            TouristPlaceRecord.id,
            TouristPlaceRecord.state,
            TouristPlaceRecord.city,
            TouristPlaceRecord.name,
            TouristPlaceRecord.crowd_count,
        )

        async with self._session_scope() as session:
            row = (await session.execute(stmt)).one()

            session.add(FootfallHistoryRecord(place_id=row.id, time=to_naive_utc(at), visitors=visitors))
            await session.flush()

            newest = (
                select(FootfallHistoryRecord.id)
                .where(FootfallHistoryRecord.place_id == row.id)
                .order_by(FootfallHistoryRecord.id.desc())
                .limit(self.history_limit)
            )
            await session.execute(
                delete(FootfallHistoryRecord)
                .where(
                    FootfallHistoryRecord.place_id == row.id,
                    FootfallHistoryRecord.id.not_in(newest),
                )
                .execution_options(synchronize_session=False)
            )

            history = await self._history(session, row.id)

        logger.debug("Place counter updated", place=name, city=city, crowd_count=row.crowd_count)
        return TouristPlace(
            id=str(row.id),
            state=row.state,
            city=row.city,
            name=row.name,
            crowd_count=row.crowd_count,
            footfall_history=history,
        )

    async def insert_ticket_event(
        self,
        draft: TicketDraft,
        crowd_status: CrowdLevel,
        crowd_count_at_booking: int,
        created_at: datetime,
    ) -> TicketEvent:
        key = place_key(draft.state, draft.city, draft.place)
        record = TicketRecord(
            id=uuid.uuid4(),
            tourist_type=TouristType(draft.tourist_type).value,
            phone=draft.phone,
            country_code=draft.country_code,
            visitors=draft.visitors,
            from_city=draft.from_city,
            country=draft.country,
            state=draft.state,
            city=draft.city,
            place=draft.place,
            state_key=key.state,
            city_key=key.city,
            place_key=key.place,
            crowd_status=CrowdLevel(crowd_status).value,
            crowd_count_at_booking=crowd_count_at_booking,
            created_at=to_naive_utc(created_at),
        )

        async with self._session_scope() as session:
            session.add(record)
            await session.flush()

        return _ticket_event(record)

    async def insert_telecom_aggregates(self, aggregates: Sequence[TelecomAggregate]) -> int:
        records = [_telecom_record(a) for a in aggregates]
        if not records:
            return 0

        async with self._session_scope() as session:
            session.add_all(records)
            await session.flush()

        logger.info("Telecom aggregates inserted", count=len(records))
        return len(records)

    async def insert_entry_event(self, draft: EntryDraft, timestamp: datetime) -> EntryEvent:
        geo = draft.geo_location
        record = EntryEventRecord(
            id=uuid.uuid4(),
            event_type=EntryEventType(draft.event_type).value,
            source=EntrySource(draft.source).value,
            ticket_id=draft.ticket_id,
            location_id=draft.location_id,
            visitor_type=VisitorType(draft.visitor_type).value,
            verification_level=VerificationLevel(draft.verification_level).value,
            geo_opted_in=draft.geo_opted_in,
            latitude=geo.latitude if geo else None,
            longitude=geo.longitude if geo else None,
            accuracy=geo.accuracy if geo else None,
            timestamp=to_naive_utc(timestamp),
        )

        async with self._session_scope() as session:
            session.add(record)
            await session.flush()

        return _entry_event(record)

    async def add_hotel(self, hotel: Hotel) -> Hotel:
        """Insert a hotel, replacing any hotel with the same serial number."""
        values = {
            "name": hotel.name,
            "address": hotel.address,
            "rating": hotel.rating,
            "reviews": hotel.reviews,
            "city": hotel.city,
            "total_rooms": hotel.total_rooms,
            "vacancy": hotel.vacancy,
            "occupancy_percent": hotel.occupancy_percent,
            "category": hotel.category,
            "nearby_places": list(hotel.nearby_places),
        }
        stmt = self._insert(HotelRecord).values(id=uuid.uuid4(), serial_no=hotel.serial_no, **values)
        stmt = stmt.on_conflict_do_update(index_elements=["serial_no"], set_=values)

        async with self._session_scope() as session:
            await session.execute(stmt)

        return hotel
