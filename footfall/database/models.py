"""
Database Models

Tables backing the footfall store:

Fact Tables:
- TelecomAggregateRecord: pre-aggregated telecom device counts per window
- TicketRecord: booking transactions with their crowd snapshot
- EntryEventRecord: QR check-ins (append only)

State Tables:
- TouristPlaceRecord: running crowd gauge, unique on the normalized place key
- FootfallHistoryRecord: capped per-place booking history
- HotelRecord: room inventory for the occupancy KPI

Place identity columns (``*_key``) hold the normalized names used for
matching; the display columns keep the names as first written.
All timestamps are stored as naive UTC.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# FACT TABLES
# =============================================================================

class TelecomAggregateRecord(Base):
    """
    Telecom Footfall Aggregate

    One row per (place, window) snapshot delivered by a telecom provider or
    the simulator. Never updated after ingestion.
    """
    __tablename__ = "telecom_aggregates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Time window
    window_start: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    window_end: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    window_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)

    # Location
    state: Mapped[str] = mapped_column(String(100), nullable=False)
    district: Mapped[Optional[str]] = mapped_column(String(100))
    city: Mapped[Optional[str]] = mapped_column(String(100))
    tourist_place: Mapped[Optional[str]] = mapped_column(String(200))
    location_id: Mapped[Optional[str]] = mapped_column(String(100))

    state_key: Mapped[str] = mapped_column(String(100), nullable=False)
    city_key: Mapped[str] = mapped_column(String(100), nullable=False)
    place_key: Mapped[str] = mapped_column(String(200), nullable=False)

    # Footfall
    total_devices: Mapped[int] = mapped_column(Integer, nullable=False)
    domestic_devices: Mapped[int] = mapped_column(Integer, default=0)
    international_devices: Mapped[int] = mapped_column(Integer, default=0)
    international_breakdown: Mapped[Dict[str, Any]] = mapped_column(JSONType, default=dict)
    network_distribution: Mapped[Dict[str, Any]] = mapped_column(JSONType, default=dict)

    # Quality
    confidence_score: Mapped[float] = mapped_column(Float, nullable=False)
    data_source: Mapped[str] = mapped_column(String(20), nullable=False, default="TELCO")

    ingested_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    __table_args__ = (
        Index("ix_telecom_place_window", "state_key", "city_key", "place_key", "window_start"),
        Index("ix_telecom_confidence_window", "confidence_score", "window_start"),
        Index("ix_telecom_window", "window_start", "window_end"),
        Index("ix_telecom_location_window", "location_id", "window_start"),
    )


class TicketRecord(Base):
    """
    Ticket Booking

    Exact visitor counts. ``crowd_status`` and ``crowd_count_at_booking``
    snapshot the place gauge before the booking was applied.
    """
    __tablename__ = "tickets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    tourist_type: Mapped[str] = mapped_column(String(20), nullable=False)
    phone: Mapped[str] = mapped_column(String(30), nullable=False)
    country_code: Mapped[Optional[str]] = mapped_column(String(10))
    visitors: Mapped[int] = mapped_column(Integer, nullable=False)
    from_city: Mapped[Optional[str]] = mapped_column(String(100))
    country: Mapped[Optional[str]] = mapped_column(String(100))

    state: Mapped[str] = mapped_column(String(100), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    place: Mapped[str] = mapped_column(String(200), nullable=False)

    state_key: Mapped[str] = mapped_column(String(100), nullable=False)
    city_key: Mapped[str] = mapped_column(String(100), nullable=False)
    place_key: Mapped[str] = mapped_column(String(200), nullable=False)

    crowd_status: Mapped[str] = mapped_column(String(20), nullable=False)
    crowd_count_at_booking: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_tickets_place_created", "state_key", "city_key", "place_key", "created_at"),
        Index("ix_tickets_type_created", "tourist_type", "created_at"),
        Index("ix_tickets_status_created", "crowd_status", "created_at"),
        Index("ix_tickets_phone_created", "phone", "created_at"),
    )


class EntryEventRecord(Base):
    """QR check-in event"""
    __tablename__ = "entry_events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    event_type: Mapped[str] = mapped_column(String(10), nullable=False, default="ENTRY")
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="QR_CHECKIN")
    ticket_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    location_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    visitor_type: Mapped[str] = mapped_column(String(20), nullable=False)
    verification_level: Mapped[str] = mapped_column(String(20), nullable=False, default="SELF_DECLARED")

    geo_opted_in: Mapped[bool] = mapped_column(Boolean, default=False)
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)
    accuracy: Mapped[Optional[float]] = mapped_column(Float)

    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)


# =============================================================================
# STATE TABLES
# =============================================================================

class TouristPlaceRecord(Base):
    """
    Tourist Place Gauge

    Incremented atomically on every booking; never decremented below zero.
    """
    __tablename__ = "tourist_places"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    state: Mapped[str] = mapped_column(String(100), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    state_key: Mapped[str] = mapped_column(String(100), nullable=False)
    city_key: Mapped[str] = mapped_column(String(100), nullable=False)
    name_key: Mapped[str] = mapped_column(String(200), nullable=False)

    crowd_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("state_key", "city_key", "name_key", name="uq_tourist_places_key"),
        Index("ix_tourist_places_state_city", "state_key", "city_key"),
        Index("ix_tourist_places_crowd", "crowd_count"),
    )


class FootfallHistoryRecord(Base):
    """Per-place booking history; ids give insertion order for FIFO trimming"""
    __tablename__ = "footfall_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    place_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tourist_places.id", ondelete="CASCADE"), nullable=False
    )
    time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    visitors: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("ix_footfall_history_place", "place_id", "id"),
    )


class HotelRecord(Base):
    """Hotel inventory"""
    __tablename__ = "hotels"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    serial_no: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    rating: Mapped[Optional[float]] = mapped_column(Float)
    reviews: Mapped[Optional[int]] = mapped_column(Integer)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    total_rooms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    vacancy: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    occupancy_percent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="Hotel")
    nearby_places: Mapped[List[str]] = mapped_column(JSONType, default=list)

    __table_args__ = (
        Index("ix_hotels_city_category", "city", "category"),
        Index("ix_hotels_city_rating", "city", "rating"),
        Index("ix_hotels_city_vacancy", "city", "vacancy"),
        Index("ix_hotels_city_occupancy", "city", "occupancy_percent"),
    )
