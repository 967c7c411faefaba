"""
Domain Models

Plain data types shared by the analytics core, the stores and the service
layer. Records read from a store are immutable; the only mutable aggregate,
TouristPlace, is replaced wholesale on every counter update.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional, Tuple


# =============================================================================
# ENUMERATIONS
# =============================================================================

class DataSource(str, Enum):
    """Origin of a telecom aggregate"""
    TELCO = "TELCO"
    SIMULATED = "SIMULATED"
    THIRD_PARTY = "THIRD_PARTY"


class TouristType(str, Enum):
    """Ticket holder category"""
    DOMESTIC = "DOMESTIC"
    INTERNATIONAL = "INTERNATIONAL"


class CrowdLevel(str, Enum):
    """Categorical crowd label"""
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    CRITICAL = "Critical"


class Interval(str, Enum):
    """Time bucket granularity"""
    HOUR = "hour"
    QUARTER_HOUR = "15-minute"


class Direction(str, Enum):
    """Recommendation direction"""
    LOW = "low"
    HIGH = "high"


class EntryEventType(str, Enum):
    ENTRY = "ENTRY"
    EXIT = "EXIT"


class EntrySource(str, Enum):
    QR_CHECKIN = "QR_CHECKIN"
    MANUAL = "MANUAL"
    SYSTEM = "SYSTEM"


class VisitorType(str, Enum):
    DOMESTIC = "DOMESTIC"
    INTERNATIONAL = "INTERNATIONAL"
    UNKNOWN = "UNKNOWN"


class VerificationLevel(str, Enum):
    SELF_DECLARED = "SELF_DECLARED"
    TICKET_VERIFIED = "TICKET_VERIFIED"


# =============================================================================
# TELECOM AGGREGATES
# =============================================================================

@dataclass(frozen=True)
class TimeWindow:
    """Window a telecom aggregate was computed over"""
    start: datetime
    end: datetime
    window_minutes: int


@dataclass(frozen=True)
class Location:
    """Where a telecom aggregate was observed"""
    state: str
    city: Optional[str] = None
    tourist_place: Optional[str] = None
    district: Optional[str] = None
    location_id: Optional[str] = None


@dataclass(frozen=True)
class DeviceFootfall:
    """Device counts; domestic + international need not equal total"""
    total_devices: int
    domestic_devices: int = 0
    international_devices: int = 0


@dataclass(frozen=True)
class TelecomAggregate:
    """Pre-computed device-count estimate for one place over one window"""
    time_window: TimeWindow
    location: Location
    footfall: DeviceFootfall
    confidence_score: float
    data_source: DataSource = DataSource.TELCO
    international_breakdown: Dict[str, int] = field(default_factory=dict)
    network_distribution: Dict[str, int] = field(default_factory=dict)
    id: Optional[str] = None
    ingested_at: Optional[datetime] = None


# =============================================================================
# TICKETS AND PLACES
# =============================================================================

@dataclass(frozen=True)
class TicketDraft:
    """A validated booking that has not been persisted yet"""
    tourist_type: TouristType
    phone: str
    visitors: int
    state: str
    city: str
    place: str
    country_code: Optional[str] = None
    from_city: Optional[str] = None
    country: Optional[str] = None


@dataclass(frozen=True)
class TicketEvent:
    """One booking transaction"""
    id: str
    tourist_type: TouristType
    phone: str
    visitors: int
    state: str
    city: str
    place: str
    crowd_status: CrowdLevel
    crowd_count_at_booking: int
    created_at: datetime
    country_code: Optional[str] = None
    from_city: Optional[str] = None
    country: Optional[str] = None


@dataclass(frozen=True)
class FootfallEntry:
    """One entry of a place's capped footfall history"""
    time: datetime
    visitors: int


@dataclass(frozen=True)
class TouristPlace:
    """Running crowd gauge for a (state, city, name) triple"""
    state: str
    city: str
    name: str
    crowd_count: int = 0
    footfall_history: Tuple[FootfallEntry, ...] = ()
    id: Optional[str] = None


# =============================================================================
# CHECK-INS AND HOTELS
# =============================================================================

@dataclass(frozen=True)
class GeoLocation:
    latitude: float
    longitude: float
    accuracy: Optional[float] = None


@dataclass(frozen=True)
class EntryDraft:
    """A validated QR check-in"""
    ticket_id: str
    location_id: str
    visitor_type: VisitorType
    event_type: EntryEventType = EntryEventType.ENTRY
    source: EntrySource = EntrySource.QR_CHECKIN
    verification_level: VerificationLevel = VerificationLevel.SELF_DECLARED
    geo_opted_in: bool = False
    geo_location: Optional[GeoLocation] = None


@dataclass(frozen=True)
class EntryEvent:
    """A persisted check-in"""
    id: str
    ticket_id: str
    location_id: str
    visitor_type: VisitorType
    event_type: EntryEventType
    source: EntrySource
    verification_level: VerificationLevel
    geo_opted_in: bool
    timestamp: datetime
    geo_location: Optional[GeoLocation] = None


@dataclass(frozen=True)
class Hotel:
    """Hotel inventory used for the occupancy KPI"""
    serial_no: int
    name: str
    address: str
    city: str
    total_rooms: int
    vacancy: int
    rating: Optional[float] = None
    reviews: Optional[int] = None
    category: str = "Hotel"
    nearby_places: Tuple[str, ...] = ()

    @property
    def occupancy_percent(self) -> int:
        """Occupied share of rooms, rounded to a whole percent"""
        if self.total_rooms <= 0:
            return 0
        return round_half_up((self.total_rooms - self.vacancy) / self.total_rooms * 100)


@dataclass(frozen=True)
class HotelCapacity:
    """Fleet-wide room totals"""
    total_rooms: int = 0
    total_vacancy: int = 0

    @property
    def occupancy_percent(self) -> int:
        if self.total_rooms <= 0:
            return 0
        occupied = self.total_rooms - self.total_vacancy
        return round_half_up(occupied / self.total_rooms * 100)


# =============================================================================
# QUERIES AND DERIVED RESULTS
# =============================================================================

@dataclass(frozen=True)
class TimeRange:
    """Inclusive time range; either bound may be open"""
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def contains(self, ts: datetime) -> bool:
        if self.start is not None and ts < self.start:
            return False
        if self.end is not None and ts > self.end:
            return False
        return True


@dataclass(frozen=True)
class MergedPlaceEstimate:
    """Telecom and ticket footfall reconciled for one place"""
    place: str
    city: str
    state: str
    district: Optional[str]
    telecom_footfall: float
    ticket_footfall: int
    crowd_count: int
    crowd_level: Optional[CrowdLevel] = None
    # telecom detail: averaged device split and confidence, latest breakdowns
    domestic_devices: float = 0.0
    international_devices: float = 0.0
    confidence_score: Optional[float] = None
    international_breakdown: Dict[str, int] = field(default_factory=dict)
    network_distribution: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class SeriesPoint:
    """One bucket of a crowd curve"""
    time: datetime
    visitors: int


@dataclass(frozen=True)
class FleetTotals:
    """Dashboard-wide footfall; telecom and ticket totals are added"""
    total_footfall: int = 0
    domestic_visitors: int = 0
    international_visitors: int = 0


@dataclass(frozen=True)
class DashboardStats:
    total_footfall: int
    domestic_visitors: int
    international_visitors: int
    hotel_occupancy: int
    window: TimeRange


@dataclass(frozen=True)
class PlaceVisitorAnalytics:
    """Telecom-only visitor totals for one place"""
    state: str
    city: Optional[str]
    place: str
    total_visitors: int
    domestic_visitors: int
    international_visitors: int
    avg_confidence: float


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def to_naive_utc(ts: datetime) -> datetime:
    """Timestamps are compared and stored as naive UTC."""
    if ts.tzinfo is None:
        return ts
    return ts.astimezone(timezone.utc).replace(tzinfo=None)
