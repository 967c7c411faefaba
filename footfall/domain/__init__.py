"""
Domain Module
"""
from .errors import ErrorCode, FootfallError, StoreUnavailableError, ValidationError
from .models import (
    CrowdLevel,
    DataSource,
    DeviceFootfall,
    Direction,
    Interval,
    Location,
    MergedPlaceEstimate,
    TelecomAggregate,
    TicketEvent,
    TimeRange,
    TimeWindow,
    TouristPlace,
    TouristType,
)

__all__ = [
    "ErrorCode",
    "FootfallError",
    "StoreUnavailableError",
    "ValidationError",
    "CrowdLevel",
    "DataSource",
    "DeviceFootfall",
    "Direction",
    "Interval",
    "Location",
    "MergedPlaceEstimate",
    "TelecomAggregate",
    "TicketEvent",
    "TimeRange",
    "TimeWindow",
    "TouristPlace",
    "TouristType",
]
