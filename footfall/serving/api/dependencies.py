"""
FastAPI Dependencies
"""

from datetime import datetime
from typing import Optional

from fastapi import Query, Request

from footfall.config.settings import Settings, get_settings
from footfall.domain.models import TimeRange, to_naive_utc
from footfall.services.footfall_service import FootfallService


def get_footfall_service(request: Request) -> FootfallService:
    """Service built at startup by the application lifespan."""
    return request.app.state.service


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def get_time_range(
    start: Optional[datetime] = Query(None, description="Window start (ISO 8601)"),
    end: Optional[datetime] = Query(None, description="Window end (ISO 8601)"),
) -> Optional[TimeRange]:
    """Optional inclusive time range from query parameters."""
    if start is None and end is None:
        return None
    return TimeRange(
        start=to_naive_utc(start) if start else None,
        end=to_naive_utc(end) if end else None,
    )
