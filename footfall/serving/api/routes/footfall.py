"""
Footfall API Endpoints

Merged telecom and ticket footfall per place, per time bucket, and
telecom-only visitor analytics.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from footfall.config.settings import Settings
from footfall.domain.models import Interval, TimeRange
from footfall.serving.api.dependencies import get_app_settings, get_footfall_service, get_time_range
from footfall.serving.api.routes.serializers import analytics_payload, place_payload, series_payload
from footfall.serving.cache import footfall_cache
from footfall.services.footfall_service import FootfallService

router = APIRouter()


@router.get("")
async def get_footfall_summary(
    state: Optional[str] = Query(None, description="State, defaults to the configured state"),
    time_range: Optional[TimeRange] = Depends(get_time_range),
    service: FootfallService = Depends(get_footfall_service),
    settings: Settings = Depends(get_app_settings),
) -> Dict[str, Any]:
    """
    Merged crowd estimates for every place of a state, grouped by city.
    """
    state = state or settings.footfall.default_state

    cache_key = f"summary:{state.lower()}:{time_range.start if time_range else None}:{time_range.end if time_range else None}"
    cached = await footfall_cache.get(cache_key)
    if cached:
        return cached

    cities = await service.compute_footfall_summary(state, time_range)
    payload = {
        "success": True,
        "state": state,
        "cities": {
            city: {"places": [place_payload(e) for e in estimates]}
            for city, estimates in cities.items()
        },
    }

    await footfall_cache.set(cache_key, payload, ttl=settings.footfall.cache_ttl_seconds)
    return payload


@router.get("/series")
async def get_footfall_series(
    city: Optional[str] = Query(None),
    tourist_place: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    interval: Interval = Query(Interval.HOUR),
    time_range: Optional[TimeRange] = Depends(get_time_range),
    service: FootfallService = Depends(get_footfall_service),
) -> Dict[str, Any]:
    """
    Crowd curve for one place.

    ``city`` and ``tourist_place`` are required; the 422 response lists
    what is missing.
    """
    points = await service.compute_footfall_series(state, city, tourist_place, time_range, interval)
    return {
        "success": True,
        "series": [series_payload(p) for p in points],
    }


@router.get("/analytics")
async def get_visitor_analytics(
    state: Optional[str] = Query(None),
    city: Optional[str] = Query(None),
    tourist_place: Optional[str] = Query(None),
    time_range: Optional[TimeRange] = Depends(get_time_range),
    service: FootfallService = Depends(get_footfall_service),
) -> Dict[str, Any]:
    """Telecom visitor totals per place with average confidence."""
    rows = await service.visitor_analytics(state, city, tourist_place, time_range)
    return {
        "success": True,
        "count": len(rows),
        "data": [analytics_payload(r) for r in rows],
    }
