"""
Dashboard Statistics Endpoint
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from footfall.config.settings import Settings
from footfall.domain.models import TimeRange
from footfall.serving.api.dependencies import get_app_settings, get_footfall_service, get_time_range
from footfall.serving.api.routes.serializers import dashboard_payload
from footfall.serving.cache import dashboard_cache
from footfall.services.footfall_service import FootfallService

router = APIRouter()


@router.get("/stats")
async def get_dashboard_stats(
    time_range: Optional[TimeRange] = Depends(get_time_range),
    service: FootfallService = Depends(get_footfall_service),
    settings: Settings = Depends(get_app_settings),
) -> Dict[str, Any]:
    """
    Fleet-wide footfall, domestic and international split, hotel occupancy.

    Without ``start``/``end`` the window is the lookback period ending at
    the most recent telecom window.
    """
    cache_key = f"stats:{time_range.start if time_range else None}:{time_range.end if time_range else None}"
    cached = await dashboard_cache.get(cache_key)
    if cached:
        return cached

    payload = dashboard_payload(await service.dashboard_stats(time_range))

    await dashboard_cache.set(cache_key, payload, ttl=settings.footfall.cache_ttl_seconds)
    return payload
