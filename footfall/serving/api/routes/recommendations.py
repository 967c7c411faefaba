"""
Recommendation Endpoints
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from footfall.domain.models import MergedPlaceEstimate
from footfall.serving.api.dependencies import get_footfall_service
from footfall.serving.api.routes.serializers import place_payload
from footfall.services.footfall_service import FootfallService

router = APIRouter()


def _response(places: List[MergedPlaceEstimate]) -> Dict[str, Any]:
    return {
        "success": True,
        "count": len(places),
        "places": [place_payload(p) for p in places],
    }


@router.get("/low-crowd")
async def low_crowd(
    state: Optional[str] = Query(None),
    district: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Substring of place or city"),
    limit: Optional[int] = Query(None, ge=1, le=50),
    service: FootfallService = Depends(get_footfall_service),
) -> Dict[str, Any]:
    """Quietest places first."""
    return _response(await service.recommend_low_crowd(state, district, search, limit))


@router.get("/high-crowd")
async def high_crowd(
    state: Optional[str] = Query(None),
    district: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Substring of place or city"),
    limit: Optional[int] = Query(None, ge=1, le=50),
    service: FootfallService = Depends(get_footfall_service),
) -> Dict[str, Any]:
    """Busiest places first, with crowd level."""
    return _response(await service.recommend_high_crowd(state, district, search, limit))
