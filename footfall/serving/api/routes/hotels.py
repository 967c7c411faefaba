"""
Hotel Inventory Endpoints
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field

from footfall.serving.api.dependencies import get_footfall_service
from footfall.serving.api.routes.serializers import hotel_payload
from footfall.serving.cache import dashboard_cache
from footfall.services.footfall_service import FootfallService

router = APIRouter()


class HotelRequest(BaseModel):
    """Hotel entry; field rules are enforced by the service"""
    model_config = ConfigDict(populate_by_name=True)

    serial_no: Optional[Any] = Field(None, alias="serialNo")
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    rating: Optional[Any] = None
    reviews: Optional[Any] = None
    total_rooms: Optional[Any] = Field(None, alias="totalRooms")
    vacancy: Optional[Any] = None
    category: Optional[str] = None
    nearby_places: Optional[List[Any]] = Field(None, alias="nearbyPlaces")


@router.post("", status_code=status.HTTP_201_CREATED)
async def save_hotel(
    request: HotelRequest,
    service: FootfallService = Depends(get_footfall_service),
) -> Dict[str, Any]:
    """Add a hotel or replace the one with the same serial number."""
    hotel = await service.add_hotel(request.model_dump())
    # occupancy feeds the dashboard only
    await dashboard_cache.invalidate_all()
    return {"success": True, "hotel": hotel_payload(hotel)}


@router.get("")
async def list_hotels(
    service: FootfallService = Depends(get_footfall_service),
) -> Dict[str, Any]:
    """Every hotel in serial number order."""
    hotels = await service.list_hotels()
    return {"success": True, "count": len(hotels), "hotels": [hotel_payload(h) for h in hotels]}
