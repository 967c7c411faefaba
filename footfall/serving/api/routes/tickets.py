"""
Ticket Booking Endpoints
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field

from footfall.serving.api.dependencies import get_footfall_service
from footfall.serving.cache import invalidate_footfall_caches
from footfall.services.footfall_service import FootfallService

router = APIRouter()


class TicketRequest(BaseModel):
    """Booking request; field rules are enforced by the service"""
    model_config = ConfigDict(populate_by_name=True)

    tourist_type: Optional[str] = Field(None, alias="touristType")
    phone: Optional[str] = None
    country_code: Optional[str] = Field(None, alias="countryCode")
    visitors: Optional[Any] = None
    from_city: Optional[str] = Field(None, alias="fromCity")
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    place: Optional[str] = None


@router.post("", status_code=status.HTTP_201_CREATED)
async def book_ticket(
    request: TicketRequest,
    service: FootfallService = Depends(get_footfall_service),
) -> Dict[str, Any]:
    """Book a ticket and update the place crowd counter."""
    ticket_id = await service.book_ticket(request.model_dump())
    await invalidate_footfall_caches()
    return {"success": True, "ticket_id": ticket_id}
