"""
QR Check-in Endpoint
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field

from footfall.serving.api.dependencies import get_footfall_service
from footfall.serving.api.routes.serializers import entry_payload
from footfall.services.footfall_service import FootfallService

router = APIRouter()


class CheckinRequest(BaseModel):
    """Check-in request; field rules are enforced by the service"""
    model_config = ConfigDict(populate_by_name=True)

    ticket_id: Optional[str] = Field(None, alias="ticketId")
    location_id: Optional[str] = Field(None, alias="locationId")
    visitor_type: Optional[str] = Field(None, alias="visitorType")
    event_type: Optional[str] = Field(None, alias="eventType")
    source: Optional[str] = None
    verification_level: Optional[str] = Field(None, alias="verificationLevel")
    geo_opted_in: Optional[Any] = Field(None, alias="geoOptedIn")
    geo_location: Optional[Dict[str, Any]] = Field(None, alias="geoLocation")


@router.post("", status_code=status.HTTP_201_CREATED)
async def checkin(
    request: CheckinRequest,
    service: FootfallService = Depends(get_footfall_service),
) -> Dict[str, Any]:
    """Record an entry or exit scan."""
    event = await service.record_checkin(request.model_dump())
    return {"success": True, "event": entry_payload(event)}
