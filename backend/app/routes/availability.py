# backend/app/routes/availability.py
"""
Availability routes for Trim.

Router Endpoints:
    GET /{barber_id}?date=&service_id= - Open start times for a service
"""

from datetime import date

from fastapi import APIRouter, Depends, Query

from ..api.dependencies import get_availability_service
from ..schemas.availability import AvailableSlotsResponse
from ..services.availability_service import AvailabilityService

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("/{barber_id}", response_model=AvailableSlotsResponse)
def get_available_slots(
    barber_id: str,
    target_date: date = Query(..., alias="date", description="Date to check (YYYY-MM-DD)"),
    service_id: str = Query(..., description="Service to fit"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailableSlotsResponse:
    """
    Start times at which the service fits the barber's free time.

    Displayed slots can go stale; booking creation re-checks them.
    """
    slots = availability_service.get_available_slots(barber_id, target_date, service_id)
    return AvailableSlotsResponse(
        barber_id=barber_id, service_id=service_id, date=target_date, slots=slots
    )
