# backend/app/schemas/availability.py
"""Availability schemas for Trim."""

from datetime import date
from typing import List

from pydantic import BaseModel


class AvailableSlotsResponse(BaseModel):
    """Bookable start times for one service with one barber on one date."""

    barber_id: str
    service_id: str
    date: date
    slots: List[str]
