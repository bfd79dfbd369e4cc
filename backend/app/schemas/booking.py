# backend/app/schemas/booking.py
"""
Booking schemas for Trim.

Bookings carry their own date, time range and price snapshot; requests only
name the slot, the service snapshot is taken by the service layer.
"""

from datetime import date, datetime, time
import re
from typing import Optional

from pydantic import Field, field_validator

from ..core.constants import MAX_NOTES_LENGTH
from .base import Money, StandardizedModel, StrictRequestModel

DATE_ONLY_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _ensure_date_only(value: object, field_name: str) -> object:
    if isinstance(value, str):
        candidate = value.strip()
        if not DATE_ONLY_REGEX.fullmatch(candidate):
            raise ValueError(f"{field_name} must be a YYYY-MM-DD date-only string")
        return candidate
    return value


def _parse_time(value: object) -> object:
    if isinstance(value, str):
        try:
            hour, minute = value.split(":")[:2]
            return time(int(hour), int(minute))
        except (ValueError, AttributeError):
            raise ValueError(f"Invalid time format: {value}. Expected HH:MM format.")
    return value


class BookingSlotRequest(StrictRequestModel):
    """Date and start time of a slot."""

    booking_date: date = Field(..., description="Date of the booking")
    start_time: time = Field(..., description="Start time (HH:MM)")

    @field_validator("booking_date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return _ensure_date_only(v, "booking_date")

    @field_validator("start_time", mode="before")
    @classmethod
    def parse_time_string(cls, v: object) -> object:
        """Convert HH:MM strings to time objects."""
        return _parse_time(v)


class BookingCreate(BookingSlotRequest):
    """Create a PENDING booking for one service with one barber."""

    customer_id: str = Field(..., description="Customer making the booking")
    barber_id: str = Field(..., description="Barber to book")
    service_id: str = Field(..., description="Service being booked")
    payment_method: Optional[str] = Field(
        None, max_length=30, description="'pay_in_shop' skips the online deposit"
    )
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v


class BookingUpdate(BookingSlotRequest):
    """Move a booking to a new date and start time."""


class BookingCancel(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=50)


class BookingResponse(StandardizedModel):
    id: str
    customer_id: str
    barber_id: str
    service_id: str
    booking_date: date
    start_time: time
    end_time: time
    duration_minutes: int
    status: str
    payment_status: str
    payment_method: Optional[str] = None
    service_price: Money
    deposit_amount: Money
    outstanding_balance: Money
    expires_at: Optional[datetime] = None
    notes: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    no_show_at: Optional[datetime] = None
