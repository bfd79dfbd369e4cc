# backend/app/schemas/__init__.py
"""
Pydantic schemas for the Trim booking API.

Requests forbid unknown fields; responses are built from ORM objects and
serialise money as two-decimal strings.
"""

from .availability import AvailableSlotsResponse
from .base import Money, StandardizedModel, StrictRequestModel
from .booking import (
    BookingCancel,
    BookingCreate,
    BookingResponse,
    BookingSlotRequest,
    BookingUpdate,
)
from .payment import PaymentRecordCreate, PaymentResponse, WebhookAck

__all__ = [
    "AvailableSlotsResponse",
    "BookingCancel",
    "BookingCreate",
    "BookingResponse",
    "BookingSlotRequest",
    "BookingUpdate",
    "Money",
    "PaymentRecordCreate",
    "PaymentResponse",
    "StandardizedModel",
    "StrictRequestModel",
    "WebhookAck",
]
