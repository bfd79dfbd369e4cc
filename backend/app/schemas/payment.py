# backend/app/schemas/payment.py
"""Payment schemas for Trim."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .base import Money, StandardizedModel, StrictRequestModel


class PaymentRecordCreate(StrictRequestModel):
    """Register the gateway payment a later webhook will confirm."""

    gateway_reference: str = Field(..., min_length=1, max_length=255)
    amount: Optional[Money] = Field(None, description="Defaults to the booking deposit")
    payment_method: Optional[str] = Field(None, max_length=30)


class PaymentResponse(StandardizedModel):
    id: str
    booking_id: str
    amount: Money
    gateway_reference: Optional[str] = None
    payment_method: Optional[str] = None
    status: str
    paid_at: Optional[datetime] = None


class WebhookAck(BaseModel):
    """Acknowledgement returned to the payment gateway."""

    status: str
    booking_id: Optional[str] = None
    booking_status: Optional[str] = None
    payment_status: Optional[str] = None
