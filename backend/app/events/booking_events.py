"""Booking domain events."""
from dataclasses import asdict, dataclass
from datetime import date, datetime, time
from typing import Any, Dict, Optional


@dataclass
class BookingCreated:
    """Fired after a booking hold is created."""

    booking_id: str
    customer_id: str
    barber_id: str
    booking_date: date
    start_time: time
    expires_at: Optional[datetime]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingConfirmed:
    """Fired after the deposit for a booking is received."""

    booking_id: str
    customer_id: str
    payment_status: str
    confirmed_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingRescheduled:
    """Fired after a booking moves to a new date or time."""

    booking_id: str
    previous_date: date
    previous_start_time: time
    booking_date: date
    start_time: time

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingReminder:
    """Fired by the daily job for each booking due the next day."""

    booking_id: str
    customer_id: str
    booking_date: date
    start_time: time

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingCancelled:
    """Fired after a booking is cancelled."""

    booking_id: str
    reason: str  # 'customer' or 'hold_expired'
    cancelled_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingCompleted:
    """Fired after a booking is marked complete."""

    booking_id: str
    completed_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingNoShow:
    booking_id: str
    marked_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingPaymentAfterExpiry:
    """
    Fired when a deposit arrives for a booking that was already cancelled.

    The slot is not re-occupied; the payment needs a refund follow-up.
    """

    booking_id: str
    gateway_reference: str
    amount: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
