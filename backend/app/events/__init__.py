"""Booking domain events and post-commit publishing."""

from app.events.booking_events import (
    BookingCancelled,
    BookingCompleted,
    BookingConfirmed,
    BookingCreated,
    BookingNoShow,
    BookingPaymentAfterExpiry,
    BookingReminder,
    BookingRescheduled,
)
from app.events.publisher import (
    CeleryNotificationDispatcher,
    EventPublisher,
    NotificationDispatcher,
    serialize_event,
)

__all__ = [
    "BookingCancelled",
    "BookingCompleted",
    "BookingConfirmed",
    "BookingCreated",
    "BookingNoShow",
    "BookingPaymentAfterExpiry",
    "BookingReminder",
    "BookingRescheduled",
    "CeleryNotificationDispatcher",
    "EventPublisher",
    "NotificationDispatcher",
    "serialize_event",
]
