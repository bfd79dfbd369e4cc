# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Each request gets services bound to its own session. The clock and event
publisher are separate dependencies so tests can override them.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.clock import Clock, get_clock
from ...events import EventPublisher
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.payment_service import PaymentService
from .database import get_db


def get_request_clock() -> Clock:
    """Clock used by request-scoped services."""
    return get_clock()


def get_event_publisher() -> EventPublisher:
    """Publisher that queues notifications on Celery."""
    return EventPublisher()


def get_booking_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_request_clock),
    publisher: EventPublisher = Depends(get_event_publisher),
) -> BookingService:
    return BookingService(db, clock=clock, event_publisher=publisher)


def get_availability_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_request_clock),
) -> AvailabilityService:
    return AvailabilityService(db, clock=clock)


def get_payment_service(
    db: Session = Depends(get_db),
    booking_service: BookingService = Depends(get_booking_service),
    publisher: EventPublisher = Depends(get_event_publisher),
) -> PaymentService:
    return PaymentService(
        db,
        clock=booking_service.clock,
        event_publisher=publisher,
        booking_service=booking_service,
    )
