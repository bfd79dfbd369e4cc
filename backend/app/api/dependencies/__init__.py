"""
Central export point for all dependencies.
"""

from .database import get_db
from .services import (
    get_availability_service,
    get_booking_service,
    get_event_publisher,
    get_payment_service,
    get_request_clock,
)

__all__ = [
    # Database
    "get_db",
    # Services
    "get_availability_service",
    "get_booking_service",
    "get_event_publisher",
    "get_payment_service",
    "get_request_clock",
]
