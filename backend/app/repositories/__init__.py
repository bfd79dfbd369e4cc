# backend/app/repositories/__init__.py
"""
Repository Pattern Implementation for the Trim booking core.

This package provides the repository layer for data access,
separating business logic from database queries.

Key Components:
- BaseRepository: Foundation for all repositories with generic operations
- RepositoryFactory: Factory for creating repository instances
- BookingRepository: Bookings, locked reads and expired-hold lookups
- AvailabilityRepository: Working hours and breaks
- PaymentRepository: Gateway payment records

Usage:
    from app.repositories import RepositoryFactory

    repository = RepositoryFactory.create_booking_repository(db)
    bookings = repository.get_blocking_bookings_for_date(barber_id, booking_date)
"""

from .availability_repository import AvailabilityRepository
from .base_repository import BaseRepository, IRepository
from .booking_repository import BookingRepository
from .directory_repository import BarberRepository, ServiceRepository, UserRepository
from .factory import RepositoryFactory
from .payment_repository import PaymentRepository

__all__ = [
    "AvailabilityRepository",
    "BarberRepository",
    "BaseRepository",
    "BookingRepository",
    "IRepository",
    "PaymentRepository",
    "RepositoryFactory",
    "ServiceRepository",
    "UserRepository",
]
