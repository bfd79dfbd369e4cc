# backend/app/repositories/factory.py
"""
Repository Factory for the Trim booking core.

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .availability_repository import AvailabilityRepository
    from .booking_repository import BookingRepository
    from .directory_repository import BarberRepository, ServiceRepository, UserRepository
    from .payment_repository import PaymentRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_availability_repository(db: Session) -> "AvailabilityRepository":
        """Create repository for working hours and breaks."""
        from .availability_repository import AvailabilityRepository

        return AvailabilityRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for booking operations."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_payment_repository(db: Session) -> "PaymentRepository":
        """Create repository for payment records."""
        from .payment_repository import PaymentRepository

        return PaymentRepository(db)

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        from .directory_repository import UserRepository

        return UserRepository(db)

    @staticmethod
    def create_barber_repository(db: Session) -> "BarberRepository":
        from .directory_repository import BarberRepository

        return BarberRepository(db)

    @staticmethod
    def create_service_repository(db: Session) -> "ServiceRepository":
        from .directory_repository import ServiceRepository

        return ServiceRepository(db)
