"""
Database models for the Trim booking core.

- User accounts (customers carry the blacklist flag)
- Barbers with weekly working hours and breaks
- Services offered by the shop
- Bookings and their gateway payment records
"""

from .barber import Barber, BarberAvailability, BarberBreak
from .booking import Booking, BookingStatus, PaymentStatus
from .payment import Payment
from .service import ServiceOffered
from .user import User

__all__ = [
    "Barber",
    "BarberAvailability",
    "BarberBreak",
    "Booking",
    "BookingStatus",
    "Payment",
    "PaymentStatus",
    "ServiceOffered",
    "User",
]
