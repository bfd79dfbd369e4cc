# backend/app/core/enums.py
"""
Core enums for the Trim booking core.

This module contains enumeration types used throughout the application
for type safety and consistency. Values are stored as plain strings in
the database, so members compare equal to their string values.
"""

from enum import Enum


class RoleName(str, Enum):
    """Roles a user account can hold."""

    ADMIN = "admin"
    BARBER = "barber"
    CUSTOMER = "customer"


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "PENDING"  # Slot held awaiting deposit
    CONFIRMED = "CONFIRMED"  # Deposit received
    COMPLETED = "COMPLETED"  # Service delivered
    CANCELLED = "CANCELLED"  # Cancelled by a person or by hold expiry
    NO_SHOW = "NO_SHOW"  # Customer didn't attend


class PaymentStatus(str, Enum):
    """Payment state of a booking."""

    PENDING = "PENDING"  # Pay in shop, nothing collected online
    DEPOSIT_PENDING = "DEPOSIT_PENDING"
    DEPOSIT_PAID = "DEPOSIT_PAID"
    FULLY_PAID = "FULLY_PAID"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class PaymentRecordStatus(str, Enum):
    """Status of a single gateway payment attempt."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    PAY_IN_SHOP = "PAY_IN_SHOP"
