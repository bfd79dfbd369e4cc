# backend/app/models/user.py
"""
User model for the Trim booking core.

Customers, barbers and admins share the users table and are told apart by
``role``. Only the fields the booking core reads are modelled here; account
management lives elsewhere.

Classes:
    User: Account record carrying the customer blacklist flag
"""

import logging
from typing import Any

from sqlalchemy import Boolean, Column, DateTime, String, Text
from sqlalchemy.sql import func
import ulid

from ..core.enums import RoleName
from ..database import Base

logger = logging.getLogger(__name__)


class User(Base):
    """
    Account record.

    Attributes:
        id: ULID primary key
        email: Unique email address
        first_name: User's first name
        last_name: User's last name
        phone: Phone number used for SMS confirmations (optional)
        role: customer, barber or admin
        blacklisted: Whether the customer is barred from new bookings
        blacklist_reason: Reason shown when a blacklisted customer books
        blacklisted_at: When the flag was set (shop-local time)
    """

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(String(20), nullable=False, default=RoleName.CUSTOMER.value)
    is_active = Column(Boolean, nullable=False, default=True)

    blacklisted = Column(Boolean, nullable=False, default=False)
    blacklist_reason = Column(Text, nullable=True)
    blacklisted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if self.blacklisted is None:
            self.blacklisted = False
        if not self.role:
            self.role = RoleName.CUSTOMER.value

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email} role={self.role}>"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
