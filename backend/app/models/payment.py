"""
Payment records for booking deposits.

One row per gateway payment attempt. ``gateway_reference`` is the identifier
the payment gateway reports back in its callbacks, so it is unique and is
the key used to find the booking a callback belongs to.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import ulid
from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.enums import PaymentRecordStatus
from app.database import Base

if TYPE_CHECKING:
    from app.models.booking import Booking


class Payment(Base):
    """Gateway payment attempt for a booking."""

    __tablename__ = "payments"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id: Mapped[str] = mapped_column(String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    gateway_reference: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=PaymentRecordStatus.PENDING.value)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    booking: Mapped["Booking"] = relationship("Booking", back_populates="payments")

    __table_args__ = (Index("idx_payments_booking_id", "booking_id"),)

    @property
    def is_settled(self) -> bool:
        return self.status == PaymentRecordStatus.SUCCEEDED.value

    def __repr__(self) -> str:
        return f"<Payment(booking_id={self.booking_id}, reference={self.gateway_reference}, status={self.status})>"
