# backend/app/models/booking.py
"""
Booking model for the Trim booking core.

A booking reserves a barber for one service on one calendar date. Bookings
store the barber, date and wall-clock time range directly, together with a
snapshot of the service price and duration taken at creation, so later
catalogue edits never change an existing booking.

Rows are never deleted: cancelled bookings stay for history and simply stop
blocking the calendar.
"""

from datetime import datetime, time
from decimal import Decimal
import logging
from typing import Any, Optional, cast

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import BookingStatus, PaymentStatus
from ..core.time_ranges import TimeRange, to_range
from ..database import Base

logger = logging.getLogger(__name__)

__all__ = ["Booking", "BookingStatus", "PaymentStatus"]

ZERO = Decimal("0.00")


class Booking(Base):
    """
    Reservation of a barber's time range on a date.

    ``expires_at`` is only set while the booking is PENDING with payment
    outstanding; every transition out of PENDING clears it.
    ``notes`` is free text that no lifecycle operation touches.
    """

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    customer_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    barber_id = Column(String(26), ForeignKey("barbers.id"), nullable=False)
    service_id = Column(String(26), ForeignKey("services.id"), nullable=False)

    booking_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    # Service snapshot
    duration_minutes = Column(Integer, nullable=False)
    service_price = Column(Numeric(10, 2), nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    payment_status = Column(
        String(20), nullable=False, default=PaymentStatus.DEPOSIT_PENDING.value
    )
    payment_method = Column(String(30), nullable=True)
    deposit_amount = Column(Numeric(10, 2), nullable=False, default=ZERO)
    outstanding_balance = Column(Numeric(10, 2), nullable=False, default=ZERO)

    expires_at = Column(DateTime, nullable=True, index=True)
    notes = Column(Text, nullable=True)

    # Lifecycle timestamps (shop-local wall clock)
    confirmed_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancellation_reason = Column(String(50), nullable=True)
    no_show_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    customer = relationship("User", foreign_keys=[customer_id])
    barber = relationship("Barber")
    service = relationship("ServiceOffered")
    payments = relationship("Payment", back_populates="booking", order_by="Payment.created_at")

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'COMPLETED', 'CANCELLED', 'NO_SHOW')",
            name="ck_bookings_status",
        ),
        CheckConstraint(
            "payment_status IN ('PENDING', 'DEPOSIT_PENDING', 'DEPOSIT_PAID', "
            "'FULLY_PAID', 'CANCELLED', 'REFUNDED')",
            name="ck_bookings_payment_status",
        ),
        CheckConstraint("duration_minutes > 0", name="check_duration_positive"),
        CheckConstraint("deposit_amount >= 0", name="check_deposit_non_negative"),
        CheckConstraint("outstanding_balance >= 0", name="check_outstanding_non_negative"),
        # Two live bookings for one barber can never share a start time; the
        # PostgreSQL migration adds a full range exclusion constraint on top.
        Index(
            "uq_bookings_barber_slot_active",
            "barber_id",
            "booking_date",
            "start_time",
            unique=True,
            sqlite_where=text("status <> 'CANCELLED'"),
            postgresql_where=text("status <> 'CANCELLED'"),
        ),
        Index("idx_bookings_barber_date", "barber_id", "booking_date"),
        Index("idx_bookings_status_expires", "status", "expires_at"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.PENDING.value
        logger.info(
            f"Creating booking for customer {self.customer_id} with barber {self.barber_id}"
        )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: customer={self.customer_id}, "
            f"barber={self.barber_id}, date={self.booking_date}, "
            f"time={self.start_time}-{self.end_time}, status={self.status}>"
        )

    @property
    def time_range(self) -> TimeRange:
        return to_range(cast(time, self.start_time), cast(time, self.end_time))

    def is_hold_expired(self, now: datetime) -> bool:
        """True when this is a PENDING hold whose expiry has passed."""
        expires_at = cast(Optional[datetime], self.expires_at)
        return (
            self.status == BookingStatus.PENDING.value
            and expires_at is not None
            and expires_at < now
        )

    def confirm(self, at: datetime, *, fully_paid: bool = False) -> None:
        """Mark the deposit (or full price) as received."""
        self.status = BookingStatus.CONFIRMED.value
        self.confirmed_at = at
        self.expires_at = None
        if fully_paid:
            self._settle_in_full()
        else:
            self.payment_status = PaymentStatus.DEPOSIT_PAID.value
        logger.info(f"Booking {self.id} confirmed")

    def cancel(self, at: datetime, reason: Optional[str] = None) -> None:
        """Cancel this booking and release its slot."""
        self.status = BookingStatus.CANCELLED.value
        self.payment_status = PaymentStatus.CANCELLED.value
        self.expires_at = None
        self.cancelled_at = at
        self.cancellation_reason = reason
        logger.info(f"Booking {self.id} cancelled ({reason or 'unspecified'})")

    def complete(self, at: datetime) -> None:
        """Mark booking as completed and settled in full."""
        self.status = BookingStatus.COMPLETED.value
        self.completed_at = at
        self.expires_at = None
        self._settle_in_full()
        logger.info(f"Booking {self.id} marked as completed")

    def mark_no_show(self, at: datetime) -> None:
        """Mark booking as no-show; payment fields are left as they are."""
        self.status = BookingStatus.NO_SHOW.value
        self.no_show_at = at
        self.expires_at = None
        logger.info(f"Booking {self.id} marked as no-show")

    def mark_paid(self) -> None:
        """Record that the outstanding balance was collected."""
        self._settle_in_full()
        logger.info(f"Booking {self.id} marked as fully paid")

    def _settle_in_full(self) -> None:
        self.payment_status = PaymentStatus.FULLY_PAID.value
        self.deposit_amount = self.service_price
        self.outstanding_balance = ZERO

