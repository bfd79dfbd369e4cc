# backend/app/models/barber.py
"""
Barber models for the Trim booking core.

Classes:
    Barber: A barber who can be booked
    BarberAvailability: Recurring weekly working hours (several rows per day allowed)
    BarberBreak: Exclusion window, either on one date or every day
"""

import logging

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class Barber(Base):
    """A bookable barber, linked to a user account."""

    __tablename__ = "barbers"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("users.id"), nullable=True)
    display_name = Column(String(100), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User")
    availability = relationship(
        "BarberAvailability", back_populates="barber", cascade="all, delete-orphan"
    )
    breaks = relationship("BarberBreak", back_populates="barber", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Barber {self.id}: {self.display_name}>"


class BarberAvailability(Base):
    """
    Weekly working-hours template row.

    ``day_of_week`` follows ``date.weekday()``: Monday is 0, Sunday is 6.
    An ``end_time`` of 00:00 means the shift runs until midnight.
    """

    __tablename__ = "barber_availability"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    barber_id = Column(String(26), ForeignKey("barbers.id", ondelete="CASCADE"), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)

    barber = relationship("Barber", back_populates="availability")

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_barber_availability_day"),
        Index("idx_barber_availability_barber_day", "barber_id", "day_of_week"),
    )

    def __repr__(self) -> str:
        return (
            f"<BarberAvailability {self.barber_id} day={self.day_of_week} "
            f"{self.start_time}-{self.end_time} available={self.is_available}>"
        )


class BarberBreak(Base):
    """Break subtracted from open slots; ``break_date`` null means every day."""

    __tablename__ = "barber_breaks"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    barber_id = Column(String(26), ForeignKey("barbers.id", ondelete="CASCADE"), nullable=False)
    break_date = Column(Date, nullable=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    label = Column(String(100), nullable=True)

    barber = relationship("Barber", back_populates="breaks")

    __table_args__ = (Index("idx_barber_breaks_barber_date", "barber_id", "break_date"),)

    def __repr__(self) -> str:
        return f"<BarberBreak {self.label or 'Break'} {self.start_time}-{self.end_time}>"
