# backend/app/models/service.py
"""Service offered by the shop (haircut, beard trim, ...)."""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, Numeric, String
from sqlalchemy.sql import func
import ulid

from ..database import Base


class ServiceOffered(Base):
    """
    Bookable service.

    ``deposit_percentage`` is a whole number between 0 and 100; zero means
    no online deposit is taken.
    """

    __tablename__ = "services"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(100), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    deposit_percentage = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="check_service_duration_positive"),
        CheckConstraint("price >= 0", name="check_service_price_non_negative"),
        CheckConstraint(
            "deposit_percentage BETWEEN 0 AND 100", name="check_service_deposit_percentage"
        ),
    )

    def __repr__(self) -> str:
        return f"<ServiceOffered {self.id}: {self.name} {self.duration_minutes}min>"
