# backend/app/repositories/availability_repository.py
"""
AvailabilityRepository - Barber Working Hours and Breaks

Reads the weekly working-hours template and the breaks that apply to a
given date. Slot computation itself lives in AvailabilityService.
"""

from datetime import date
import logging
from typing import List, cast

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.barber import BarberAvailability, BarberBreak

logger = logging.getLogger(__name__)


class AvailabilityRepository:
    """Repository for barber availability templates and breaks."""

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(__name__)

    def get_working_windows(self, barber_id: str, day_of_week: int) -> List[BarberAvailability]:
        """
        Get the available working-hours rows for one weekday.

        Args:
            barber_id: The barber ID
            day_of_week: 0 (Monday) through 6 (Sunday)

        Returns:
            Rows flagged available, ordered by start time
        """
        try:
            return cast(
                List[BarberAvailability],
                self.db.query(BarberAvailability)
                .filter(
                    BarberAvailability.barber_id == barber_id,
                    BarberAvailability.day_of_week == day_of_week,
                    BarberAvailability.is_available.is_(True),
                )
                .order_by(BarberAvailability.start_time)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting working hours: {str(e)}")
            raise RepositoryException(f"Failed to get working hours: {str(e)}")

    def get_breaks_for_date(self, barber_id: str, target_date: date) -> List[BarberBreak]:
        """Breaks dated ``target_date`` plus the undated ones that repeat every day."""
        try:
            return cast(
                List[BarberBreak],
                self.db.query(BarberBreak)
                .filter(
                    BarberBreak.barber_id == barber_id,
                    or_(BarberBreak.break_date == target_date, BarberBreak.break_date.is_(None)),
                )
                .order_by(BarberBreak.start_time)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting breaks: {str(e)}")
            raise RepositoryException(f"Failed to get breaks: {str(e)}")

    def add_working_window(self, barber_id: str, **kwargs) -> BarberAvailability:
        """Add a working-hours row. Does not commit."""
        row = BarberAvailability(barber_id=barber_id, **kwargs)
        self.db.add(row)
        self.db.flush()
        return row

    def add_break(self, barber_id: str, **kwargs) -> BarberBreak:
        """Add a break. Does not commit."""
        row = BarberBreak(barber_id=barber_id, **kwargs)
        self.db.add(row)
        self.db.flush()
        return row
