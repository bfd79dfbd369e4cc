# backend/app/services/conflict_checker.py
"""
Conflict Checker Service for the Trim booking core.

Decides whether a candidate time range for a barber on a date overlaps any
booking that still occupies the calendar. The same predicate gates booking
creation and rescheduling, and is re-run inside the write transaction so a
stale availability list can never cause a double booking.
"""

from datetime import date, time
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.time_ranges import TimeRange, to_range
from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from .base import BaseService

logger = logging.getLogger(__name__)


class ConflictChecker(BaseService):
    """
    Service for checking booking conflicts.

    Ranges are half-open, so a booking ending at 14:00 and another starting
    at 14:00 do not conflict.
    """

    def __init__(self, db: Session, repository: Optional[BookingRepository] = None):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)

    @BaseService.measure_operation("find_conflicts")
    def find_conflicts(
        self,
        barber_id: str,
        check_date: date,
        start_time: time,
        end_time: time,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Bookings overlapping ``[start_time, end_time)`` on ``check_date``.

        Args:
            barber_id: The barber to check
            check_date: The date to check
            start_time: Start of the candidate range
            end_time: End of the candidate range (00:00 means midnight)
            exclude_booking_id: Booking to ignore, used when rescheduling it

        Returns:
            List of conflicts with booking details
        """
        candidate = to_range(start_time, end_time)
        bookings = self.repository.get_blocking_bookings_for_date(
            barber_id, check_date, exclude_booking_id
        )

        conflicts = [
            {
                "booking_id": booking.id,
                "start_time": booking.start_time.strftime("%H:%M"),
                "end_time": booking.end_time.strftime("%H:%M"),
                "status": booking.status,
            }
            for booking in bookings
            if booking.time_range.overlaps(candidate)
        ]

        if conflicts:
            self.logger.info(
                f"Found {len(conflicts)} booking conflicts for barber {barber_id} "
                f"on {check_date} between {start_time}-{end_time}"
            )
        return conflicts

    def has_overlap(
        self,
        barber_id: str,
        check_date: date,
        start_time: time,
        end_time: time,
        exclude_booking_id: Optional[str] = None,
    ) -> bool:
        """True if the range overlaps any non-cancelled booking."""
        return bool(
            self.find_conflicts(barber_id, check_date, start_time, end_time, exclude_booking_id)
        )

    def get_booked_ranges(self, barber_id: str, target_date: date) -> List[TimeRange]:
        """Occupied ranges for a barber's day, in start order."""
        return [
            booking.time_range
            for booking in self.repository.get_blocking_bookings_for_date(barber_id, target_date)
        ]
