# backend/app/services/availability_service.py
"""
Availability Service for the Trim booking core.

Turns a barber's weekly working hours, breaks and existing bookings into the
start times a customer can pick for a service on a given date:

1. Union the available working-hours rows for the date's weekday.
2. Subtract the breaks that apply to the date.
3. Subtract every booking that still occupies the calendar.
4. Walk each working window on the slot grid and keep every start whose
   whole service fits inside one free range.

The result is a point-in-time snapshot. Booking writes re-check conflicts
inside their own transaction, so a stale list is harmless.
"""

from __future__ import annotations

from datetime import date, datetime, time
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.config import settings
from ..core.exceptions import NotFoundException, ValidationException
from ..core.time_ranges import (
    TimeRange,
    iter_slot_starts,
    merge_ranges,
    minutes_to_time,
    subtract_ranges,
    to_range,
)
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .conflict_checker import ConflictChecker

logger = logging.getLogger(__name__)


class AvailabilityService(BaseService):
    """Computes open booking slots for a barber's day."""

    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        slot_interval_minutes: Optional[int] = None,
        conflict_checker: Optional[ConflictChecker] = None,
    ):
        super().__init__(db, clock)
        self.slot_interval_minutes = slot_interval_minutes or settings.slot_interval_minutes
        self.repository = RepositoryFactory.create_availability_repository(db)
        self.barber_repository = RepositoryFactory.create_barber_repository(db)
        self.service_repository = RepositoryFactory.create_service_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db)

    def get_working_ranges(self, barber_id: str, target_date: date) -> List[TimeRange]:
        rows = self.repository.get_working_windows(barber_id, target_date.weekday())
        return merge_ranges(to_range(row.start_time, row.end_time) for row in rows)

    def get_free_ranges(
        self, barber_id: str, target_date: date, working: Optional[List[TimeRange]] = None
    ) -> List[TimeRange]:
        """Working time left after breaks and existing bookings."""
        if working is None:
            working = self.get_working_ranges(barber_id, target_date)
        if not working:
            return []
        breaks = [
            to_range(row.start_time, row.end_time)
            for row in self.repository.get_breaks_for_date(barber_id, target_date)
        ]
        booked = self.conflict_checker.get_booked_ranges(barber_id, target_date)
        return subtract_ranges(working, breaks + booked)

    @BaseService.measure_operation("open_slots")
    def open_slots(self, barber_id: str, target_date: date, duration_minutes: int) -> List[time]:
        """
        Ordered start times at which a ``duration_minutes`` service fits.

        No working hours on the date gives an empty list. Past dates give an
        empty list, and for today any start before the current time is
        dropped. A slot may end exactly at midnight but never past it.
        """
        if duration_minutes <= 0:
            raise ValidationException("Service duration must be positive")

        today = self.clock.today()
        if target_date < today:
            return []

        working = self.get_working_ranges(barber_id, target_date)
        if not working:
            return []
        free = self.get_free_ranges(barber_id, target_date, working)

        slots = [
            minutes_to_time(start)
            for start in iter_slot_starts(
                working, free, duration_minutes, self.slot_interval_minutes
            )
        ]
        if target_date == today:
            now = self.clock.now()
            slots = [slot for slot in slots if datetime.combine(target_date, slot) >= now]
        return slots

    @BaseService.measure_operation("get_available_slots")
    def get_available_slots(self, barber_id: str, target_date: date, service_id: str) -> List[str]:
        """
        Open slots for a service, formatted ``HH:MM`` for rendering.

        Raises:
            NotFoundException: if the barber or service does not exist
        """
        if not self.barber_repository.get_active(barber_id):
            raise NotFoundException("Barber not found", details={"barber_id": barber_id})
        service = self.service_repository.get_active(service_id)
        if not service:
            raise NotFoundException("Service not found", details={"service_id": service_id})

        slots = self.open_slots(barber_id, target_date, int(service.duration_minutes))
        self.logger.debug(
            "Computed open slots",
            extra={
                "barber_id": barber_id,
                "date": target_date.isoformat(),
                "service_id": service_id,
                "slot_count": len(slots),
            },
        )
        return [slot.strftime("%H:%M") for slot in slots]
