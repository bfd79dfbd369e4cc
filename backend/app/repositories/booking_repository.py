# backend/app/repositories/booking_repository.py
"""
Booking Repository for the Trim booking core.

This repository handles:
- Booking creation (integrity errors are surfaced for conflict handling)
- Locked reads used by lifecycle transitions
- Calendar queries for a barber's day
- Customer and barber booking lists
- Next-day lookups for reminders
- Expired-hold lookups for the reconciler
"""

from datetime import date, datetime
import logging
from typing import List, Optional, Sequence, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.booking_state import BLOCKING_STATUSES
from ..core.exceptions import RepositoryException
from ..models.booking import Booking, BookingStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_BLOCKING_VALUES = [status.value for status in BLOCKING_STATUSES]


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def get_for_update(self, booking_id: str) -> Optional[Booking]:
        """
        Load a booking with a row lock and fresh column values.

        The row lock is a no-op on SQLite, where the whole transaction already
        holds the write lock.
        """
        try:
            return cast(
                Optional[Booking],
                self.db.query(Booking)
                .filter(Booking.id == booking_id)
                .populate_existing()
                .with_for_update()
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to load booking: {str(e)}")

    def get_blocking_bookings_for_date(
        self,
        barber_id: str,
        booking_date: date,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Get every booking that occupies the barber's calendar on a date.

        Any status other than CANCELLED blocks, including PENDING holds whose
        expiry has passed but which the reconciler has not swept yet.

        Args:
            barber_id: The barber whose calendar is read
            booking_date: The calendar date
            exclude_booking_id: Booking to leave out (the one being rescheduled)

        Returns:
            Bookings ordered by start time
        """
        try:
            query = self.db.query(Booking).filter(
                Booking.barber_id == barber_id,
                Booking.booking_date == booking_date,
                Booking.status.in_(_BLOCKING_VALUES),
            )
            if exclude_booking_id:
                query = query.filter(Booking.id != exclude_booking_id)
            return cast(List[Booking], query.order_by(Booking.start_time).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting bookings for conflict check: {str(e)}")
            raise RepositoryException(f"Failed to get conflict bookings: {str(e)}")

    def get_customer_bookings(
        self, customer_id: str, statuses: Optional[Sequence[str]] = None
    ) -> List[Booking]:
        """Bookings of one customer, newest date first."""
        try:
            query = self.db.query(Booking).filter(Booking.customer_id == customer_id)
            if statuses:
                query = query.filter(Booking.status.in_(list(statuses)))
            return cast(
                List[Booking],
                query.order_by(Booking.booking_date.desc(), Booking.start_time.desc()).all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting customer bookings: {str(e)}")
            raise RepositoryException(f"Failed to get customer bookings: {str(e)}")

    def get_barber_bookings(
        self, barber_id: str, booking_date: Optional[date] = None
    ) -> List[Booking]:
        """A barber's bookings in calendar order, optionally for one date."""
        try:
            query = self.db.query(Booking).filter(Booking.barber_id == barber_id)
            if booking_date is not None:
                query = query.filter(Booking.booking_date == booking_date)
            return cast(
                List[Booking],
                query.order_by(Booking.booking_date, Booking.start_time).all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting barber bookings: {str(e)}")
            raise RepositoryException(f"Failed to get barber bookings: {str(e)}")

    def get_bookings_on_date(self, booking_date: date, statuses: Sequence[str]) -> List[Booking]:
        """
        Every booking on a date whose status is one of ``statuses``.

        Customer, barber and service are eager-loaded for message rendering.
        """
        try:
            query = self.db.query(Booking).filter(
                Booking.booking_date == booking_date,
                Booking.status.in_(list(statuses)),
            )
            return cast(
                List[Booking],
                self._apply_eager_loading(query)
                .order_by(Booking.barber_id, Booking.start_time)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting bookings for {booking_date}: {str(e)}")
            raise RepositoryException(f"Failed to get bookings for date: {str(e)}")

    def find_expired_hold_ids(self, now: datetime, limit: int) -> List[str]:
        """
        IDs of PENDING bookings whose hold expired before ``now``, oldest first.

        Only IDs are returned: each hold is re-read under lock in its own
        transaction before it is cancelled.
        """
        try:
            rows = (
                self.db.query(Booking.id)
                .filter(
                    Booking.status == BookingStatus.PENDING.value,
                    Booking.expires_at.isnot(None),
                    Booking.expires_at < now,
                )
                .order_by(Booking.expires_at)
                .limit(limit)
                .all()
            )
            return [row[0] for row in rows]
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding expired holds: {str(e)}")
            raise RepositoryException(f"Failed to find expired holds: {str(e)}")

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            joinedload(Booking.customer),
            joinedload(Booking.barber),
            joinedload(Booking.service),
        )
