# backend/app/services/booking_service.py
"""
Booking Service for the Trim booking core.

Owns the booking lifecycle: creating a held booking, rescheduling it,
cancelling it (by a person or by hold expiry), completing it and marking a
no-show. It also queues the daily reminders for the next day's bookings.

Every write follows the same shape:

1. Open a transaction and load the booking with a row lock.
2. Ask the transition table whether the operation is legal.
3. For writes that occupy the calendar, take the (barber, date) lock and
   re-run the overlap check inside the transaction.
4. Commit, then publish domain events. Notification delivery never runs
   while the transaction is open.

A racing writer that slips past the re-check hits the partial unique index
(or, on PostgreSQL, the exclusion constraint) and is reported as a
BookingConflictException, never as a generic error.
"""

from datetime import date, datetime, time, timedelta
import logging
from typing import Any, Dict, List, NoReturn, Optional, cast

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from ..core.booking_state import BookingAction, assert_transition
from ..core.clock import Clock
from ..core.config import settings
from ..core.constants import MAX_NOTES_LENGTH
from ..core.enums import PaymentRecordStatus
from ..core.exceptions import (
    BookingConflictException,
    NotFoundException,
    PastBookingException,
    ValidationException,
)
from ..core.slot_lock import acquire_calendar_lock
from ..core.time_ranges import add_minutes
from ..events import (
    BookingCancelled,
    BookingCompleted,
    BookingConfirmed,
    BookingCreated,
    BookingNoShow,
    BookingReminder,
    BookingRescheduled,
    EventPublisher,
)
from ..events.publisher import Event
from ..models.booking import Booking, BookingStatus, PaymentStatus
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .blacklist_gate import ensure_customer_not_blacklisted
from .conflict_checker import ConflictChecker
from .pricing_service import PricingService

logger = logging.getLogger(__name__)

GENERIC_CONFLICT_MESSAGE = "This time slot is no longer available"

CANCEL_REASON_CUSTOMER = "customer"
CANCEL_REASON_HOLD_EXPIRED = "hold_expired"

REMINDER_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)

# SQLSTATE codes for deadlock and serialization failure
_RETRYABLE_SQLSTATES = {"40P01", "40001"}
_LOCK_ERROR_MARKERS = ("deadlock detected", "could not serialize", "database is locked")


class BookingService(BaseService):
    """
    Service layer for the booking lifecycle.

    Args:
        db: Database session
        clock: Source of "now" for past-date checks and hold expiry
        event_publisher: Receives events after each commit
        hold_minutes: Hold window for PENDING bookings awaiting payment
        pricing_service: Deposit calculator
    """

    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        event_publisher: Optional[EventPublisher] = None,
        hold_minutes: Optional[int] = None,
        pricing_service: Optional[PricingService] = None,
        conflict_checker: Optional[ConflictChecker] = None,
    ):
        super().__init__(db, clock)
        self.hold_minutes = hold_minutes or settings.booking_hold_minutes
        self.event_publisher = event_publisher or EventPublisher()
        self.pricing_service = pricing_service or PricingService()
        self.repository = RepositoryFactory.create_booking_repository(db)
        self.payment_repository = RepositoryFactory.create_payment_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.barber_repository = RepositoryFactory.create_barber_repository(db)
        self.service_repository = RepositoryFactory.create_service_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db, self.repository)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_booking(self, booking_id: str) -> Booking:
        """
        Raises:
            NotFoundException: if the booking does not exist
        """
        booking = self.repository.get_by_id(booking_id)
        if not booking:
            raise NotFoundException("Booking not found", details={"booking_id": booking_id})
        return booking

    def get_customer_bookings(
        self, customer_id: str, status: Optional[BookingStatus] = None
    ) -> List[Booking]:
        """
        List a customer's bookings, newest first.

        Raises:
            NotFoundException: if the customer does not exist
        """
        if not self.user_repository.get_by_id(customer_id, load_relationships=False):
            raise NotFoundException("Customer not found", details={"customer_id": customer_id})
        statuses = [status.value] if status else None
        return self.repository.get_customer_bookings(customer_id, statuses)

    def get_barber_bookings(
        self, barber_id: str, booking_date: Optional[date] = None
    ) -> List[Booking]:
        """
        List a barber's bookings in calendar order, or one day's schedule.

        Raises:
            NotFoundException: if the barber does not exist
        """
        if not self.barber_repository.get_by_id(barber_id, load_relationships=False):
            raise NotFoundException("Barber not found", details={"barber_id": barber_id})
        return self.repository.get_barber_bookings(barber_id, booking_date)

    # ------------------------------------------------------------------
    # Lifecycle operations
    # ------------------------------------------------------------------

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        customer_id: str,
        barber_id: str,
        service_id: str,
        booking_date: date,
        start_time: time,
        payment_method: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Booking:
        """
        Create a PENDING booking that holds the slot.

        Online payments take a deposit of ``price x deposit_percentage``
        and hold the slot for the hold window. Pay-in-shop bookings (and
        services with no deposit) take nothing online, so they carry no
        expiry and their payment status is PENDING.

        Raises:
            NotFoundException: customer, barber or service missing
            PastBookingException: the start is before now
            CustomerBlacklistedException: the customer is blacklisted
            ValidationException: the service would run past midnight
            BookingConflictException: the range overlaps another booking
        """
        self.log_operation(
            "create_booking",
            customer_id=customer_id,
            barber_id=barber_id,
            booking_date=booking_date.isoformat(),
            start_time=start_time.strftime("%H:%M"),
        )
        if notes and len(notes) > MAX_NOTES_LENGTH:
            raise ValidationException(f"Notes cannot exceed {MAX_NOTES_LENGTH} characters")

        events: List[Event] = []
        details = self._slot_details(barber_id, booking_date, start_time)
        try:
            with self.transaction():
                customer = self.user_repository.get_by_id(customer_id, load_relationships=False)
                if not customer:
                    raise NotFoundException(
                        "Customer not found", details={"customer_id": customer_id}
                    )
                if not self.barber_repository.get_active(barber_id):
                    raise NotFoundException("Barber not found", details={"barber_id": barber_id})
                service = self.service_repository.get_active(service_id)
                if not service:
                    raise NotFoundException(
                        "Service not found", details={"service_id": service_id}
                    )

                now = self.clock.now()
                self._ensure_in_future(booking_date, start_time, now)
                ensure_customer_not_blacklisted(customer)

                duration = int(service.duration_minutes)
                end_time = self._calculate_end_time(start_time, duration)
                details["end_time"] = end_time.strftime("%H:%M")

                pay_in_shop = self._is_pay_in_shop(payment_method)
                quote = self.pricing_service.quote(
                    service.price, int(service.deposit_percentage), online=not pay_in_shop
                )
                awaiting_payment = quote.requires_online_payment

                acquire_calendar_lock(self.db, barber_id, booking_date)
                self._ensure_slot_free("create", barber_id, booking_date, start_time, end_time)

                booking = self.repository.create(
                    customer_id=customer_id,
                    barber_id=barber_id,
                    service_id=service_id,
                    booking_date=booking_date,
                    start_time=start_time,
                    end_time=end_time,
                    duration_minutes=duration,
                    service_price=quote.price,
                    status=BookingStatus.PENDING.value,
                    payment_status=(
                        PaymentStatus.DEPOSIT_PENDING.value
                        if awaiting_payment
                        else PaymentStatus.PENDING.value
                    ),
                    payment_method=payment_method,
                    deposit_amount=quote.deposit_amount,
                    outstanding_balance=quote.outstanding_balance,
                    expires_at=self._hold_expiry(now) if awaiting_payment else None,
                    notes=notes,
                )
                if pay_in_shop:
                    self.payment_repository.create(
                        booking_id=booking.id,
                        amount=quote.price,
                        payment_method=payment_method,
                        status=PaymentRecordStatus.PAY_IN_SHOP.value,
                    )
                events.append(
                    BookingCreated(
                        booking_id=booking.id,
                        customer_id=customer_id,
                        barber_id=barber_id,
                        booking_date=booking_date,
                        start_time=start_time,
                        expires_at=booking.expires_at,
                    )
                )
        except (IntegrityError, OperationalError) as exc:
            self._raise_conflict_from_db_error(exc, "create", details)

        self.event_publisher.publish_all(events)
        return booking

    @BaseService.measure_operation("update_booking")
    def update_booking(self, booking_id: str, booking_date: date, start_time: time) -> Booking:
        """
        Move a booking to a new date and start time.

        The end time is recomputed from the booking's own duration; barber,
        service, notes and amounts are left alone. A PENDING booking that is
        still awaiting payment gets a fresh hold window.

        Raises:
            NotFoundException: booking missing
            InvalidTransitionException: booking is COMPLETED or CANCELLED
            PastBookingException: the new start is before now
            BookingConflictException: the new range overlaps another booking
        """
        self.log_operation(
            "update_booking",
            booking_id=booking_id,
            booking_date=booking_date.isoformat(),
            start_time=start_time.strftime("%H:%M"),
        )
        events: List[Event] = []
        details: Dict[str, Any] = {"booking_id": booking_id}
        try:
            with self.transaction():
                booking = self._get_locked(booking_id)
                assert_transition(booking.status, BookingAction.RESCHEDULE)

                now = self.clock.now()
                self._ensure_in_future(booking_date, start_time, now)
                end_time = self._calculate_end_time(start_time, int(booking.duration_minutes))
                barber_id = cast(str, booking.barber_id)
                details.update(self._slot_details(barber_id, booking_date, start_time))
                details["end_time"] = end_time.strftime("%H:%M")

                acquire_calendar_lock(self.db, barber_id, booking_date)
                self._ensure_slot_free(
                    "update", barber_id, booking_date, start_time, end_time, booking.id
                )

                previous_date = cast(date, booking.booking_date)
                previous_start = cast(time, booking.start_time)
                booking.booking_date = booking_date
                booking.start_time = start_time
                booking.end_time = end_time
                if booking.status == BookingStatus.PENDING.value and booking.expires_at is not None:
                    booking.expires_at = self._hold_expiry(now)
                self.repository.flush()

                events.append(
                    BookingRescheduled(
                        booking_id=booking.id,
                        previous_date=previous_date,
                        previous_start_time=previous_start,
                        booking_date=booking_date,
                        start_time=start_time,
                    )
                )
        except (IntegrityError, OperationalError) as exc:
            self._raise_conflict_from_db_error(exc, "update", details)

        self.event_publisher.publish_all(events)
        return booking

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(self, booking_id: str, reason: str = CANCEL_REASON_CUSTOMER) -> Booking:
        """
        Cancel a PENDING, CONFIRMED or NO_SHOW booking and release its slot.

        Raises:
            NotFoundException: booking missing
            InvalidTransitionException: booking already CANCELLED or COMPLETED
        """
        self.log_operation("cancel_booking", booking_id=booking_id, reason=reason)
        events: List[Event] = []
        with self.transaction():
            booking = self._get_locked(booking_id)
            self._apply_cancel(booking, BookingAction.CANCEL, reason, events)
        self.event_publisher.publish_all(events)
        return booking

    @BaseService.measure_operation("expire_hold")
    def expire_hold(self, booking_id: str) -> bool:
        """
        Cancel one stale hold if it is still stale.

        The status and expiry are re-read under the row lock, so a payment
        confirmed between the sweep's scan and this call wins and the
        booking is skipped.

        Returns:
            True if the booking was cancelled, False if it was skipped
        """
        events: List[Event] = []
        with self.transaction():
            booking = self.repository.get_for_update(booking_id)
            if booking is None or not booking.is_hold_expired(self.clock.now()):
                self.logger.info(
                    "Skipping hold expiry; booking no longer stale",
                    extra={"booking_id": booking_id},
                )
                return False
            self._apply_cancel(booking, BookingAction.EXPIRE, CANCEL_REASON_HOLD_EXPIRED, events)
        self.event_publisher.publish_all(events)
        return True

    @BaseService.measure_operation("complete_booking")
    def complete_booking(self, booking_id: str) -> Booking:
        """
        Mark a booking as completed and settled in full.

        The deposit becomes the full service price and the outstanding
        balance drops to zero.
        """
        self.log_operation("complete_booking", booking_id=booking_id)
        events: List[Event] = []
        with self.transaction():
            booking = self._get_locked(booking_id)
            assert_transition(booking.status, BookingAction.COMPLETE)
            now = self.clock.now()
            booking.complete(now)
            events.append(BookingCompleted(booking_id=booking.id, completed_at=now))
        self.event_publisher.publish_all(events)
        return booking

    @BaseService.measure_operation("mark_no_show")
    def mark_no_show(self, booking_id: str) -> Booking:
        """Mark a PENDING or CONFIRMED booking as a no-show; payment fields are untouched."""
        self.log_operation("mark_no_show", booking_id=booking_id)
        events: List[Event] = []
        with self.transaction():
            booking = self._get_locked(booking_id)
            assert_transition(booking.status, BookingAction.NO_SHOW)
            now = self.clock.now()
            booking.mark_no_show(now)
            events.append(BookingNoShow(booking_id=booking.id, marked_at=now))
        self.event_publisher.publish_all(events)
        return booking

    @BaseService.measure_operation("send_booking_reminders")
    def send_booking_reminders(self, target_date: Optional[date] = None) -> int:
        """
        Queue reminders for the PENDING and CONFIRMED bookings of a day.

        Args:
            target_date: Day to remind about; defaults to tomorrow in shop time

        Returns:
            Number of reminders queued
        """
        target_date = target_date or self.clock.today() + timedelta(days=1)
        bookings = self.repository.get_bookings_on_date(
            target_date, [status.value for status in REMINDER_STATUSES]
        )
        for booking in bookings:
            self.event_publisher.publish(
                BookingReminder(
                    booking_id=booking.id,
                    customer_id=cast(str, booking.customer_id),
                    booking_date=cast(date, booking.booking_date),
                    start_time=cast(time, booking.start_time),
                )
            )
        self.logger.info(
            "Daily reminders queued",
            extra={"booking_date": target_date.isoformat(), "reminders": len(bookings)},
        )
        return len(bookings)

    def apply_confirmation(self, booking: Booking, *, fully_paid: bool) -> BookingConfirmed:
        """
        Confirm a locked PENDING booking after its payment succeeded.

        The caller owns the transaction and publishes the returned event
        after commit.
        """
        assert_transition(booking.status, BookingAction.CONFIRM)
        now = self.clock.now()
        booking.confirm(now, fully_paid=fully_paid)
        return BookingConfirmed(
            booking_id=booking.id,
            customer_id=cast(str, booking.customer_id),
            payment_status=cast(str, booking.payment_status),
            confirmed_at=now,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _apply_cancel(
        self, booking: Booking, action: BookingAction, reason: str, events: List[Event]
    ) -> None:
        assert_transition(booking.status, action)
        now = self.clock.now()
        booking.cancel(now, reason)
        events.append(BookingCancelled(booking_id=booking.id, reason=reason, cancelled_at=now))

    def _get_locked(self, booking_id: str) -> Booking:
        booking = self.repository.get_for_update(booking_id)
        if not booking:
            raise NotFoundException("Booking not found", details={"booking_id": booking_id})
        return booking

    def _ensure_slot_free(
        self,
        operation: str,
        barber_id: str,
        booking_date: date,
        start_time: time,
        end_time: time,
        exclude_booking_id: Optional[str] = None,
    ) -> None:
        conflicts = self.conflict_checker.find_conflicts(
            barber_id, booking_date, start_time, end_time, exclude_booking_id
        )
        if conflicts:
            prometheus_metrics.record_booking_conflict(operation, "recheck")
            raise BookingConflictException(
                details={
                    **self._slot_details(barber_id, booking_date, start_time),
                    "end_time": end_time.strftime("%H:%M"),
                    "conflicting_booking_ids": [c["booking_id"] for c in conflicts],
                }
            )

    def _ensure_in_future(self, booking_date: date, start_time: time, now: datetime) -> None:
        if datetime.combine(booking_date, start_time) < now:
            raise PastBookingException(booking_date.isoformat(), start_time.strftime("%H:%M"))

    @staticmethod
    def _calculate_end_time(start_time: time, duration_minutes: int) -> time:
        try:
            return add_minutes(start_time, duration_minutes)
        except ValueError as exc:
            raise ValidationException(
                "Booking cannot extend past midnight",
                details={
                    "start_time": start_time.strftime("%H:%M"),
                    "duration_minutes": duration_minutes,
                },
            ) from exc

    def _hold_expiry(self, now: datetime) -> datetime:
        return now + timedelta(minutes=self.hold_minutes)

    @staticmethod
    def _is_pay_in_shop(payment_method: Optional[str]) -> bool:
        return bool(payment_method) and payment_method in settings.pay_in_shop_methods

    @staticmethod
    def _slot_details(barber_id: str, booking_date: date, start_time: time) -> Dict[str, Any]:
        return {
            "barber_id": barber_id,
            "booking_date": booking_date.isoformat(),
            "start_time": start_time.strftime("%H:%M"),
        }

    @staticmethod
    def _is_lock_error(exc: OperationalError) -> bool:
        orig = getattr(exc, "orig", None)
        pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
        if pgcode in _RETRYABLE_SQLSTATES:
            return True
        message = str(exc).lower()
        return any(marker in message for marker in _LOCK_ERROR_MARKERS)

    def _raise_conflict_from_db_error(
        self, exc: Exception, operation: str, details: Dict[str, Any]
    ) -> NoReturn:
        """
        Translate a losing concurrent write into a booking conflict.

        Integrity errors come from the no-overlap index or constraint;
        deadlocks, serialization failures and SQLite lock timeouts mean
        another writer held the calendar. Anything else is re-raised.
        """
        if isinstance(exc, IntegrityError):
            source = "integrity"
        elif isinstance(exc, OperationalError) and self._is_lock_error(exc):
            source = "lock"
        else:
            raise exc
        prometheus_metrics.record_booking_conflict(operation, source)
        self.logger.warning(
            "Booking write lost a race for the slot",
            extra={"operation": operation, "source": source, **details},
        )
        raise BookingConflictException(message=GENERIC_CONFLICT_MESSAGE, details=details) from exc
