from datetime import time, timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from app.core.enums import PaymentRecordStatus
from app.core.exceptions import (
    BookingConflictException,
    CustomerBlacklistedException,
    InvalidTransitionException,
    NotFoundException,
    PastBookingException,
    ValidationException,
)
from app.models import Booking, Payment
from app.models.booking import BookingStatus, PaymentStatus
from app.services.booking_service import CANCEL_REASON_HOLD_EXPIRED, GENERIC_CONFLICT_MESSAGE
from tests.factories import (
    NOW,
    TODAY,
    TOMORROW,
    YESTERDAY,
    dispatched_types,
    make_barber,
    make_customer,
    make_service,
)


class TestCreateBooking:
    def test_creates_pending_hold_with_price_snapshot(self, book):
        booking = book(time(10, 0))

        assert booking.status == BookingStatus.PENDING.value
        assert booking.payment_status == PaymentStatus.DEPOSIT_PENDING.value
        assert booking.end_time == time(10, 30)
        assert booking.duration_minutes == 30
        assert booking.service_price == Decimal("25.00")
        assert booking.deposit_amount == Decimal("5.00")
        assert booking.outstanding_balance == Decimal("20.00")
        assert booking.expires_at == NOW + timedelta(minutes=10)

    def test_publishes_booking_created_after_commit(self, book, dispatcher, customer):
        booking = book(time(10, 0))

        dispatcher.dispatch.assert_called_once()
        event_type, payload = dispatcher.dispatch.call_args.args
        assert event_type == "BookingCreated"
        assert payload["booking_id"] == booking.id
        assert payload["customer_id"] == customer.id
        assert payload["booking_date"] == TOMORROW.isoformat()
        assert payload["start_time"] == "10:00:00"

    def test_overlapping_start_is_rejected(self, db, book):
        book(time(10, 0))

        with pytest.raises(BookingConflictException) as exc_info:
            book(time(10, 15))

        assert exc_info.value.status_code == 409
        assert exc_info.value.message == "This time slot is no longer available"
        assert db.query(Booking).count() == 1

    def test_back_to_back_bookings_are_allowed(self, book):
        first = book(time(10, 0))
        second = book(time(10, 30))

        assert first.end_time == second.start_time

    def test_cancelled_booking_does_not_block(self, book, booking_service):
        first = book(time(10, 0))
        booking_service.cancel_booking(first.id)

        again = book(time(10, 0))

        assert again.status == BookingStatus.PENDING.value

    def test_same_time_with_another_barber_is_allowed(self, db, book):
        other = make_barber(db, display_name="Niamh")
        book(time(10, 0))

        booking = book(time(10, 0), barber_id=other.id)

        assert booking.barber_id == other.id

    def test_blacklisted_customer_is_refused(self, db, book):
        banned = make_customer(db, blacklisted=True, blacklist_reason="Repeated no-shows")

        with pytest.raises(CustomerBlacklistedException) as exc_info:
            book(time(10, 0), customer_id=banned.id)

        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Customer is blacklisted: Repeated no-shows"
        assert db.query(Booking).count() == 0

    def test_blacklisted_without_reason(self, db, book):
        banned = make_customer(db, blacklisted=True)

        with pytest.raises(CustomerBlacklistedException) as exc_info:
            book(time(10, 0), customer_id=banned.id)

        assert exc_info.value.message == "Customer is blacklisted: No reason provided"

    def test_past_date_is_refused(self, book, dispatcher):
        with pytest.raises(PastBookingException) as exc_info:
            book(time(10, 0), booking_date=YESTERDAY)

        assert exc_info.value.message == "Cannot book in the past"
        dispatcher.dispatch.assert_not_called()

    def test_earlier_today_is_refused(self, book):
        with pytest.raises(PastBookingException):
            book(time(8, 30), booking_date=TODAY)

    def test_later_today_is_allowed(self, book):
        booking = book(time(9, 30), booking_date=TODAY)

        assert booking.booking_date == TODAY

    def test_service_running_past_midnight_is_refused(self, book):
        with pytest.raises(ValidationException) as exc_info:
            book(time(23, 45))

        assert exc_info.value.message == "Booking cannot extend past midnight"

    def test_service_ending_at_midnight_is_allowed(self, book):
        booking = book(time(23, 30))

        assert booking.end_time == time(0, 0)

    def test_full_day_booking_blocks_the_whole_day(self, db, book):
        full_day = make_service(db, name="Day Hire", duration_minutes=24 * 60)
        book(time(0, 0), service_id=full_day.id)

        with pytest.raises(BookingConflictException):
            book(time(10, 0))

    def test_pay_in_shop_has_no_hold(self, db, book):
        booking = book(time(10, 0), payment_method="pay_in_shop")

        assert booking.payment_status == PaymentStatus.PENDING.value
        assert booking.expires_at is None
        assert booking.deposit_amount == Decimal("0.00")
        assert booking.outstanding_balance == Decimal("25.00")
        payment = db.query(Payment).filter(Payment.booking_id == booking.id).one()
        assert payment.status == PaymentRecordStatus.PAY_IN_SHOP.value
        assert payment.amount == Decimal("25.00")

    def test_zero_deposit_service_has_no_hold(self, db, book):
        walk_in = make_service(db, name="Beard Trim", deposit_percentage=0, duration_minutes=15)

        booking = book(time(10, 0), service_id=walk_in.id)

        assert booking.payment_status == PaymentStatus.PENDING.value
        assert booking.expires_at is None
        assert booking.end_time == time(10, 15)

    @pytest.mark.parametrize("field", ["customer_id", "barber_id", "service_id"])
    def test_missing_reference_is_not_found(self, book, field):
        with pytest.raises(NotFoundException):
            book(time(10, 0), **{field: "01ZZZZZZZZZZZZZZZZZZZZZZZZ"})

    def test_overlong_notes_are_refused(self, book):
        with pytest.raises(ValidationException):
            book(time(10, 0), notes="x" * 5000)


class TestDatabaseGuards:
    def test_unique_index_reports_conflict(self, db, book, booking_service):
        book(time(10, 0))

        with patch.object(booking_service.conflict_checker, "find_conflicts", return_value=[]):
            with pytest.raises(BookingConflictException) as exc_info:
                book(time(10, 0))

        assert exc_info.value.message == GENERIC_CONFLICT_MESSAGE
        assert db.query(Booking).count() == 1

    def test_lock_timeout_reports_conflict(self, book, booking_service):
        locked = OperationalError("BEGIN IMMEDIATE", {}, Exception("database is locked"))

        with patch.object(booking_service.conflict_checker, "find_conflicts", side_effect=locked):
            with pytest.raises(BookingConflictException):
                book(time(10, 0))

    def test_other_operational_errors_propagate(self, book, booking_service):
        broken = OperationalError("SELECT", {}, Exception("no such table: bookings"))

        with patch.object(booking_service.conflict_checker, "find_conflicts", side_effect=broken):
            with pytest.raises(OperationalError):
                book(time(10, 0))


class TestUpdateBooking:
    def test_moves_booking_and_recomputes_end(self, book, booking_service, dispatcher):
        booking = book(time(10, 0))

        moved = booking_service.update_booking(booking.id, TOMORROW, time(11, 0))

        assert moved.start_time == time(11, 0)
        assert moved.end_time == time(11, 30)
        assert dispatched_types(dispatcher)[-1] == "BookingRescheduled"
        payload = dispatcher.dispatch.call_args.args[1]
        assert payload["previous_start_time"] == "10:00:00"

    def test_overlap_with_itself_is_allowed(self, book, booking_service):
        booking = book(time(10, 0))

        moved = booking_service.update_booking(booking.id, TOMORROW, time(10, 15))

        assert moved.start_time == time(10, 15)
        assert moved.end_time == time(10, 45)

    def test_overlap_with_other_booking_is_rejected(self, book, booking_service):
        booking = book(time(10, 0))
        book(time(11, 0))

        with pytest.raises(BookingConflictException):
            booking_service.update_booking(booking.id, TOMORROW, time(10, 45))

        assert booking_service.get_booking(booking.id).start_time == time(10, 0)

    def test_refreshes_hold_expiry(self, book, booking_service, clock):
        booking = book(time(10, 0))
        clock.advance(minutes=5)

        moved = booking_service.update_booking(booking.id, TOMORROW, time(12, 0))

        assert moved.expires_at == clock.now() + timedelta(minutes=10)

    def test_pay_in_shop_stays_without_expiry(self, book, booking_service):
        booking = book(time(10, 0), payment_method="pay_in_shop")

        moved = booking_service.update_booking(booking.id, TOMORROW, time(12, 0))

        assert moved.expires_at is None

    def test_cannot_move_into_the_past(self, book, booking_service):
        booking = book(time(10, 0))

        with pytest.raises(PastBookingException):
            booking_service.update_booking(booking.id, YESTERDAY, time(10, 0))

    def test_unknown_booking(self, booking_service):
        with pytest.raises(NotFoundException):
            booking_service.update_booking("01ZZZZZZZZZZZZZZZZZZZZZZZZ", TOMORROW, time(10, 0))


class TestCancelBooking:
    def test_cancel_releases_slot(self, book, booking_service, dispatcher):
        booking = book(time(10, 0))

        cancelled = booking_service.cancel_booking(booking.id)

        assert cancelled.status == BookingStatus.CANCELLED.value
        assert cancelled.payment_status == PaymentStatus.CANCELLED.value
        assert cancelled.expires_at is None
        assert cancelled.cancellation_reason == "customer"
        assert cancelled.cancelled_at == NOW
        assert dispatched_types(dispatcher) == ["BookingCreated", "BookingCancelled"]

    def test_cancel_twice_is_rejected(self, book, booking_service):
        booking = book(time(10, 0))
        booking_service.cancel_booking(booking.id)

        with pytest.raises(InvalidTransitionException) as exc_info:
            booking_service.cancel_booking(booking.id)

        assert exc_info.value.message == "Booking is already cancelled"

    def test_no_show_can_be_cancelled(self, book, booking_service):
        booking = book(time(10, 0))
        booking_service.mark_no_show(booking.id)

        assert booking_service.cancel_booking(booking.id).status == BookingStatus.CANCELLED.value


class TestExpireHold:
    def test_expires_stale_hold(self, book, booking_service, clock):
        booking = book(time(10, 0))
        clock.advance(minutes=11)

        assert booking_service.expire_hold(booking.id) is True

        expired = booking_service.get_booking(booking.id)
        assert expired.status == BookingStatus.CANCELLED.value
        assert expired.cancellation_reason == CANCEL_REASON_HOLD_EXPIRED

    def test_hold_still_running_is_skipped(self, book, booking_service):
        booking = book(time(10, 0))

        assert booking_service.expire_hold(booking.id) is False
        assert booking_service.get_booking(booking.id).status == BookingStatus.PENDING.value


class TestCompleteAndNoShow:
    def test_complete_settles_in_full(self, book, booking_service, dispatcher):
        booking = book(time(10, 0))

        completed = booking_service.complete_booking(booking.id)

        assert completed.status == BookingStatus.COMPLETED.value
        assert completed.deposit_amount == Decimal("25.00")
        assert completed.outstanding_balance == Decimal("0")
        assert completed.payment_status == PaymentStatus.FULLY_PAID.value
        assert completed.expires_at is None
        assert dispatched_types(dispatcher)[-1] == "BookingCompleted"

    def test_no_show_keeps_payment_fields(self, book, booking_service):
        booking = book(time(10, 0))

        no_show = booking_service.mark_no_show(booking.id)

        assert no_show.status == BookingStatus.NO_SHOW.value
        assert no_show.payment_status == PaymentStatus.DEPOSIT_PENDING.value
        assert no_show.deposit_amount == Decimal("5.00")
        assert no_show.expires_at is None

    def test_no_show_can_later_be_completed(self, book, booking_service):
        booking = book(time(10, 0))
        booking_service.mark_no_show(booking.id)

        assert booking_service.complete_booking(booking.id).status == BookingStatus.COMPLETED.value

    def test_completed_booking_is_immutable(self, book, booking_service):
        booking = book(time(10, 0))
        booking_service.complete_booking(booking.id)

        with pytest.raises(InvalidTransitionException, match="Cannot cancel a completed booking"):
            booking_service.cancel_booking(booking.id)
        with pytest.raises(InvalidTransitionException, match="Cannot update a completed booking"):
            booking_service.update_booking(booking.id, TOMORROW, time(12, 0))
        with pytest.raises(InvalidTransitionException):
            booking_service.mark_no_show(booking.id)

        assert booking_service.get_booking(booking.id).status == BookingStatus.COMPLETED.value

    def test_cancelled_booking_cannot_complete(self, book, booking_service):
        booking = book(time(10, 0))
        booking_service.cancel_booking(booking.id)

        with pytest.raises(InvalidTransitionException, match="Cannot complete a cancelled booking"):
            booking_service.complete_booking(booking.id)


class TestEventDelivery:
    def test_dispatch_failure_does_not_undo_booking(self, db, book, dispatcher):
        dispatcher.dispatch.side_effect = RuntimeError("broker down")

        booking = book(time(10, 0))

        assert db.query(Booking).filter(Booking.id == booking.id).count() == 1

    def test_failed_write_publishes_nothing(self, book, dispatcher):
        book(time(10, 0))
        dispatcher.dispatch.reset_mock()

        with pytest.raises(BookingConflictException):
            book(time(10, 0))

        dispatcher.dispatch.assert_not_called()


class TestBookingLists:
    def test_customer_bookings_newest_first(self, book, booking_service, customer):
        early = book(time(10, 0))
        later = book(time(11, 0), booking_date=TOMORROW + timedelta(days=1))

        bookings = booking_service.get_customer_bookings(customer.id)

        assert [b.id for b in bookings] == [later.id, early.id]

    def test_customer_bookings_filtered_by_status(self, book, booking_service, customer):
        kept = book(time(10, 0))
        cancelled = book(time(11, 0))
        booking_service.cancel_booking(cancelled.id)

        bookings = booking_service.get_customer_bookings(customer.id, BookingStatus.PENDING)

        assert [b.id for b in bookings] == [kept.id]

    def test_other_customers_bookings_are_not_listed(self, db, book, booking_service):
        book(time(10, 0))
        someone_else = make_customer(db)

        assert booking_service.get_customer_bookings(someone_else.id) == []

    def test_unknown_customer(self, booking_service):
        with pytest.raises(NotFoundException, match="Customer not found"):
            booking_service.get_customer_bookings("01ZZZZZZZZZZZZZZZZZZZZZZZZ")

    def test_barber_bookings_in_calendar_order(self, book, booking_service, barber):
        second = book(time(11, 0))
        first = book(time(10, 0))
        next_day = book(time(9, 0), booking_date=TOMORROW + timedelta(days=1))

        bookings = booking_service.get_barber_bookings(barber.id)

        assert [b.id for b in bookings] == [first.id, second.id, next_day.id]

    def test_barber_schedule_for_one_date(self, book, booking_service, barber):
        tomorrow = book(time(10, 0))
        book(time(10, 0), booking_date=TOMORROW + timedelta(days=1))

        bookings = booking_service.get_barber_bookings(barber.id, TOMORROW)

        assert [b.id for b in bookings] == [tomorrow.id]

    def test_unknown_barber(self, booking_service):
        with pytest.raises(NotFoundException, match="Barber not found"):
            booking_service.get_barber_bookings("01ZZZZZZZZZZZZZZZZZZZZZZZZ")


class TestDailyReminders:
    def test_reminds_pending_and_confirmed_bookings_for_tomorrow(
        self, book, booking_service, payment_service, dispatcher
    ):
        pending = book(time(10, 0), payment_method="pay_in_shop")
        confirmed = book(time(11, 0))
        payment_service.create_payment_record(confirmed.id, "pi_reminder")
        payment_service.confirm_payment("pi_reminder")
        cancelled = book(time(12, 0))
        booking_service.cancel_booking(cancelled.id)
        book(time(10, 0), booking_date=TOMORROW + timedelta(days=1))
        dispatcher.reset_mock()

        assert booking_service.send_booking_reminders() == 2

        payloads = [call.args[1] for call in dispatcher.dispatch.call_args_list]
        assert dispatched_types(dispatcher) == ["BookingReminder", "BookingReminder"]
        assert {p["booking_id"] for p in payloads} == {pending.id, confirmed.id}
        assert all(p["booking_date"] == TOMORROW.isoformat() for p in payloads)

    def test_completed_and_no_show_bookings_are_skipped(self, book, booking_service, dispatcher):
        booking_service.complete_booking(book(time(10, 0)).id)
        booking_service.mark_no_show(book(time(11, 0)).id)
        dispatcher.reset_mock()

        assert booking_service.send_booking_reminders() == 0
        dispatcher.dispatch.assert_not_called()

    def test_explicit_date(self, book, booking_service):
        later = TOMORROW + timedelta(days=1)
        book(time(10, 0), booking_date=later)

        assert booking_service.send_booking_reminders() == 0
        assert booking_service.send_booking_reminders(later) == 1
