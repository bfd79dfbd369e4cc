from datetime import datetime, time, timedelta

import pytest

from app.core.exceptions import NotFoundException, ValidationException
from app.services.availability_service import AvailabilityService
from tests.factories import TODAY, TOMORROW, YESTERDAY, add_break, make_barber, make_service


class TestOpenSlots:
    def test_full_day_on_fifteen_minute_grid(self, availability_service, barber, service):
        slots = availability_service.get_available_slots(barber.id, TOMORROW, service.id)

        assert slots[0] == "09:00"
        assert slots[1] == "09:15"
        assert slots[-1] == "17:30"
        assert len(slots) == 35

    def test_existing_booking_blocks_overlapping_starts(
        self, availability_service, barber, service, book
    ):
        book(time(10, 0))

        slots = availability_service.get_available_slots(barber.id, TOMORROW, service.id)

        assert "09:30" in slots  # ends exactly when the booking starts
        assert "09:45" not in slots
        assert "10:00" not in slots
        assert "10:15" not in slots
        assert "10:30" in slots  # starts exactly when the booking ends

    def test_cancelled_booking_frees_its_slot(
        self, availability_service, booking_service, barber, service, book
    ):
        booking = book(time(10, 0))
        booking_service.cancel_booking(booking.id)

        slots = availability_service.get_available_slots(barber.id, TOMORROW, service.id)

        assert "10:00" in slots

    def test_recurring_break_applies_every_day(self, db, availability_service, barber, service):
        add_break(db, barber, time(13, 0), time(14, 0))

        for day in (TOMORROW, TOMORROW + timedelta(days=1)):
            slots = availability_service.get_available_slots(barber.id, day, service.id)
            assert "12:30" in slots
            assert "12:45" not in slots
            assert "13:30" not in slots
            assert "14:00" in slots

    def test_dated_break_applies_only_to_its_date(
        self, db, availability_service, barber, service
    ):
        add_break(db, barber, time(15, 0), time(15, 30), break_date=TOMORROW)

        assert "15:00" not in availability_service.get_available_slots(
            barber.id, TOMORROW, service.id
        )
        assert "15:00" in availability_service.get_available_slots(
            barber.id, TOMORROW + timedelta(days=1), service.id
        )

    def test_no_working_hours_means_no_slots(self, db, availability_service, service):
        weekday_barber = make_barber(db, days=range(5), display_name="Weekday")
        saturday = TODAY + timedelta(days=5)
        assert saturday.weekday() == 5

        assert availability_service.get_available_slots(weekday_barber.id, saturday, service.id) == []

    def test_past_date_has_no_slots(self, availability_service, barber, service):
        assert availability_service.get_available_slots(barber.id, YESTERDAY, service.id) == []

    def test_today_drops_starts_before_now(self, db, clock, barber, service):
        clock.set(datetime.combine(TODAY, time(11, 10)))
        availability = AvailabilityService(db, clock=clock, slot_interval_minutes=15)

        slots = availability.get_available_slots(barber.id, TODAY, service.id)

        assert slots[0] == "11:15"

    def test_slot_may_end_exactly_at_midnight(self, db, availability_service, service):
        late_barber = make_barber(db, start=time(22, 0), end=time(0, 0), display_name="Late")

        slots = availability_service.get_available_slots(late_barber.id, TOMORROW, service.id)

        assert slots[-1] == "23:30"

    def test_longer_service_needs_a_longer_gap(self, db, availability_service, barber, book):
        book(time(10, 0))
        long_service = make_service(db, name="Full Works", duration_minutes=60)

        slots = availability_service.get_available_slots(barber.id, TOMORROW, long_service.id)

        assert "09:00" in slots
        assert "09:15" not in slots
        assert "10:30" in slots


class TestLookups:
    def test_unknown_service(self, availability_service, barber):
        with pytest.raises(NotFoundException):
            availability_service.get_available_slots(barber.id, TOMORROW, "missing")

    def test_unknown_barber(self, availability_service, service):
        with pytest.raises(NotFoundException):
            availability_service.get_available_slots("missing", TOMORROW, service.id)

    def test_duration_must_be_positive(self, availability_service, barber):
        with pytest.raises(ValidationException):
            availability_service.open_slots(barber.id, TOMORROW, 0)


def test_open_slots_returns_times(availability_service, barber):
    slots = availability_service.open_slots(barber.id, TOMORROW, 45)
    assert slots[0] == time(9, 0)
    assert slots[-1] == time(17, 15)
