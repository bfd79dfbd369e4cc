from datetime import time

from app.services.conflict_checker import ConflictChecker
from tests.factories import TOMORROW, make_barber


def test_overlap_is_reported(db, barber, book):
    booking = book(time(10, 0))
    checker = ConflictChecker(db)

    conflicts = checker.find_conflicts(barber.id, TOMORROW, time(10, 15), time(10, 45))

    assert [c["booking_id"] for c in conflicts] == [booking.id]
    assert conflicts[0]["start_time"] == "10:00"
    assert conflicts[0]["end_time"] == "10:30"


def test_touching_endpoints_do_not_conflict(db, barber, book):
    book(time(10, 0))
    checker = ConflictChecker(db)

    assert not checker.has_overlap(barber.id, TOMORROW, time(10, 30), time(11, 0))
    assert not checker.has_overlap(barber.id, TOMORROW, time(9, 30), time(10, 0))


def test_booking_does_not_conflict_with_itself(db, barber, book):
    booking = book(time(10, 0))
    checker = ConflictChecker(db)

    assert not checker.has_overlap(
        barber.id, TOMORROW, time(10, 15), time(10, 45), exclude_booking_id=booking.id
    )


def test_cancelled_bookings_are_ignored(db, barber, book, booking_service):
    booking = book(time(10, 0))
    booking_service.cancel_booking(booking.id)

    assert not ConflictChecker(db).has_overlap(barber.id, TOMORROW, time(10, 0), time(10, 30))


def test_other_barbers_do_not_conflict(db, book):
    book(time(10, 0))
    other = make_barber(db, display_name="Niamh")

    assert not ConflictChecker(db).has_overlap(other.id, TOMORROW, time(10, 0), time(10, 30))
