"""
Two writers racing for one barber's slot on a real (file-backed) database.

Each thread gets its own connection and session, so the guard under test is
the database write lock plus the in-transaction re-check, not the identity
map of a shared session.
"""

from datetime import time
import threading
from unittest.mock import Mock

import pytest
from sqlalchemy.orm import sessionmaker

from app.core.clock import FixedClock
from app.core.exceptions import BookingConflictException
from app.database import Base, build_engine
from app.events import EventPublisher
from app.models import Booking
from app.models.booking import BookingStatus
from app.services.booking_service import BookingService
from tests.factories import NOW, TOMORROW, make_barber, make_customer, make_service


@pytest.fixture
def file_engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'race.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(file_engine):
    return sessionmaker(bind=file_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def seeded(session_factory):
    session = session_factory()
    try:
        customers = [make_customer(session), make_customer(session)]
        barber = make_barber(session)
        service = make_service(session)
        return {
            "customer_ids": [c.id for c in customers],
            "barber_id": barber.id,
            "service_id": service.id,
        }
    finally:
        session.close()


def race(session_factory, attempts):
    """Run each (customer_id, barber_id, service_id, start) attempt in its own thread."""
    barrier = threading.Barrier(len(attempts))
    results = []
    lock = threading.Lock()

    def attempt(customer_id, barber_id, service_id, start):
        session = session_factory()
        service = BookingService(
            session, clock=FixedClock(NOW), event_publisher=EventPublisher(Mock())
        )
        try:
            barrier.wait()
            booking = service.create_booking(
                customer_id=customer_id,
                barber_id=barber_id,
                service_id=service_id,
                booking_date=TOMORROW,
                start_time=start,
            )
            outcome = ("ok", booking.id)
        except BookingConflictException as exc:
            outcome = ("conflict", exc.message)
        except Exception as exc:
            outcome = ("error", repr(exc))
        finally:
            session.close()
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=attempt, args=args) for args in attempts]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return results


def test_identical_slot_only_one_wins(session_factory, seeded):
    attempts = [
        (customer_id, seeded["barber_id"], seeded["service_id"], time(10, 0))
        for customer_id in seeded["customer_ids"]
    ]

    results = race(session_factory, attempts)

    assert sorted(kind for kind, _ in results) == ["conflict", "ok"]
    session = session_factory()
    try:
        active = (
            session.query(Booking)
            .filter(Booking.status != BookingStatus.CANCELLED.value)
            .all()
        )
        assert len(active) == 1
    finally:
        session.close()


def test_overlapping_ranges_only_one_wins(session_factory, seeded):
    first, second = seeded["customer_ids"]
    attempts = [
        (first, seeded["barber_id"], seeded["service_id"], time(10, 0)),
        (second, seeded["barber_id"], seeded["service_id"], time(10, 15)),
    ]

    results = race(session_factory, attempts)

    assert sorted(kind for kind, _ in results) == ["conflict", "ok"]


def test_adjacent_ranges_both_succeed(session_factory, seeded):
    first, second = seeded["customer_ids"]
    attempts = [
        (first, seeded["barber_id"], seeded["service_id"], time(10, 0)),
        (second, seeded["barber_id"], seeded["service_id"], time(10, 30)),
    ]

    results = race(session_factory, attempts)

    assert [kind for kind, _ in results] == ["ok", "ok"]
