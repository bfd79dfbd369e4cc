# backend/tests/conftest.py
"""
Pytest configuration for the Trim booking core.

Every test gets a fresh in-memory SQLite database, a FixedClock pinned to
Monday 2030-01-07 09:00 (shop-local), and an EventPublisher whose
dispatcher is a Mock so no notification ever reaches Celery.
"""

import os

# Set testing mode BEFORE any app imports
os.environ["is_testing"] = "true"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from datetime import date, time
from typing import Iterator
from unittest.mock import Mock

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.api.dependencies import get_db, get_event_publisher, get_request_clock
from app.core.clock import FixedClock
from app.core.config import settings
from app.database import Base, build_engine
from app.events import EventPublisher
from app.main import app
from app.models import Barber, ServiceOffered, User
from app.services.availability_service import AvailabilityService
from app.services.booking_service import BookingService
from app.services.payment_service import PaymentService
from tests.factories import NOW, TOMORROW, make_barber, make_customer, make_service

settings.is_testing = True


def create_schema(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)


@pytest.fixture
def engine() -> Iterator[Engine]:
    test_engine = build_engine("sqlite:///:memory:")
    create_schema(test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db(engine: Engine) -> Iterator[Session]:
    """Create a new database session for each test."""
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def dispatcher() -> Mock:
    return Mock()


@pytest.fixture
def publisher(dispatcher: Mock) -> EventPublisher:
    return EventPublisher(dispatcher)


# ============================================================================
# Directory data
# ============================================================================


@pytest.fixture
def customer(db: Session) -> User:
    return make_customer(db)


@pytest.fixture
def barber(db: Session) -> Barber:
    return make_barber(db)


@pytest.fixture
def service(db: Session) -> ServiceOffered:
    return make_service(db)


# ============================================================================
# Services
# ============================================================================


@pytest.fixture
def booking_service(db: Session, clock: FixedClock, publisher: EventPublisher) -> BookingService:
    return BookingService(db, clock=clock, event_publisher=publisher, hold_minutes=10)


@pytest.fixture
def payment_service(
    db: Session, clock: FixedClock, publisher: EventPublisher, booking_service: BookingService
) -> PaymentService:
    return PaymentService(
        db, clock=clock, event_publisher=publisher, booking_service=booking_service
    )


@pytest.fixture
def availability_service(db: Session, clock: FixedClock) -> AvailabilityService:
    return AvailabilityService(db, clock=clock, slot_interval_minutes=15)


@pytest.fixture
def book(booking_service: BookingService, customer: User, barber: Barber, service: ServiceOffered):
    """Create a booking for the default customer, barber and service."""

    def _book(start: time, booking_date: date = TOMORROW, **kwargs):
        return booking_service.create_booking(
            customer_id=kwargs.pop("customer_id", customer.id),
            barber_id=kwargs.pop("barber_id", barber.id),
            service_id=kwargs.pop("service_id", service.id),
            booking_date=booking_date,
            start_time=start,
            **kwargs,
        )

    return _book


# ============================================================================
# HTTP
# ============================================================================


@pytest.fixture
def client(db: Session, clock: FixedClock, publisher: EventPublisher):
    """Create a test client bound to the test session, clock and publisher."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_request_clock] = lambda: clock
    app.dependency_overrides[get_event_publisher] = lambda: publisher

    test_client = TestClient(app)
    yield test_client

    app.dependency_overrides.clear()
    test_client.close()
