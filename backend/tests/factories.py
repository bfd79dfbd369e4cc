# backend/tests/factories.py
"""Small builders for directory data used across the test suite."""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional
from unittest.mock import Mock

from sqlalchemy.orm import Session

from app.models import Barber, BarberBreak, ServiceOffered, User
from app.repositories.availability_repository import AvailabilityRepository

# Monday, shop-local
NOW = datetime(2030, 1, 7, 9, 0)
TODAY = NOW.date()
TOMORROW = TODAY + timedelta(days=1)
YESTERDAY = TODAY - timedelta(days=1)

_counter = {"users": 0}


def make_customer(db: Session, **overrides) -> User:
    _counter["users"] += 1
    fields = {
        "email": f"customer-{_counter['users']}@example.com",
        "first_name": "Aoife",
        "last_name": "Byrne",
    }
    fields.update(overrides)
    user = User(**fields)
    db.add(user)
    db.commit()
    return user


def make_service(db: Session, **overrides) -> ServiceOffered:
    fields = {
        "name": "Skin Fade",
        "duration_minutes": 30,
        "price": Decimal("25.00"),
        "deposit_percentage": 20,
    }
    fields.update(overrides)
    service = ServiceOffered(**fields)
    db.add(service)
    db.commit()
    return service


def make_barber(
    db: Session,
    *,
    start: time = time(9, 0),
    end: time = time(18, 0),
    days: Iterable[int] = range(7),
    display_name: str = "Conor",
) -> Barber:
    barber = Barber(display_name=display_name)
    db.add(barber)
    db.flush()
    repository = AvailabilityRepository(db)
    for day in days:
        repository.add_working_window(
            barber.id, day_of_week=day, start_time=start, end_time=end
        )
    db.commit()
    return barber


def add_break(
    db: Session, barber: Barber, start: time, end: time, break_date: Optional[date] = None
) -> BarberBreak:
    row = AvailabilityRepository(db).add_break(
        barber.id, start_time=start, end_time=end, break_date=break_date
    )
    db.commit()
    return row


def dispatched_types(dispatcher: Mock) -> List[str]:
    return [call.args[0] for call in dispatcher.dispatch.call_args_list]
