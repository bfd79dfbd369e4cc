"""
Lookups for the reference data a booking points at: customers, barbers and
services. These tables are maintained outside the booking core.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models.barber import Barber
from ..models.service import ServiceOffered
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    def __init__(self, db: Session):
        super().__init__(db, User)


class BarberRepository(BaseRepository[Barber]):
    def __init__(self, db: Session):
        super().__init__(db, Barber)

    def get_active(self, barber_id: str) -> Optional[Barber]:
        return self.find_one_by(id=barber_id, is_active=True)


class ServiceRepository(BaseRepository[ServiceOffered]):
    def __init__(self, db: Session):
        super().__init__(db, ServiceOffered)

    def get_active(self, service_id: str) -> Optional[ServiceOffered]:
        return self.find_one_by(id=service_id, is_active=True)
