"""
Payment Repository for the Trim booking core.

This repository handles:
- Payment record creation for booking deposits
- Lookups by gateway reference for webhook handling
"""

import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.payment import Payment
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PaymentRepository(BaseRepository[Payment]):
    """Repository for payment record data access."""

    def __init__(self, db: Session):
        super().__init__(db, Payment)
        self.logger = logging.getLogger(__name__)

    def get_by_gateway_reference(
        self, gateway_reference: str, *, for_update: bool = False
    ) -> Optional[Payment]:
        """
        Find the payment record a gateway callback refers to.

        Args:
            gateway_reference: Identifier reported by the payment gateway
            for_update: Lock the row and refresh its columns

        Returns:
            The payment record if found, None otherwise
        """
        try:
            query = self.db.query(Payment).filter(Payment.gateway_reference == gateway_reference)
            if for_update:
                query = query.populate_existing().with_for_update()
            return cast(Optional[Payment], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting payment by reference: {str(e)}")
            raise RepositoryException(f"Failed to get payment: {str(e)}")

    def get_for_booking(self, booking_id: str) -> List[Payment]:
        try:
            return cast(
                List[Payment],
                self.db.query(Payment)
                .filter(Payment.booking_id == booking_id)
                .order_by(Payment.created_at)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting payments for booking: {str(e)}")
            raise RepositoryException(f"Failed to get payments: {str(e)}")
