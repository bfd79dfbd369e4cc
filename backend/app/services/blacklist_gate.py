"""Blacklist check consulted when a customer creates a booking."""

import logging

from ..core.exceptions import CustomerBlacklistedException
from ..models.user import User

logger = logging.getLogger(__name__)


def ensure_customer_not_blacklisted(customer: User) -> None:
    """
    Reject blacklisted customers.

    Only new bookings are gated; existing bookings of a customer who is
    blacklisted later can still be rescheduled, cancelled or completed.

    Raises:
        CustomerBlacklistedException: if the customer carries the flag
    """
    if customer.blacklisted:
        logger.info(
            "Rejected booking for blacklisted customer",
            extra={"customer_id": customer.id},
        )
        raise CustomerBlacklistedException(str(customer.id), customer.blacklist_reason)
