# backend/app/tasks/booking_tasks.py
"""
Periodic booking maintenance tasks.
"""

from typing import Any, Dict, Optional

from celery.utils.log import get_task_logger

from app.database import session_scope
from app.services.booking_service import BookingService
from app.services.hold_expiry_service import HoldExpiryService
from app.tasks.celery_app import celery_app

logger = get_task_logger(__name__)


@celery_app.task(name="app.tasks.booking_tasks.expire_stale_holds", max_retries=0)
def expire_stale_holds(batch_size: Optional[int] = None) -> Dict[str, Any]:
    """Cancel PENDING bookings whose payment hold has expired."""
    with session_scope() as session:
        summary = HoldExpiryService(session).expire_stale_holds(batch_size=batch_size)
    if summary["cancelled"]:
        logger.info("Released %s expired booking holds", summary["cancelled"])
    return summary


@celery_app.task(name="app.tasks.booking_tasks.send_daily_reminders", max_retries=0)
def send_daily_reminders() -> int:
    """Queue reminders for tomorrow's PENDING and CONFIRMED bookings."""
    with session_scope() as session:
        queued = BookingService(session).send_booking_reminders()
    logger.info("Queued %s booking reminders", queued)
    return queued
