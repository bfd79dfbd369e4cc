# backend/app/tasks/notification_tasks.py
"""
Celery task delivering booking notifications.

Booking services publish events after their transaction commits; the
publisher enqueues this task so delivery never blocks or rolls back a
booking operation.
"""

from typing import Any, Dict

from celery.app.task import Task  # noqa: F401 - used for type hints
from celery.utils.log import get_task_logger

from app.database import session_scope
from app.monitoring.prometheus_metrics import prometheus_metrics
from app.services.notification_service import NotificationService
from app.tasks.celery_app import celery_app

logger = get_task_logger(__name__)


@celery_app.task(
    name="app.tasks.notification_tasks.send_booking_notification",
    bind=True,
    max_retries=5,
    default_retry_delay=30,
)
def send_booking_notification(
    self: "Task[Any, Any]", event_type: str, payload: Dict[str, Any]
) -> bool:
    """Render and send the message for one booking event."""
    try:
        with session_scope() as session:
            sent = NotificationService(session).send_booking_notification(event_type, payload)
    except Exception as exc:
        prometheus_metrics.record_notification(event_type, "retry")
        logger.exception(
            "Error delivering %s for booking %s", event_type, payload.get("booking_id")
        )
        raise self.retry(exc=exc)

    prometheus_metrics.record_notification(event_type, "sent" if sent else "skipped")
    return sent
