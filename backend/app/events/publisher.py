"""Event publisher - hands committed booking facts to notification delivery."""
from datetime import date, datetime, time
from decimal import Decimal
import logging
from typing import Any, Dict, Iterable, Optional, Protocol

from app.monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)


class Event(Protocol):
    """Protocol for event types."""

    def to_dict(self) -> Dict[str, Any]:
        ...


class NotificationDispatcher(Protocol):
    """Delivers an event to whoever sends emails and SMS."""

    def dispatch(self, event_type: str, payload: Dict[str, Any]) -> None:
        ...


def serialize_event(event: Event) -> Dict[str, Any]:
    """Convert an event to a JSON-safe payload."""
    payload = event.to_dict()
    for key, value in payload.items():
        if isinstance(value, (datetime, date, time)):
            payload[key] = value.isoformat()
        elif isinstance(value, Decimal):
            payload[key] = str(value)
    return payload


class CeleryNotificationDispatcher:
    """Queues the notification task on the Celery broker."""

    def dispatch(self, event_type: str, payload: Dict[str, Any]) -> None:
        from app.tasks.notification_tasks import send_booking_notification

        send_booking_notification.delay(event_type, payload)


class EventPublisher:
    """
    Publishes domain events once the transaction that produced them commits.

    Dispatch failures are logged and counted, never raised: the booking
    change has already been committed.
    """

    def __init__(self, dispatcher: Optional[NotificationDispatcher] = None):
        self.dispatcher: NotificationDispatcher = dispatcher or CeleryNotificationDispatcher()

    def publish(self, event: Event) -> None:
        event_type = type(event).__name__
        try:
            self.dispatcher.dispatch(event_type, serialize_event(event))
        except Exception:
            logger.exception(
                "Failed to dispatch booking notification",
                extra={"event_type": event_type},
            )
            prometheus_metrics.record_notification(event_type, "failed")
            return
        prometheus_metrics.record_notification(event_type, "queued")

    def publish_all(self, events: Iterable[Event]) -> None:
        for event in events:
            self.publish(event)
