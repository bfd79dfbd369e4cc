# backend/app/services/notification_service.py
"""
Notification Service for the Trim booking core.

Turns committed booking events into customer messages. Rendering uses
Jinja2 templates; delivery is delegated to a ``NotificationSender`` (email
and SMS providers live outside the booking core). Runs inside the Celery
notification task, never inside a booking transaction.
"""

import logging
from typing import Any, Dict, Optional, Protocol

from jinja2 import DictLoader, Environment, StrictUndefined, select_autoescape
from jinja2.exceptions import TemplateNotFound
from sqlalchemy.orm import Session

from ..core.config import settings
from ..models.booking import Booking
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

_TEMPLATES: Dict[str, str] = {
    "BookingCreated.txt": (
        "Hi {{ customer_name }}, your {{ service_name }} with {{ barber_name }} on "
        "{{ booking_date }} at {{ start_time }} is held"
        "{% if expires_at %} until {{ expires_at }} while we wait for your deposit{% endif %}."
    ),
    "BookingConfirmed.txt": (
        "Hi {{ customer_name }}, your {{ service_name }} with {{ barber_name }} on "
        "{{ booking_date }} at {{ start_time }} is confirmed. "
        "Balance due in the shop: {{ outstanding_balance }}."
    ),
    "BookingRescheduled.txt": (
        "Hi {{ customer_name }}, your booking moved to {{ booking_date }} at {{ start_time }}."
    ),
    "BookingReminder.txt": (
        "Hi {{ customer_name }}, a reminder that your {{ service_name }} with {{ barber_name }} "
        "is tomorrow, {{ booking_date }} at {{ start_time }}."
        "{% if outstanding_balance %} Balance due in the shop: {{ outstanding_balance }}.{% endif %}"
    ),
    "BookingCancelled.txt": (
        "Hi {{ customer_name }}, your booking on {{ booking_date }} at {{ start_time }} "
        "{% if reason == 'hold_expired' %}was released because the deposit did not arrive in time"
        "{% else %}has been cancelled{% endif %}."
    ),
    "BookingCompleted.txt": "Thanks for visiting {{ app_name }}, {{ customer_name }}!",
    "BookingNoShow.txt": (
        "Hi {{ customer_name }}, we missed you on {{ booking_date }} at {{ start_time }}."
    ),
    "BookingPaymentAfterExpiry.txt": (
        "Hi {{ customer_name }}, your payment arrived after the hold on "
        "{{ booking_date }} at {{ start_time }} expired. We will refund it."
    ),
}


class NotificationSender(Protocol):
    def send(self, recipient: str, subject: str, body: str) -> None:
        ...


class LogNotificationSender:
    """Writes messages to the log; replaced by a provider-backed sender in deployments."""

    def send(self, recipient: str, subject: str, body: str) -> None:
        logger.info(
            "Notification ready for delivery",
            extra={"recipient": recipient, "subject": subject, "body": body},
        )


class NotificationService(BaseService):
    """Renders and sends booking notifications."""

    def __init__(self, db: Session, sender: Optional[NotificationSender] = None):
        super().__init__(db)
        self.sender: NotificationSender = sender or LogNotificationSender()
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.templates = Environment(
            loader=DictLoader(_TEMPLATES),
            autoescape=select_autoescape(enabled_extensions=("html",)),
            undefined=StrictUndefined,
        )

    def render(self, event_type: str, context: Dict[str, Any]) -> str:
        template = self.templates.get_template(f"{event_type}.txt")
        return template.render(app_name=settings.app_name, **context)

    @BaseService.measure_operation("send_booking_notification")
    def send_booking_notification(self, event_type: str, payload: Dict[str, Any]) -> bool:
        """
        Render and send the message for one booking event.

        Returns:
            True if a message was sent, False if there was nothing to send
        """
        booking_id = payload.get("booking_id")
        booking = self.booking_repository.get_by_id(booking_id) if booking_id else None
        if booking is None:
            self.logger.warning(
                "Notification skipped; booking not found",
                extra={"event_type": event_type, "booking_id": booking_id},
            )
            return False

        recipient = booking.customer.email if booking.customer else None
        if not recipient:
            self.logger.info(
                "Notification skipped; customer has no email",
                extra={"event_type": event_type, "booking_id": booking_id},
            )
            return False

        try:
            body = self.render(event_type, self._context(booking, payload))
        except TemplateNotFound:
            self.logger.debug("No template for event", extra={"event_type": event_type})
            return False

        subject = f"{settings.app_name}: {event_type.replace('Booking', 'Booking ').strip()}"
        self.sender.send(recipient, subject, body)
        return True

    @staticmethod
    def _context(booking: Booking, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "customer_name": booking.customer.first_name if booking.customer else "there",
            "barber_name": booking.barber.display_name if booking.barber else "your barber",
            "service_name": booking.service.name if booking.service else "appointment",
            "booking_date": booking.booking_date.strftime("%A %d %B"),
            "start_time": booking.start_time.strftime("%H:%M"),
            "outstanding_balance": booking.outstanding_balance,
            "expires_at": booking.expires_at.strftime("%H:%M") if booking.expires_at else None,
            "reason": payload.get("reason"),
        }
