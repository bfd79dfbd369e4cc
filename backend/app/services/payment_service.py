# backend/app/services/payment_service.py
"""
Payment Service for the Trim booking core.

Registers the local payment record a gateway payment will refer to, and
applies gateway callbacks to bookings. Signature verification happens in
front of this service; by the time an event arrives here it is trusted.

Callbacks are idempotent: the payment record's own status is checked under
a row lock before anything changes, so a redelivered event is a no-op.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
import logging
from typing import Any, List, Mapping, Optional, cast

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.booking_state import BookingAction, assert_transition
from ..core.clock import Clock
from ..core.config import settings
from ..core.enums import PaymentRecordStatus
from ..core.exceptions import (
    ConflictException,
    NotFoundException,
    PaymentProcessingException,
    ValidationException,
)
from ..events import BookingPaymentAfterExpiry, EventPublisher
from ..events.publisher import Event
from ..models.booking import Booking, BookingStatus, PaymentStatus
from ..models.payment import Payment
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .booking_service import BookingService

logger = logging.getLogger(__name__)

OUTCOME_CONFIRMED = "confirmed"
OUTCOME_DUPLICATE = "duplicate"
OUTCOME_LATE = "late"
OUTCOME_RECORDED = "recorded"
OUTCOME_IGNORED = "ignored"


@dataclass(frozen=True)
class GatewayEvent:
    """Normalised payment gateway callback."""

    event_type: str
    reference: Optional[str]
    amount: Optional[Decimal] = None


@dataclass(frozen=True)
class PaymentConfirmation:
    """What a confirmation did to the booking."""

    outcome: str
    booking_id: Optional[str] = None
    booking_status: Optional[str] = None
    payment_status: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.outcome,
            "booking_id": self.booking_id,
            "booking_status": self.booking_status,
            "payment_status": self.payment_status,
        }


def parse_gateway_event(payload: Mapping[str, Any]) -> GatewayEvent:
    """
    Accept either the flat shape ``{eventType, gatewayPaymentReference, amount}``
    (amount in currency units) or the Stripe-style shape
    ``{type, data: {object: {id, amount}}}`` (amount in cents).

    Raises:
        PaymentProcessingException: if the payload has no event type
    """
    if not isinstance(payload, Mapping):
        raise PaymentProcessingException("Malformed webhook payload")

    if "data" in payload or "type" in payload:
        event_type = payload.get("type")
        data = payload.get("data") or {}
        obj = data.get("object") if isinstance(data, Mapping) else None
        obj = obj if isinstance(obj, Mapping) else {}
        reference = obj.get("id")
        raw_amount = obj.get("amount")
        amount = _to_amount(raw_amount, cents=True) if raw_amount is not None else None
    else:
        event_type = payload.get("eventType") or payload.get("event_type")
        reference = payload.get("gatewayPaymentReference") or payload.get("gateway_reference")
        raw_amount = payload.get("amount")
        amount = _to_amount(raw_amount, cents=False) if raw_amount is not None else None

    if not event_type or not isinstance(event_type, str):
        raise PaymentProcessingException("Malformed webhook payload: missing event type")
    if reference is not None and not isinstance(reference, str):
        raise PaymentProcessingException("Malformed webhook payload: invalid payment reference")
    return GatewayEvent(event_type=event_type, reference=reference, amount=amount)


def _to_amount(value: Any, *, cents: bool) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise PaymentProcessingException(
            "Malformed webhook payload: invalid amount", details={"amount": str(value)}
        ) from exc
    if cents:
        amount = amount / Decimal(100)
    return amount.quantize(Decimal("0.01"))


class PaymentService(BaseService):
    """Service layer for deposit payments."""

    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        event_publisher: Optional[EventPublisher] = None,
        booking_service: Optional[BookingService] = None,
    ):
        super().__init__(db, clock)
        self.event_publisher = event_publisher or EventPublisher()
        self.booking_service = booking_service or BookingService(
            db, clock=self.clock, event_publisher=self.event_publisher
        )
        self.repository = RepositoryFactory.create_payment_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)

    @BaseService.measure_operation("create_payment_record")
    def create_payment_record(
        self,
        booking_id: str,
        gateway_reference: str,
        amount: Optional[Decimal] = None,
        payment_method: Optional[str] = None,
    ) -> Payment:
        """
        Register the gateway payment a later webhook will confirm.

        ``amount`` defaults to the booking's deposit.

        Raises:
            NotFoundException: booking missing
            ValidationException: booking is not PENDING or the amount is not positive
            ConflictException: the gateway reference is already registered
        """
        if not gateway_reference:
            raise ValidationException("Gateway reference is required")
        try:
            with self.transaction():
                booking = self.booking_repository.get_for_update(booking_id)
                if not booking:
                    raise NotFoundException(
                        "Booking not found", details={"booking_id": booking_id}
                    )
                if booking.status != BookingStatus.PENDING.value:
                    raise ValidationException(
                        "Payments can only be registered for pending bookings",
                        details={"booking_id": booking_id, "status": booking.status},
                    )
                payment_amount = amount if amount is not None else booking.deposit_amount
                if payment_amount is None or Decimal(payment_amount) <= 0:
                    raise ValidationException(
                        "Payment amount must be positive", details={"booking_id": booking_id}
                    )
                payment = self.repository.create(
                    booking_id=booking_id,
                    amount=Decimal(payment_amount),
                    gateway_reference=gateway_reference,
                    payment_method=payment_method or booking.payment_method,
                    status=PaymentRecordStatus.PENDING.value,
                )
        except IntegrityError as exc:
            raise ConflictException(
                "Payment reference already registered",
                code="PAYMENT_REFERENCE_EXISTS",
                details={"gateway_reference": gateway_reference},
            ) from exc
        self.log_operation(
            "create_payment_record", booking_id=booking_id, gateway_reference=gateway_reference
        )
        return payment

    @BaseService.measure_operation("handle_gateway_event")
    def handle_gateway_event(self, payload: Mapping[str, Any]) -> PaymentConfirmation:
        """
        Apply a gateway callback.

        Succeeded event types confirm the payment; every other type is
        acknowledged and ignored.

        Raises:
            PaymentProcessingException: malformed payload or unknown payment
        """
        event = parse_gateway_event(payload)
        if event.event_type not in settings.payment_succeeded_event_types:
            self.logger.info(
                "Ignoring payment gateway event", extra={"event_type": event.event_type}
            )
            prometheus_metrics.record_payment_webhook(OUTCOME_IGNORED)
            return PaymentConfirmation(outcome=OUTCOME_IGNORED)
        if not event.reference:
            prometheus_metrics.record_payment_webhook("failed")
            raise PaymentProcessingException("Malformed webhook payload: missing payment reference")
        return self.confirm_payment(event.reference, event.amount)

    @BaseService.measure_operation("confirm_payment")
    def confirm_payment(
        self, gateway_reference: str, amount: Optional[Decimal] = None
    ) -> PaymentConfirmation:
        """
        Mark a payment as succeeded and confirm its booking.

        - Payment already SUCCEEDED: nothing changes (redelivery).
        - Booking PENDING: becomes CONFIRMED with DEPOSIT_PAID, or FULLY_PAID
          when the amount covers the whole price.
        - Booking CANCELLED (the hold expired first): the payment is recorded
          but the slot is not re-occupied; a refund follow-up event is emitted.
        - Booking in any other status: the payment is recorded only.

        Raises:
            PaymentProcessingException: no payment record has this reference;
                no state is changed
        """
        events: List[Event] = []
        with self.transaction():
            payment = self.repository.get_by_gateway_reference(gateway_reference, for_update=True)
            if payment is None:
                prometheus_metrics.record_payment_webhook("failed")
                self.logger.warning(
                    "Payment webhook for unknown reference",
                    extra={"gateway_reference": gateway_reference},
                )
                raise PaymentProcessingException(
                    "Payment not found", details={"gateway_reference": gateway_reference}
                )

            booking = self.booking_repository.get_for_update(payment.booking_id)
            if booking is None:
                prometheus_metrics.record_payment_webhook("failed")
                raise PaymentProcessingException(
                    "Invalid payment - no associated booking",
                    details={"gateway_reference": gateway_reference},
                )

            if payment.status == PaymentRecordStatus.SUCCEEDED.value:
                self.logger.info(
                    "Duplicate payment confirmation ignored",
                    extra={"gateway_reference": gateway_reference, "booking_id": booking.id},
                )
                prometheus_metrics.record_payment_webhook(OUTCOME_DUPLICATE)
                return self._result(OUTCOME_DUPLICATE, booking)

            paid_amount = amount if amount is not None else payment.amount
            if amount is not None and Decimal(amount) != Decimal(payment.amount):
                self.logger.warning(
                    "Gateway amount differs from the registered payment",
                    extra={
                        "gateway_reference": gateway_reference,
                        "registered": str(payment.amount),
                        "reported": str(amount),
                    },
                )

            payment.status = PaymentRecordStatus.SUCCEEDED.value
            payment.paid_at = self.clock.now()

            if booking.status == BookingStatus.PENDING.value:
                fully_paid = Decimal(paid_amount) >= Decimal(booking.service_price)
                events.append(self.booking_service.apply_confirmation(booking, fully_paid=fully_paid))
                outcome = OUTCOME_CONFIRMED
            elif booking.status == BookingStatus.CANCELLED.value:
                events.append(
                    BookingPaymentAfterExpiry(
                        booking_id=booking.id,
                        gateway_reference=gateway_reference,
                        amount=str(paid_amount),
                    )
                )
                self.logger.warning(
                    "Payment arrived for a cancelled booking; refund required",
                    extra={"booking_id": booking.id, "gateway_reference": gateway_reference},
                )
                outcome = OUTCOME_LATE
            else:
                outcome = OUTCOME_RECORDED
            self.repository.flush()

        prometheus_metrics.record_payment_webhook(outcome)
        self.event_publisher.publish_all(events)
        self.log_operation(
            "confirm_payment",
            gateway_reference=gateway_reference,
            booking_id=booking.id,
            outcome=outcome,
        )
        return self._result(outcome, booking)

    @BaseService.measure_operation("mark_paid")
    def mark_paid(self, booking_id: str) -> Booking:
        """
        Record that the shop collected the outstanding balance.

        The booking status does not change. A pay-in-shop record is settled;
        otherwise a new succeeded record is written for the collected amount.

        Raises:
            NotFoundException: booking missing
            InvalidTransitionException: booking is CANCELLED
            ValidationException: booking is already fully paid
        """
        self.log_operation("mark_paid", booking_id=booking_id)
        with self.transaction():
            booking = self.booking_repository.get_for_update(booking_id)
            if not booking:
                raise NotFoundException("Booking not found", details={"booking_id": booking_id})
            assert_transition(booking.status, BookingAction.MARK_PAID)
            if booking.payment_status == PaymentStatus.FULLY_PAID.value:
                raise ValidationException(
                    "Booking is already fully paid", details={"booking_id": booking_id}
                )

            now = self.clock.now()
            collected = Decimal(booking.outstanding_balance or 0)
            in_shop = [
                p
                for p in self.repository.get_for_booking(booking_id)
                if p.status == PaymentRecordStatus.PAY_IN_SHOP.value
            ]
            if in_shop:
                in_shop[0].status = PaymentRecordStatus.SUCCEEDED.value
                in_shop[0].paid_at = now
            elif collected > 0:
                self.repository.create(
                    booking_id=booking_id,
                    amount=collected,
                    payment_method=booking.payment_method,
                    status=PaymentRecordStatus.SUCCEEDED.value,
                    paid_at=now,
                )
            booking.mark_paid()
            self.repository.flush()
        return booking

    @staticmethod
    def _result(outcome: str, booking: Booking) -> PaymentConfirmation:
        return PaymentConfirmation(
            outcome=outcome,
            booking_id=cast(str, booking.id),
            booking_status=cast(str, booking.status),
            payment_status=cast(str, booking.payment_status),
        )
