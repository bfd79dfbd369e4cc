# backend/app/routes/payments.py
"""
Payment gateway webhook for Trim.

Signature verification happens in front of this route. Processing failures
are answered with 500 so the gateway retries on its own schedule.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from ..api.dependencies import get_payment_service
from ..core.exceptions import PaymentProcessingException
from ..schemas.payment import WebhookAck
from ..services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/webhook", response_model=WebhookAck)
def handle_payment_webhook(
    payload: Dict[str, Any] = Body(...),
    payment_service: PaymentService = Depends(get_payment_service),
) -> WebhookAck:
    try:
        result = payment_service.handle_gateway_event(payload)
    except PaymentProcessingException as exc:
        logger.warning(f"Payment webhook rejected: {exc.message}", extra={"details": exc.details})
        raise
    return WebhookAck(**result.to_dict())
