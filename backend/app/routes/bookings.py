# backend/app/routes/bookings.py
"""
Booking routes for Trim.

Thin HTTP wrapper over BookingService and PaymentService. Domain exceptions
propagate to the app-level handler, which maps them to status codes.

Router Endpoints:
    POST / - Create a PENDING booking
    GET /customer/{customer_id} - A customer's bookings
    GET /barber/{barber_id} - A barber's bookings, optionally for one date
    GET /{booking_id} - Booking details
    PUT /{booking_id} - Move a booking to a new date/time
    POST /{booking_id}/cancel - Cancel a booking
    POST /{booking_id}/complete - Mark booking as completed
    POST /{booking_id}/no-show - Mark booking as no-show
    POST /{booking_id}/mark-paid - Record the balance collected in the shop
    POST /{booking_id}/payments - Register a gateway payment for a pending booking
"""

from datetime import date
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from ..api.dependencies import get_booking_service, get_payment_service
from ..models.booking import BookingStatus
from ..schemas.booking import BookingCancel, BookingCreate, BookingResponse, BookingUpdate
from ..schemas.payment import PaymentRecordCreate, PaymentResponse
from ..services.booking_service import CANCEL_REASON_CUSTOMER, BookingService
from ..services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    booking_data: BookingCreate,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Create a booking.

    The booking starts PENDING. Unless paid in the shop, it holds the slot
    until its deposit arrives or the hold expires.
    """
    booking = booking_service.create_booking(
        customer_id=booking_data.customer_id,
        barber_id=booking_data.barber_id,
        service_id=booking_data.service_id,
        booking_date=booking_data.booking_date,
        start_time=booking_data.start_time,
        payment_method=booking_data.payment_method,
        notes=booking_data.notes,
    )
    return BookingResponse.model_validate(booking)


@router.get("/customer/{customer_id}", response_model=List[BookingResponse])
def get_customer_bookings(
    customer_id: str,
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    bookings = booking_service.get_customer_bookings(customer_id, status=status_filter)
    return [BookingResponse.model_validate(booking) for booking in bookings]


@router.get("/barber/{barber_id}", response_model=List[BookingResponse])
def get_barber_bookings(
    barber_id: str,
    booking_date: Optional[date] = Query(None, alias="date", description="Only this date"),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    """A barber's bookings of every status, in calendar order."""
    bookings = booking_service.get_barber_bookings(barber_id, booking_date)
    return [BookingResponse.model_validate(booking) for booking in bookings]


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: str,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    return BookingResponse.model_validate(booking_service.get_booking(booking_id))


@router.put("/{booking_id}", response_model=BookingResponse)
def update_booking(
    booking_id: str,
    update_data: BookingUpdate,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Reschedule a booking; the new slot is checked for conflicts."""
    booking = booking_service.update_booking(
        booking_id, update_data.booking_date, update_data.start_time
    )
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: str,
    cancel_data: Optional[BookingCancel] = Body(None),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    reason = (cancel_data.reason if cancel_data else None) or CANCEL_REASON_CUSTOMER
    booking = booking_service.cancel_booking(booking_id, reason=reason)
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/complete", response_model=BookingResponse)
def complete_booking(
    booking_id: str,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    return BookingResponse.model_validate(booking_service.complete_booking(booking_id))


@router.post("/{booking_id}/no-show", response_model=BookingResponse)
def mark_no_show(
    booking_id: str,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    return BookingResponse.model_validate(booking_service.mark_no_show(booking_id))


@router.post("/{booking_id}/mark-paid", response_model=BookingResponse)
def mark_paid(
    booking_id: str,
    payment_service: PaymentService = Depends(get_payment_service),
) -> BookingResponse:
    return BookingResponse.model_validate(payment_service.mark_paid(booking_id))


@router.post(
    "/{booking_id}/payments",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
)
def register_payment(
    booking_id: str,
    payment_data: PaymentRecordCreate,
    payment_service: PaymentService = Depends(get_payment_service),
) -> PaymentResponse:
    """Register the gateway payment reference a later webhook will confirm."""
    payment = payment_service.create_payment_record(
        booking_id,
        payment_data.gateway_reference,
        amount=payment_data.amount,
        payment_method=payment_data.payment_method,
    )
    return PaymentResponse.model_validate(payment)
