from datetime import time

import pytest

from tests.factories import dispatched_types


@pytest.fixture
def held(book, payment_service):
    booking = book(time(10, 0))
    payment_service.create_payment_record(booking.id, "pi_webhook")
    return booking


def webhook(client, reference, event_type="payment_intent.succeeded"):
    return client.post(
        "/api/payments/webhook",
        json={"eventType": event_type, "gatewayPaymentReference": reference},
    )


def test_succeeded_payment_confirms_booking(client, held):
    response = webhook(client, "pi_webhook")

    assert response.status_code == 200
    assert response.json() == {
        "status": "confirmed",
        "booking_id": held.id,
        "booking_status": "CONFIRMED",
        "payment_status": "DEPOSIT_PAID",
    }


def test_redelivered_webhook_is_acknowledged_once(client, held, dispatcher):
    webhook(client, "pi_webhook")

    response = webhook(client, "pi_webhook")

    assert response.status_code == 200
    assert response.json()["status"] == "duplicate"
    assert dispatched_types(dispatcher).count("BookingConfirmed") == 1


def test_stripe_shaped_payload(client, held):
    response = client.post(
        "/api/payments/webhook",
        json={"type": "payment_intent.succeeded", "data": {"object": {"id": "pi_webhook"}}},
    )

    assert response.json()["booking_status"] == "CONFIRMED"


def test_unknown_reference_is_500(client, held, booking_service):
    response = webhook(client, "pi_missing")

    assert response.status_code == 500
    assert response.json()["detail"] == "Payment not found"
    assert booking_service.get_booking(held.id).status == "PENDING"


def test_other_event_types_are_ignored(client, held):
    response = webhook(client, "pi_webhook", event_type="charge.refunded")

    assert response.status_code == 200
    assert response.json()["status"] == "ignored"
