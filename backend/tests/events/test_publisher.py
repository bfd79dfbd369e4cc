from datetime import date, datetime, time
from unittest.mock import Mock

from app.events import BookingCreated, BookingPaymentAfterExpiry, EventPublisher
from app.events.publisher import serialize_event


def make_created(**overrides):
    fields = dict(
        booking_id="01BOOKING",
        customer_id="01CUSTOMER",
        barber_id="01BARBER",
        booking_date=date(2030, 1, 8),
        start_time=time(10, 0),
        expires_at=datetime(2030, 1, 7, 9, 10),
    )
    fields.update(overrides)
    return BookingCreated(**fields)


def test_serialize_event_produces_json_safe_values():
    payload = serialize_event(make_created())

    assert payload == {
        "booking_id": "01BOOKING",
        "customer_id": "01CUSTOMER",
        "barber_id": "01BARBER",
        "booking_date": "2030-01-08",
        "start_time": "10:00:00",
        "expires_at": "2030-01-07T09:10:00",
    }


def test_serialize_event_keeps_missing_expiry():
    assert serialize_event(make_created(expires_at=None))["expires_at"] is None


def test_publish_uses_event_class_name():
    dispatcher = Mock()

    EventPublisher(dispatcher).publish(
        BookingPaymentAfterExpiry(booking_id="01B", gateway_reference="pi_1", amount="5.00")
    )

    dispatcher.dispatch.assert_called_once_with(
        "BookingPaymentAfterExpiry",
        {"booking_id": "01B", "gateway_reference": "pi_1", "amount": "5.00"},
    )


def test_dispatch_failure_is_logged_not_raised(caplog):
    dispatcher = Mock()
    dispatcher.dispatch.side_effect = [ConnectionError("broker unreachable"), None]

    EventPublisher(dispatcher).publish_all([make_created(), make_created(booking_id="01OTHER")])

    assert dispatcher.dispatch.call_count == 2
    assert "Failed to dispatch booking notification" in caplog.text
