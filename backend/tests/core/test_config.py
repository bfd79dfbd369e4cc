from __future__ import annotations

from pydantic import ValidationError
import pytest

from app.core.config import Settings


def test_defaults():
    cfg = Settings(_env_file=None)

    assert cfg.booking_hold_minutes == 10
    assert cfg.pay_in_shop_methods == {"pay_in_shop"}
    assert cfg.payment_succeeded_event_types == {"payment_intent.succeeded"}


def test_comma_separated_sets_from_environment(monkeypatch):
    monkeypatch.setenv("PAY_IN_SHOP_METHODS", "pay_in_shop, cash")
    monkeypatch.setenv(
        "PAYMENT_SUCCEEDED_EVENT_TYPES", "payment_intent.succeeded,charge.succeeded,"
    )

    cfg = Settings(_env_file=None)

    assert cfg.pay_in_shop_methods == {"pay_in_shop", "cash"}
    assert cfg.payment_succeeded_event_types == {
        "payment_intent.succeeded",
        "charge.succeeded",
    }


def test_single_value_set_from_environment(monkeypatch):
    monkeypatch.setenv("PAY_IN_SHOP_METHODS", "cash")

    assert Settings(_env_file=None).pay_in_shop_methods == {"cash"}


def test_hold_window_from_environment(monkeypatch):
    monkeypatch.setenv("BOOKING_HOLD_MINUTES", "15")

    assert Settings(_env_file=None).booking_hold_minutes == 15


def test_unknown_timezone_is_rejected(monkeypatch):
    monkeypatch.setenv("SHOP_TIMEZONE", "Mars/Olympus")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)
