from decimal import Decimal

import pytest

from app.core.exceptions import ValidationException
from app.services.pricing_service import PricingService


@pytest.fixture
def pricing() -> PricingService:
    return PricingService(rounding_step=Decimal("0"))


def test_deposit_is_percentage_of_price(pricing):
    assert pricing.calculate_deposit(Decimal("25.00"), 20) == Decimal("5.00")


def test_deposit_rounds_half_up_to_cents(pricing):
    assert pricing.calculate_deposit(Decimal("10.05"), 50) == Decimal("5.03")


def test_deposit_rounding_step():
    pricing = PricingService(rounding_step=Decimal("5"))
    assert pricing.calculate_deposit(Decimal("36.00"), 20) == Decimal("5.00")
    assert pricing.calculate_deposit(Decimal("40.00"), 20) == Decimal("10.00")


def test_deposit_never_exceeds_price():
    pricing = PricingService(rounding_step=Decimal("5"))
    assert pricing.calculate_deposit(Decimal("3.00"), 100) == Decimal("3.00")


@pytest.mark.parametrize("percentage", [-1, 101])
def test_percentage_outside_range_is_rejected(pricing, percentage):
    with pytest.raises(ValidationException):
        pricing.calculate_deposit(Decimal("25.00"), percentage)


def test_quote_online(pricing):
    quote = pricing.quote(Decimal("25"), 20)
    assert quote.price == Decimal("25.00")
    assert quote.deposit_amount == Decimal("5.00")
    assert quote.outstanding_balance == Decimal("20.00")
    assert quote.requires_online_payment


def test_quote_pay_in_shop_takes_no_deposit(pricing):
    quote = pricing.quote(Decimal("25.00"), 20, online=False)
    assert quote.deposit_amount == Decimal("0")
    assert quote.outstanding_balance == Decimal("25.00")
    assert not quote.requires_online_payment


def test_zero_percentage_needs_no_online_payment(pricing):
    assert not pricing.quote(Decimal("25.00"), 0).requires_online_payment
