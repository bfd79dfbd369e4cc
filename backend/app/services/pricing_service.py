"""Deposit and outstanding-balance calculations for bookings."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from app.core.config import settings
from app.core.exceptions import ValidationException

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, float, str]


@dataclass(frozen=True)
class DepositQuote:
    """Amounts stored on a booking at creation."""

    price: Decimal
    deposit_amount: Decimal
    outstanding_balance: Decimal

    @property
    def requires_online_payment(self) -> bool:
        return self.deposit_amount > ZERO


class PricingService:
    """Compute deposits from a service's price and deposit percentage."""

    def __init__(self, rounding_step: Optional[Decimal] = None) -> None:
        step = settings.deposit_rounding_step if rounding_step is None else rounding_step
        self.rounding_step = self._to_decimal(step, "rounding_step")
        if self.rounding_step < 0:
            raise ValidationException("Deposit rounding step cannot be negative")

    def calculate_deposit(self, price: Number, percentage: int) -> Decimal:
        """
        Deposit for ``price`` at ``percentage`` percent.

        The raw amount is rounded half-up to cents, then to the nearest
        multiple of the rounding step when one is configured, and never
        exceeds the price.

        Raises:
            ValidationException: if the price is negative or the percentage
                is outside 0..100
        """
        amount = self._to_decimal(price, "price")
        if amount < 0:
            raise ValidationException("Price cannot be negative")
        if percentage is None or not 0 <= int(percentage) <= 100:
            raise ValidationException(
                "Deposit percentage must be between 0 and 100",
                details={"deposit_percentage": percentage},
            )

        deposit = (amount * Decimal(int(percentage)) / Decimal(100)).quantize(
            CENT, rounding=ROUND_HALF_UP
        )
        if self.rounding_step > 0 and deposit > 0:
            steps = (deposit / self.rounding_step).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
            deposit = (steps * self.rounding_step).quantize(CENT, rounding=ROUND_HALF_UP)
        return min(deposit, amount.quantize(CENT, rounding=ROUND_HALF_UP))

    def calculate_outstanding_balance(self, price: Number, deposit_amount: Number) -> Decimal:
        outstanding = self._to_decimal(price, "price") - self._to_decimal(deposit_amount, "deposit")
        return max(outstanding, ZERO).quantize(CENT, rounding=ROUND_HALF_UP)

    def quote(self, price: Number, percentage: int, *, online: bool = True) -> DepositQuote:
        """Deposit and balance for a new booking; pay-in-shop takes no deposit."""
        amount = self._to_decimal(price, "price").quantize(CENT, rounding=ROUND_HALF_UP)
        deposit = self.calculate_deposit(amount, percentage) if online else ZERO
        return DepositQuote(
            price=amount,
            deposit_amount=deposit,
            outstanding_balance=self.calculate_outstanding_balance(amount, deposit),
        )

    @staticmethod
    def _to_decimal(value: Number, field: str) -> Decimal:
        if isinstance(value, Decimal):
            return value
        try:
            return Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationException(f"Invalid amount for {field}: {value!r}") from exc
