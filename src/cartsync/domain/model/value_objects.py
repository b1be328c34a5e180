"""Money and the numeric helpers every price calculation goes through."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from functools import total_ordering

from cartsync.domain.exceptions import ValidationError

# Minor-unit precision of the store currency.
CENTS = Decimal("0.01")
DEFAULT_CURRENCY = "PKR"
# Largest figure a price field may carry; anything above is treated as malformed.
MAX_AMOUNT = Decimal("1e12")


def round_money(amount: Decimal) -> Decimal:
    """Round half-up to the currency's minor unit (2 decimal places)."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def coerce_amount(value: object) -> Decimal:
    """Best-effort conversion of a loosely typed number to Decimal.

    Anything that is missing, non-numeric, non-finite, negative or above
    ``MAX_AMOUNT`` becomes zero. Used at the pricing boundary where a
    malformed figure must never break the cart.
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not amount.is_finite() or amount < 0 or amount > MAX_AMOUNT:
        return Decimal("0")
    return amount


@total_ordering
@dataclass(frozen=True)
class Money:
    """A non-negative store-currency amount.

    Amounts are kept at whatever precision they were built with; callers
    round with ``round_money`` at the one point where rounding is defined.
    """

    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money amount must be a Decimal, got {type(self.amount).__name__}"
            )
        if self.amount < 0:
            raise ValidationError(f"Money amount cannot be negative, got {self.amount}")

    @staticmethod
    def zero() -> Money:
        return Money(Decimal("0.00"))

    @staticmethod
    def of(amount: str | int | Decimal) -> Money:
        try:
            return Money(Decimal(str(amount)))
        except InvalidOperation as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc

    def __add__(self, other: Money) -> Money:
        return Money(self.amount + self._same_currency(other).amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        remainder = self.amount - self._same_currency(other).amount
        if remainder < 0:
            raise ValidationError("Money subtraction would result in a negative amount")
        return Money(remainder, self.currency)

    def __mul__(self, quantity: int) -> Money:
        if not isinstance(quantity, int):
            raise TypeError(f"Can only multiply Money by int, got {type(quantity).__name__}")
        return Money(self.amount * quantity, self.currency)

    def __lt__(self, other: Money) -> bool:
        return self.amount < self._same_currency(other).amount

    def __str__(self) -> str:
        return f"Rs. {self.amount:,.2f}"

    def _same_currency(self, other: Money) -> Money:
        if self.currency != other.currency:
            raise ValidationError(f"Cannot combine {self.currency} with {other.currency}")
        return other
