"""User-facing notices and transient validation results.

Anything that changes the value of the cart behind the user's back, or
refuses a request, is reported as a CartNotice instead of being applied
silently.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from cartsync.domain.model.product import ProductSnapshot


class NoticeKind(Enum):
    ITEM_REMOVED = "ITEM_REMOVED"
    PRICE_CHANGED = "PRICE_CHANGED"
    QUANTITY_ADJUSTED = "QUANTITY_ADJUSTED"
    STOCK_LIMIT_REACHED = "STOCK_LIMIT_REACHED"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    SYNC_DROPPED = "SYNC_DROPPED"


@dataclass(frozen=True)
class CartNotice:
    kind: NoticeKind
    product_id: str | None
    message: str
    old_value: str | None = None
    new_value: str | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of checking one cart item against the Product Source.

    Prices are effective unit prices, so ``price_changed`` reflects what
    the customer will actually pay.
    """

    product_id: str
    name: str
    unavailable: bool = False
    old_price: Decimal | None = None
    new_price: Decimal | None = None
    old_stock: int | None = None
    new_stock: int | None = None
    product: ProductSnapshot | None = None

    @property
    def price_changed(self) -> bool:
        return not self.unavailable and self.old_price != self.new_price

    @property
    def stock_changed(self) -> bool:
        return not self.unavailable and self.old_stock != self.new_stock

    @staticmethod
    def gone(product_id: str, name: str) -> ValidationResult:
        return ValidationResult(product_id=product_id, name=name, unavailable=True)
