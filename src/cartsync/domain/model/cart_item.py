"""CartItem entity: one product line inside the cart.

Identity is the product id. The item keeps its own copy of every pricing
field so totals can be computed without reaching the Product Source.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal

from cartsync.domain.model.product import DealType, DiscountType, ProductSnapshot


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CartItem:
    """A product line in the cart.

    Invariant (enforced by the Cart aggregate): ``1 <= quantity <= stock``.
    """

    product_id: str
    name: str
    quantity: int
    price: Decimal
    stock: int
    base_price: Decimal | None = None
    variation_price: Decimal | None = None
    seasonal_discount: Decimal = Decimal("0")
    seasonal_discount_type: DiscountType = DiscountType.FIXED
    seasonal_discount_active: bool = False
    deal_type: DealType | None = None
    deal_value: str | None = None
    unit: str = "piece"
    added_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    @staticmethod
    def from_product(product: ProductSnapshot, quantity: int = 1) -> CartItem:
        now = _now()
        return CartItem(
            product_id=product.id,
            name=product.name,
            quantity=quantity,
            price=product.price,
            stock=product.stock,
            base_price=product.base_price or product.price,
            variation_price=product.variation_price,
            seasonal_discount=product.seasonal_discount,
            seasonal_discount_type=product.seasonal_discount_type,
            seasonal_discount_active=product.seasonal_discount_active,
            deal_type=product.deal_type,
            deal_value=product.deal_value,
            unit=product.unit,
            added_at=now,
            updated_at=now,
        )

    def refresh_from(self, product: ProductSnapshot) -> None:
        """Copy the pricing hierarchy and stock from a fresher snapshot.

        Quantity is left alone; clamping against the new stock is the
        aggregate's decision.
        """
        self.name = product.name
        self.price = product.price
        self.stock = product.stock
        self.base_price = product.base_price or product.price
        self.variation_price = product.variation_price
        self.seasonal_discount = product.seasonal_discount
        self.seasonal_discount_type = product.seasonal_discount_type
        self.seasonal_discount_active = product.seasonal_discount_active
        self.deal_type = product.deal_type
        self.deal_value = product.deal_value
        self.unit = product.unit
        self.touch()

    def touch(self) -> None:
        self.updated_at = _now()
