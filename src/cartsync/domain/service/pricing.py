"""Domain service: Pricing Resolver.

Resolves the effective unit price of a cart item through a strict
three-tier hierarchy:

  1. base price (the source's plain ``price`` when no base is given)
  2. variation override, which *replaces* the base price when positive
  3. active seasonal discount, percentage or fixed, applied on top and
     floored at zero

The resolved unit price is rounded half-up to 2 decimal places exactly
once; line values multiply that rounded figure, so they are exact.
Malformed numeric fields are coerced to zero instead of raising.
"""

from __future__ import annotations

from decimal import Decimal

from cartsync.domain.model.cart_item import CartItem
from cartsync.domain.model.product import DiscountType, ProductSnapshot
from cartsync.domain.model.value_objects import Money, coerce_amount, round_money

_HUNDRED = Decimal("100")


def resolve_unit_price(item: CartItem) -> Money:
    price = coerce_amount(item.base_price)
    if price == 0:
        price = coerce_amount(item.price)

    variation = coerce_amount(item.variation_price)
    if variation > 0:
        price = variation

    discount = coerce_amount(item.seasonal_discount)
    if discount > 0 and item.seasonal_discount_active:
        if item.seasonal_discount_type == DiscountType.PERCENTAGE:
            price = price * (_HUNDRED - min(discount, _HUNDRED)) / _HUNDRED
        else:
            price = price - discount
        price = max(price, Decimal("0"))

    return Money(round_money(price))


def resolve_product_price(product: ProductSnapshot) -> Money:
    """Effective unit price a fresh line for *product* would be charged."""
    return resolve_unit_price(CartItem.from_product(product))


def line_price(item: CartItem) -> Money:
    """Full line value before deals: unit price times quantity."""
    return resolve_unit_price(item) * max(int(item.quantity), 0)
