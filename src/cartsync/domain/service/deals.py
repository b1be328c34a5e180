"""Domain service: Deal Engine.

Computes promotional savings for a single cart line. Deals compound with
the Pricing Resolver's unit price, never with each other: an item carries
at most one deal descriptor.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from cartsync.domain.model.cart_item import CartItem
from cartsync.domain.model.product import DealType
from cartsync.domain.model.value_objects import Money

_BUNDLE_PATTERN = re.compile(r"^\s*(\d+)\s*for\s*(\d+)\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class AppliedDeal:
    product_id: str
    product_name: str
    deal_type: DealType
    description: str
    free_items: int
    savings: Money
    applied_quantity: int
    bundle_sets: int | None = None


def parse_bundle(deal_value: str | None) -> tuple[int, int] | None:
    """Parse ``"3 for 2"`` into ``(3, 2)``; None unless buy > pay > 0."""
    if not deal_value:
        return None
    match = _BUNDLE_PATTERN.match(str(deal_value))
    if match is None:
        return None
    buy, pay = int(match.group(1)), int(match.group(2))
    if not buy > pay > 0:
        return None
    return buy, pay


def bogo_free_items(quantity: int) -> int:
    if quantity < 2:
        return 0
    return quantity // 2


def bundle_free_items(quantity: int, buy: int, pay: int) -> tuple[int, int]:
    """Return ``(bundle_sets, free_items)`` for an "X for Y" deal."""
    if quantity < buy:
        return 0, 0
    sets = quantity // buy
    return sets, sets * (buy - pay)


def compute_deal(item: CartItem, unit_price: Money) -> AppliedDeal | None:
    """Savings for one line, or None when no deal applies.

    Savings never exceed the line value because free units are always a
    subset of the purchased quantity.
    """
    quantity = item.quantity if isinstance(item.quantity, int) else 0

    if item.deal_type == DealType.BOGO:
        free = bogo_free_items(quantity)
        if free == 0:
            return None
        return AppliedDeal(
            product_id=item.product_id,
            product_name=item.name,
            deal_type=DealType.BOGO,
            description="Buy 1 Get 1 Free",
            free_items=free,
            savings=unit_price * free,
            applied_quantity=quantity,
        )

    if item.deal_type == DealType.BUNDLE:
        terms = parse_bundle(item.deal_value)
        if terms is None:
            return None
        sets, free = bundle_free_items(quantity, *terms)
        if free == 0:
            return None
        return AppliedDeal(
            product_id=item.product_id,
            product_name=item.name,
            deal_type=DealType.BUNDLE,
            description=f"{item.deal_value} Deal",
            free_items=free,
            savings=unit_price * free,
            applied_quantity=quantity,
            bundle_sets=sets,
        )

    return None
