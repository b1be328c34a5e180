"""Data Transfer Objects: plain containers that cross layer boundaries.

``CartState`` is what subscribers of the cart store receive. The
display DTOs carry preformatted strings for the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from cartsync.domain.model.cart import CartTotals
from cartsync.domain.model.cart_item import CartItem


@dataclass(frozen=True)
class CartState:
    """Immutable view of the cart at one point in time.

    ``items`` are copies; mutating them does not affect the store.
    """

    items: tuple[CartItem, ...]
    totals: CartTotals
    is_offline: bool
    pending_sync_count: int
    offline_changes: bool
    sync_in_progress: bool
    last_sync_attempt: datetime | None
    last_validated: datetime | None


@dataclass(frozen=True)
class CartLineDTO:
    """Output: a single cart line as displayed to the user."""

    product_id: str
    name: str
    quantity: int
    unit_price: str  # formatted, e.g. "Rs. 72.00"
    line_total: str
    deal: str | None


@dataclass(frozen=True)
class CartDTO:
    lines: list[CartLineDTO]
    subtotal: str
    savings: str
    total: str
    item_count: int
    pending_sync_count: int
