"""Cart aggregate: the core of the domain.

The Cart owns its items and the totals derived from them. Every mutation
runs to completion and recomputes totals before returning, so no caller
can ever observe a total that disagrees with the item list.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from cartsync.domain.exceptions import ValidationError
from cartsync.domain.model.cart_item import CartItem
from cartsync.domain.model.notices import CartNotice, NoticeKind, ValidationResult
from cartsync.domain.model.product import ProductSnapshot
from cartsync.domain.model.value_objects import Money
from cartsync.domain.service.deals import AppliedDeal, compute_deal
from cartsync.domain.service.pricing import resolve_unit_price


@dataclass(frozen=True)
class CartTotals:
    subtotal: Money
    total_savings: Money
    total: Money
    item_count: int
    applied_deals: tuple[AppliedDeal, ...] = ()

    @staticmethod
    def empty() -> CartTotals:
        return CartTotals(Money.zero(), Money.zero(), Money.zero(), 0)


def compute_totals(items: Iterable[CartItem]) -> CartTotals:
    """total = sum(line price - line savings); item_count = sum(quantity)."""
    subtotal = Money.zero()
    savings = Money.zero()
    deals: list[AppliedDeal] = []
    count = 0

    for item in items:
        unit_price = resolve_unit_price(item)
        line = unit_price * item.quantity
        deal = compute_deal(item, unit_price)
        subtotal = subtotal + line
        if deal is not None:
            savings = savings + min(deal.savings, line)
            deals.append(deal)
        count += item.quantity

    return CartTotals(
        subtotal=subtotal,
        total_savings=savings,
        total=subtotal - savings,
        item_count=count,
        applied_deals=tuple(deals),
    )


class Cart:
    """Aggregate root for the shopping cart.

    Invariants:
    - product ids are unique within the cart
    - every item satisfies ``1 <= quantity <= stock``
    - ``get_totals()`` always matches the current items
    """

    def __init__(self, items: Iterable[CartItem] = ()) -> None:
        """Build a cart from existing lines, e.g. a restored snapshot.

        Lines that would break the invariants are repaired: the first line
        per product id wins, empty or out-of-stock lines are dropped and
        quantities are clamped to stock.
        """
        self._items: list[CartItem] = []
        for item in items:
            if item.quantity <= 0 or item.stock <= 0:
                continue
            if self.find(item.product_id) is not None:
                continue
            item.quantity = min(item.quantity, item.stock)
            self._items.append(item)
        self._totals = CartTotals.empty()
        self._recalculate()

    # --- Mutations --------------------------------------------------------------

    def add_item(self, product: ProductSnapshot) -> list[CartNotice]:
        """Add one unit of *product*, or insert it with quantity 1.

        Reaching the stock cap is not an error; it is reported as a notice
        and leaves the quantity unchanged.
        """
        if not product.is_active:
            raise ValidationError(f"{product.name} is no longer available")
        if product.stock <= 0:
            raise ValidationError(f"{product.name} is out of stock")

        notices: list[CartNotice] = []
        existing = self.find(product.id)

        if existing is None:
            self._items.append(CartItem.from_product(product))
        else:
            existing.refresh_from(product)
            if existing.quantity >= product.stock:
                existing.quantity = product.stock
                notices.append(
                    CartNotice(
                        kind=NoticeKind.STOCK_LIMIT_REACHED,
                        product_id=product.id,
                        message=(
                            f"Only {product.stock} {product.unit} of "
                            f"{product.name} available in stock"
                        ),
                        new_value=str(product.stock),
                    )
                )
            else:
                existing.quantity += 1

        self._recalculate()
        return notices

    def remove_item(self, product_id: str) -> None:
        """Remove an item. Removing an absent id is a no-op."""
        self._items = [item for item in self._items if item.product_id != product_id]
        self._recalculate()

    def update_quantity(self, product_id: str, quantity: int) -> list[CartNotice]:
        """Set an item's quantity, clamped to its known stock.

        ``quantity <= 0`` behaves exactly like ``remove_item``.
        """
        if not isinstance(quantity, int) or isinstance(quantity, bool):
            raise ValidationError(
                f"Quantity must be an integer, got {type(quantity).__name__}"
            )
        if quantity <= 0:
            self.remove_item(product_id)
            return []

        item = self.find(product_id)
        if item is None:
            return []

        notices: list[CartNotice] = []
        new_quantity = min(quantity, item.stock)
        if new_quantity < quantity:
            notices.append(self._quantity_notice(item, new_quantity))
        item.quantity = new_quantity
        item.touch()

        self._recalculate()
        return notices

    def clear(self) -> None:
        self._items = []
        self._recalculate()

    def apply_validation(self, results: Iterable[ValidationResult]) -> list[CartNotice]:
        """Write reconciliation results back into the cart.

        Every removal, price change and quantity clamp is returned as a
        notice. Totals are recomputed once, after all results.
        """
        notices: list[CartNotice] = []

        for result in results:
            item = self.find(result.product_id)
            if item is None:
                continue

            if result.unavailable or result.product is None:
                self._drop(item)
                notices.append(
                    CartNotice(
                        kind=NoticeKind.ITEM_REMOVED,
                        product_id=item.product_id,
                        message=(
                            f"{item.name} is no longer available and was "
                            f"removed from cart"
                        ),
                    )
                )
                continue

            item.refresh_from(result.product)

            if item.stock <= 0:
                self._drop(item)
                notices.append(
                    CartNotice(
                        kind=NoticeKind.ITEM_REMOVED,
                        product_id=item.product_id,
                        message=f"{item.name} is out of stock and was removed from cart",
                        old_value=str(result.old_stock),
                        new_value="0",
                    )
                )
                continue

            if item.quantity > item.stock:
                notices.append(self._quantity_notice(item, max(1, item.stock)))
                item.quantity = max(1, item.stock)

            if result.price_changed:
                notices.append(self._price_notice(item, result))

        self._recalculate()
        return notices

    # --- Queries ----------------------------------------------------------------

    @property
    def items(self) -> tuple[CartItem, ...]:
        return tuple(self._items)

    def find(self, product_id: str) -> CartItem | None:
        for item in self._items:
            if item.product_id == product_id:
                return item
        return None

    def get_totals(self) -> CartTotals:
        return self._totals

    @property
    def total(self) -> Money:
        return self._totals.total

    @property
    def item_count(self) -> int:
        return self._totals.item_count

    def __len__(self) -> int:
        return len(self._items)

    # --- Internal helpers -------------------------------------------------------

    def _drop(self, item: CartItem) -> None:
        self._items = [i for i in self._items if i.product_id != item.product_id]

    def _recalculate(self) -> None:
        self._totals = compute_totals(self._items)

    @staticmethod
    def _quantity_notice(item: CartItem, new_quantity: int) -> CartNotice:
        return CartNotice(
            kind=NoticeKind.QUANTITY_ADJUSTED,
            product_id=item.product_id,
            message=(
                f"{item.name} quantity adjusted to {new_quantity} "
                f"due to stock availability"
            ),
            old_value=str(item.quantity),
            new_value=str(new_quantity),
        )

    @staticmethod
    def _price_notice(item: CartItem, result: ValidationResult) -> CartNotice:
        old = result.old_price or Decimal("0")
        new = result.new_price or Decimal("0")
        direction = "increased" if new > old else "decreased"
        return CartNotice(
            kind=NoticeKind.PRICE_CHANGED,
            product_id=item.product_id,
            message=(
                f"{item.name} price {direction} from {Money(old)} to {Money(new)}"
            ),
            old_value=str(old),
            new_value=str(new),
        )
