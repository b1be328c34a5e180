"""Application service: Show Cart use case (query)."""

from __future__ import annotations

from cartsync.application.cart_store import CartStore
from cartsync.application.dto import CartDTO, CartLineDTO, CartState
from cartsync.domain.service.pricing import line_price, resolve_unit_price


class ShowCartHandler:

    def __init__(self, store: CartStore) -> None:
        self._store = store

    def handle(self) -> CartDTO:
        return self._to_dto(self._store.get_snapshot())

    @staticmethod
    def _to_dto(state: CartState) -> CartDTO:
        deals = {deal.product_id: deal for deal in state.totals.applied_deals}
        return CartDTO(
            lines=[
                CartLineDTO(
                    product_id=item.product_id,
                    name=item.name,
                    quantity=item.quantity,
                    unit_price=str(resolve_unit_price(item)),
                    line_total=str(line_price(item)),
                    deal=(
                        f"{deals[item.product_id].description} (-{deals[item.product_id].savings})"
                        if item.product_id in deals
                        else None
                    ),
                )
                for item in state.items
            ],
            subtotal=str(state.totals.subtotal),
            savings=str(state.totals.total_savings),
            total=str(state.totals.total),
            item_count=state.totals.item_count,
            pending_sync_count=state.pending_sync_count,
        )
