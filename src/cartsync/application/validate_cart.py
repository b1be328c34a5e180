"""Application service: Validate Cart use case.

Refreshes every cart line against the Product Source and writes the
differences back in a single step, so totals are recomputed once per
pass rather than once per item. Nothing is changed silently: each
removal, price change, quantity clamp and failed lookup comes back as a
CartNotice.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from cartsync.application.cart_store import CartStore
from cartsync.domain.model.cart_item import CartItem
from cartsync.domain.model.notices import CartNotice, NoticeKind, ValidationResult
from cartsync.domain.model.product import ProductSnapshot
from cartsync.domain.repository.product_source import ProductSource
from cartsync.domain.service.errors import ErrorKind
from cartsync.domain.service.pricing import resolve_product_price, resolve_unit_price
from cartsync.domain.service.retry import RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)


def build_validation_result(item: CartItem, product: ProductSnapshot) -> ValidationResult:
    """Compare a cart line with a fresh snapshot of its product."""
    if not product.is_active:
        return ValidationResult.gone(item.product_id, item.name)
    return ValidationResult(
        product_id=item.product_id,
        name=item.name,
        old_price=resolve_unit_price(item).amount,
        new_price=resolve_product_price(product).amount,
        old_stock=item.stock,
        new_stock=product.stock,
        product=product,
    )


class ValidateCartHandler:

    def __init__(
        self,
        store: CartStore,
        product_source: ProductSource,
        retry_policy: RetryPolicy,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._product_source = product_source
        self._retry_policy = retry_policy
        self._sleep = sleep

    async def handle(self) -> list[CartNotice]:
        """Validate every cart line; return the notices to show the user.

        Skipped entirely while offline. Failures never escape: a product
        the source no longer knows is removed, any other failure leaves the
        line untouched and is reported.
        """
        if self._store.is_offline:
            logger.info("Skipping cart validation while offline")
            return []

        results: list[ValidationResult] = []
        failures: list[CartNotice] = []

        for item in self._store.cart.items:
            try:
                product = await call_with_retry(
                    lambda pid=item.product_id: self._product_source.get_by_id(pid),
                    self._retry_policy,
                    context=f"validate product {item.product_id}",
                    sleep=self._sleep,
                )
            except Exception as exc:
                classifier = self._retry_policy.classifier
                if classifier.classify(exc) == ErrorKind.NOT_FOUND:
                    results.append(ValidationResult.gone(item.product_id, item.name))
                    continue
                failures.append(
                    CartNotice(
                        kind=NoticeKind.VALIDATION_FAILED,
                        product_id=item.product_id,
                        message=classifier.describe(exc, f"Could not verify {item.name}"),
                    )
                )
                continue

            results.append(build_validation_result(item, product))

        notices = self._store.reconcile(results)
        logger.info(
            "Validated %d cart items: %d changes, %d stock updates, %d failures",
            len(results) + len(failures),
            len(notices),
            sum(1 for r in results if r.stock_changed),
            len(failures),
        )
        return notices + failures


async def validate_periodically(
    handler: ValidateCartHandler,
    interval: float,
    stop: asyncio.Event,
    on_notices: Callable[[list[CartNotice]], None] | None = None,
) -> int:
    """Run validation every *interval* seconds until *stop* is set.

    Returns the number of completed passes.
    """
    passes = 0
    while not stop.is_set():
        notices = await handler.handle()
        passes += 1
        if notices and on_notices is not None:
            on_notices(notices)
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval)
        except asyncio.TimeoutError:
            continue
    return passes
