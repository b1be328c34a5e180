"""In-memory fakes for testing.

These implement the same abstract interfaces as the JSON-backed
implementations but keep everything in memory. No file I/O, no network.
"""

from __future__ import annotations

from collections import Counter

from cartsync.domain.exceptions import ProductNotFoundError
from cartsync.domain.model.product import ProductSnapshot
from cartsync.domain.model.snapshot import CartSnapshot
from cartsync.domain.repository.product_source import ProductSource
from cartsync.domain.repository.snapshot_repository import CartSnapshotRepository


def make_product(
    product_id: str = "1",
    name: str = "Basmati Rice",
    price: str = "100",
    stock: int = 10,
    **extra: object,
) -> ProductSnapshot:
    """Helper to build a valid product snapshot."""
    return ProductSnapshot.from_record(
        {"id": product_id, "name": name, "price": price, "stock": stock, **extra}
    )


class FakeProductSource(ProductSource):
    """Product Source stub.

    ``failures`` maps a product id to exceptions raised, in order, before
    lookups of that id start succeeding.
    """

    def __init__(
        self,
        products: list[ProductSnapshot] | None = None,
        failures: dict[str, list[Exception]] | None = None,
    ) -> None:
        self._store: dict[str, ProductSnapshot] = {p.id: p for p in products or []}
        self._failures = {k: list(v) for k, v in (failures or {}).items()}
        self.calls: Counter = Counter()
        self.on_call = None

    async def get_by_id(self, product_id: str) -> ProductSnapshot:
        self.calls[product_id] += 1
        if self.on_call is not None:
            self.on_call(product_id)
        pending = self._failures.get(product_id)
        if pending:
            raise pending.pop(0)
        product = self._store.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    async def list_all(self) -> list[ProductSnapshot]:
        return list(self._store.values())

    def put(self, product: ProductSnapshot) -> None:
        self._store[product.id] = product

    def delete(self, product_id: str) -> None:
        self._store.pop(product_id, None)

    def fail(self, product_id: str, *errors: Exception) -> None:
        self._failures.setdefault(product_id, []).extend(errors)


class InMemorySnapshotRepository(CartSnapshotRepository):

    def __init__(self, snapshot: CartSnapshot | None = None) -> None:
        self.saved: list[CartSnapshot] = [snapshot] if snapshot else []

    def load(self) -> CartSnapshot | None:
        return self.saved[-1] if self.saved else None

    def save(self, snapshot: CartSnapshot) -> None:
        self.saved.append(snapshot)

    def clear(self) -> None:
        self.saved.clear()

    @property
    def latest(self) -> CartSnapshot | None:
        return self.load()


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
