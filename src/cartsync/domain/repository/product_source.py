"""Abstract Product Source: the authoritative catalog the cart reconciles with.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (JSON catalog, HTTP client,
in-memory) live elsewhere.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from cartsync.domain.model.product import ProductSnapshot


class ProductSource(ABC):

    @abstractmethod
    async def get_by_id(self, product_id: str) -> ProductSnapshot:
        """Return the current snapshot of a product.

        Raises ProductNotFoundError if the id is unknown, or a
        ProductSourceError subclass if the source cannot be reached.
        """

    @abstractmethod
    async def list_all(self) -> list[ProductSnapshot]:
        """Return every product in the catalog."""
