"""JSON-catalog-backed implementation of ProductSource.

Reads the catalog file on every lookup so edits made by other processes
are visible immediately. Writes go through an atomic rename, and a
catalog that cannot be read or parsed is reported as a transient source
failure so callers retry instead of giving up on the product.
"""

from __future__ import annotations

import json
from pathlib import Path

from cartsync.domain.exceptions import (
    ProductNotFoundError,
    SourceServerError,
    SourceUnavailableError,
)
from cartsync.domain.model.product import ProductSnapshot
from cartsync.domain.repository.product_source import ProductSource
from cartsync.infrastructure.persistence.atomic_file import write_atomic


class JsonProductSource(ProductSource):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        if not self._file_path.exists():
            write_atomic(self._file_path, "[]")

    # --- ProductSource interface ----------------------------------------------

    async def get_by_id(self, product_id: str) -> ProductSnapshot:
        product = self._load().get(str(product_id))
        if product is None:
            raise ProductNotFoundError(str(product_id))
        return product

    async def list_all(self) -> list[ProductSnapshot]:
        return list(self._load().values())

    def save(self, product: ProductSnapshot) -> None:
        products = self._load()
        products[product.id] = product
        raw = [p.to_record() for p in products.values()]
        write_atomic(self._file_path, json.dumps(raw, indent=2) + "\n")

    # --- Serialization helpers ------------------------------------------------

    def _load(self) -> dict[str, ProductSnapshot]:
        try:
            text = self._file_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SourceUnavailableError(f"Catalog connection failed: {exc}") from exc
        try:
            return {
                str(item["id"]): ProductSnapshot.from_record(item)
                for item in json.loads(text)
            }
        except (ValueError, KeyError, TypeError) as exc:
            raise SourceServerError("Catalog returned a malformed response") from exc
