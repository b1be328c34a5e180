"""Offline mutation queue.

While the client is disconnected every cart mutation is recorded here, by
value, so it can be replayed against the Product Source once connectivity
returns. Entries are strictly FIFO; there is no priority reordering.

Lifecycle of an entry::

    pending -> (in flight) -> done                 complete()
    pending -> (in flight) -> pending, retry + 1   defer()
    pending -> dropped                             drop()
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from cartsync.domain.exceptions import EntityNotFoundError, ValidationError
from cartsync.domain.model.product import ProductSnapshot


class MutationType(Enum):
    ADD = "ADD"
    REMOVE = "REMOVE"
    UPDATE_QUANTITY = "UPDATE_QUANTITY"
    CLEAR = "CLEAR"


# ---------------------------------------------------------------------------
# Mutations (tagged variants, validated at construction)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AddItem:
    product: ProductSnapshot
    type: MutationType = field(default=MutationType.ADD, init=False)

    def __post_init__(self) -> None:
        if not isinstance(self.product, ProductSnapshot):
            raise ValidationError("AddItem requires a ProductSnapshot")

    @property
    def product_id(self) -> str:
        return self.product.id

    def to_payload(self) -> dict:
        return self.product.to_record()


@dataclass(frozen=True)
class RemoveItem:
    product_id: str
    type: MutationType = field(default=MutationType.REMOVE, init=False)

    def __post_init__(self) -> None:
        _require_product_id(self.product_id)

    def to_payload(self) -> str:
        return self.product_id


@dataclass(frozen=True)
class UpdateQuantity:
    product_id: str
    quantity: int
    type: MutationType = field(default=MutationType.UPDATE_QUANTITY, init=False)

    def __post_init__(self) -> None:
        _require_product_id(self.product_id)
        if not isinstance(self.quantity, int) or isinstance(self.quantity, bool):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.quantity).__name__}"
            )

    def to_payload(self) -> dict:
        return {"product_id": self.product_id, "quantity": self.quantity}


@dataclass(frozen=True)
class ClearCart:
    type: MutationType = field(default=MutationType.CLEAR, init=False)

    @property
    def product_id(self) -> None:
        return None

    def to_payload(self) -> None:
        return None


CartMutation = AddItem | RemoveItem | UpdateQuantity | ClearCart


def _require_product_id(product_id: object) -> None:
    if not isinstance(product_id, str) or not product_id.strip():
        raise ValidationError("Mutation requires a non-empty product id")


def mutation_from_payload(mutation_type: str, payload: object) -> CartMutation:
    """Rebuild a mutation from its persisted ``(type, payload)`` form."""
    try:
        kind = MutationType(mutation_type)
    except ValueError as exc:
        raise ValidationError(f"Unknown mutation type: {mutation_type!r}") from exc

    if kind == MutationType.ADD:
        if not isinstance(payload, dict):
            raise ValidationError("ADD payload must be a product record")
        return AddItem(ProductSnapshot.from_record(payload))
    if kind == MutationType.REMOVE:
        return RemoveItem(payload)  # type: ignore[arg-type]
    if kind == MutationType.UPDATE_QUANTITY:
        if not isinstance(payload, dict):
            raise ValidationError("UPDATE_QUANTITY payload must be a mapping")
        return UpdateQuantity(payload.get("product_id"), payload.get("quantity"))  # type: ignore[arg-type]
    return ClearCart()


# ---------------------------------------------------------------------------
# Queue
# ---------------------------------------------------------------------------


@dataclass
class SyncQueueEntry:
    id: int
    mutation: CartMutation
    timestamp: datetime
    retry_count: int = 0
    not_before: datetime | None = None

    @property
    def type(self) -> MutationType:
        return self.mutation.type

    def is_due(self, now: datetime) -> bool:
        return self.not_before is None or self.not_before <= now


class SyncQueue:
    """FIFO of offline mutations, owned by the cart store."""

    def __init__(self, entries: list[SyncQueueEntry] | None = None) -> None:
        self._entries: list[SyncQueueEntry] = list(entries or [])
        self._last_id = max((e.id for e in self._entries), default=0)

    def enqueue(self, mutation: CartMutation, now: datetime | None = None) -> SyncQueueEntry:
        entry = SyncQueueEntry(
            id=self._next_id(),
            mutation=mutation,
            timestamp=now or datetime.now(timezone.utc),
        )
        self._entries.append(entry)
        return entry

    def pending(self, now: datetime | None = None) -> list[SyncQueueEntry]:
        """Entries eligible for replay right now, oldest first."""
        moment = now or datetime.now(timezone.utc)
        return [e for e in self._entries if e.is_due(moment)]

    def get(self, entry_id: int) -> SyncQueueEntry:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        raise EntityNotFoundError(f"Sync queue entry #{entry_id} not found")

    def complete(self, entry_id: int) -> SyncQueueEntry:
        entry = self.get(entry_id)
        self._entries.remove(entry)
        return entry

    def drop(self, entry_id: int) -> SyncQueueEntry:
        return self.complete(entry_id)

    def defer(self, entry_id: int, not_before: datetime) -> SyncQueueEntry:
        entry = self.get(entry_id)
        entry.retry_count += 1
        entry.not_before = not_before
        return entry

    @property
    def entries(self) -> tuple[SyncQueueEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def _next_id(self) -> int:
        # Millisecond clock, bumped on collision so ids stay strictly increasing.
        candidate = max(time.time_ns() // 1_000_000, self._last_id + 1)
        self._last_id = candidate
        return candidate
