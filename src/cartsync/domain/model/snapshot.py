"""Persisted cart snapshot.

The snapshot is the only state shared between the cart store (written on
every mutation) and the sync manager (written on every dequeue). It is
always written whole; there are no partial patches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from cartsync.domain.model.cart_item import CartItem
from cartsync.domain.model.sync_queue import SyncQueueEntry
from cartsync.domain.model.value_objects import Money


@dataclass(frozen=True)
class CartSnapshot:
    items: tuple[CartItem, ...]
    total: Money
    item_count: int
    sync_queue: tuple[SyncQueueEntry, ...] = ()
    offline_changes: bool = False
    last_sync_attempt: datetime | None = None
    saved_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
