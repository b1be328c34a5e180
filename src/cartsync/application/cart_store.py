"""Application service: Cart Store.

A plain state container around the Cart aggregate. Callers mutate the
cart through it, read immutable ``CartState`` snapshots from it and
subscribe to changes. It is the single place where a mutation becomes
visible: the aggregate is updated, the mutation is queued if the client
is offline, the full snapshot is persisted and then listeners are told.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timezone

from cartsync.application.connectivity import ConnectivityMonitor
from cartsync.application.dto import CartState
from cartsync.domain.model.cart import Cart
from cartsync.domain.model.notices import CartNotice, ValidationResult
from cartsync.domain.model.product import ProductSnapshot
from cartsync.domain.model.snapshot import CartSnapshot
from cartsync.domain.model.sync_queue import (
    AddItem,
    CartMutation,
    ClearCart,
    RemoveItem,
    SyncQueue,
    SyncQueueEntry,
    UpdateQuantity,
)
from cartsync.domain.repository.snapshot_repository import CartSnapshotRepository

logger = logging.getLogger(__name__)

Listener = Callable[[CartState], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CartStore:

    def __init__(
        self,
        snapshot_repo: CartSnapshotRepository,
        connectivity: ConnectivityMonitor,
        cart: Cart | None = None,
        queue: SyncQueue | None = None,
        last_sync_attempt: datetime | None = None,
    ) -> None:
        self._snapshot_repo = snapshot_repo
        self._connectivity = connectivity
        self._cart = cart if cart is not None else Cart()
        self._queue = queue if queue is not None else SyncQueue()
        self._listeners: list[Listener] = []
        self.last_sync_attempt = last_sync_attempt
        self.last_validated: datetime | None = None
        self.sync_in_progress = False

    @staticmethod
    def restore(
        snapshot_repo: CartSnapshotRepository,
        connectivity: ConnectivityMonitor,
    ) -> CartStore:
        """Rebuild the store from the persisted snapshot, if it is usable.

        Persisted totals are not trusted; they are recomputed from the items.
        """
        snapshot = snapshot_repo.load()
        if snapshot is None:
            return CartStore(snapshot_repo, connectivity)

        logger.info(
            "Restored cart with %d items and %d queued changes",
            len(snapshot.items), len(snapshot.sync_queue),
        )
        return CartStore(
            snapshot_repo,
            connectivity,
            cart=Cart(snapshot.items),
            queue=SyncQueue(list(snapshot.sync_queue)),
            last_sync_attempt=snapshot.last_sync_attempt,
        )

    # --- Mutations --------------------------------------------------------------

    def add_item(self, product: ProductSnapshot) -> list[CartNotice]:
        return self.dispatch(AddItem(product))

    def remove_item(self, product_id: str) -> list[CartNotice]:
        return self.dispatch(RemoveItem(product_id))

    def update_quantity(self, product_id: str, quantity: int) -> list[CartNotice]:
        return self.dispatch(UpdateQuantity(product_id, quantity))

    def clear(self) -> list[CartNotice]:
        return self.dispatch(ClearCart())

    def dispatch(self, mutation: CartMutation) -> list[CartNotice]:
        """Apply one mutation, queue it when offline, persist and notify."""
        notices = self._apply(mutation)

        if self.is_offline:
            entry = self._queue.enqueue(mutation)
            logger.debug("Queued offline %s as entry #%d", mutation.type.value, entry.id)

        self._commit()
        return notices

    # --- Reconciliation and sync hooks ------------------------------------------

    def reconcile(self, results: Iterable[ValidationResult]) -> list[CartNotice]:
        """Apply Product Source truth to the cart in one step."""
        notices = self._cart.apply_validation(results)
        self.last_validated = _utcnow()
        self._commit()
        return notices

    def complete_entry(self, entry_id: int) -> SyncQueueEntry:
        entry = self._queue.complete(entry_id)
        self._commit()
        return entry

    def drop_entry(self, entry_id: int) -> SyncQueueEntry:
        entry = self._queue.drop(entry_id)
        self._commit()
        return entry

    def defer_entry(self, entry_id: int, not_before: datetime) -> SyncQueueEntry:
        entry = self._queue.defer(entry_id, not_before)
        self._commit()
        return entry

    def begin_sync(self) -> None:
        self.sync_in_progress = True
        self.last_sync_attempt = _utcnow()
        self._notify()

    def end_sync(self) -> None:
        self.sync_in_progress = False
        self._commit()

    # --- Queries ----------------------------------------------------------------

    @property
    def cart(self) -> Cart:
        return self._cart

    @property
    def queue(self) -> SyncQueue:
        return self._queue

    @property
    def is_offline(self) -> bool:
        return not self._connectivity.is_online

    @property
    def offline_changes(self) -> bool:
        return len(self._queue) > 0

    def get_snapshot(self) -> CartState:
        return CartState(
            items=tuple(dataclasses.replace(item) for item in self._cart.items),
            totals=self._cart.get_totals(),
            is_offline=self.is_offline,
            pending_sync_count=len(self._queue),
            offline_changes=self.offline_changes,
            sync_in_progress=self.sync_in_progress,
            last_sync_attempt=self.last_sync_attempt,
            last_validated=self.last_validated,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Internal helpers -------------------------------------------------------

    def _apply(self, mutation: CartMutation) -> list[CartNotice]:
        if isinstance(mutation, AddItem):
            return self._cart.add_item(mutation.product)
        if isinstance(mutation, RemoveItem):
            self._cart.remove_item(mutation.product_id)
            return []
        if isinstance(mutation, UpdateQuantity):
            return self._cart.update_quantity(mutation.product_id, mutation.quantity)
        self._cart.clear()
        return []

    def _commit(self) -> None:
        self._persist()
        self._notify()

    def _persist(self) -> None:
        totals = self._cart.get_totals()
        self._snapshot_repo.save(
            CartSnapshot(
                items=tuple(dataclasses.replace(item) for item in self._cart.items),
                total=totals.total,
                item_count=totals.item_count,
                sync_queue=tuple(dataclasses.replace(e) for e in self._queue.entries),
                offline_changes=self.offline_changes,
                last_sync_attempt=self.last_sync_attempt,
            )
        )

    def _notify(self) -> None:
        state = self.get_snapshot()
        for listener in list(self._listeners):
            listener(state)
