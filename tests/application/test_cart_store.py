"""Integration tests for the CartStore state container.

Uses in-memory fakes: no file I/O.
"""

import pytest

from cartsync.application.cart_store import CartStore
from cartsync.application.connectivity import ConnectivityMonitor
from cartsync.domain.exceptions import ValidationError
from cartsync.domain.model.cart import Cart
from cartsync.domain.model.sync_queue import MutationType, SyncQueue, UpdateQuantity
from cartsync.domain.model.value_objects import Money
from tests.fakes import InMemorySnapshotRepository, make_product


def _setup(online: bool = True) -> tuple[CartStore, InMemorySnapshotRepository, ConnectivityMonitor]:
    repo = InMemorySnapshotRepository()
    connectivity = ConnectivityMonitor(online=online)
    return CartStore(repo, connectivity), repo, connectivity


class TestOnlineMutations:

    def test_mutation_updates_totals_and_persists(self):
        store, repo, _ = _setup()
        store.add_item(make_product("1", price="25"))

        state = store.get_snapshot()
        assert state.totals.total == Money.of("25.00")
        assert state.totals.item_count == 1
        assert repo.latest.total == Money.of("25.00")
        assert repo.latest.item_count == 1

    def test_online_mutations_are_not_queued(self):
        store, repo, _ = _setup()
        store.add_item(make_product("1"))
        store.update_quantity("1", 3)
        assert len(store.queue) == 0
        assert repo.latest.sync_queue == ()
        assert not store.get_snapshot().offline_changes

    def test_snapshot_items_are_copies(self):
        store, _, _ = _setup()
        store.add_item(make_product("1"))
        state = store.get_snapshot()
        state.items[0].quantity = 99
        assert store.cart.find("1").quantity == 1


class TestOfflineMutations:

    def test_offline_add_enqueues_exactly_one_entry_and_persists(self):
        store, repo, _ = _setup(online=False)
        store.add_item(make_product("1"))

        assert len(store.queue) == 1
        assert store.queue.entries[0].type == MutationType.ADD
        assert len(repo.latest.sync_queue) == 1
        assert repo.latest.offline_changes is True
        assert len(repo.latest.items) == 1

    def test_each_mutation_kind_is_queued_in_order(self):
        store, _, _ = _setup(online=False)
        store.add_item(make_product("1"))
        store.update_quantity("1", 4)
        store.remove_item("1")
        store.clear()
        assert [e.type for e in store.queue.entries] == [
            MutationType.ADD,
            MutationType.UPDATE_QUANTITY,
            MutationType.REMOVE,
            MutationType.CLEAR,
        ]

    def test_queued_mutation_is_held_by_value(self):
        store, _, _ = _setup(online=False)
        store.add_item(make_product("1", stock=10))
        store.update_quantity("1", 4)
        store.update_quantity("1", 2)
        queued = store.queue.entries[1].mutation
        assert queued == UpdateQuantity("1", 4)

    def test_rejected_mutation_is_not_queued(self):
        store, repo, _ = _setup(online=False)
        with pytest.raises(ValidationError):
            store.add_item(make_product("1", stock=0))
        assert len(store.queue) == 0
        assert repo.saved == []


class TestSubscribers:

    def test_listener_sees_consistent_state(self):
        store, _, _ = _setup()
        seen = []
        store.subscribe(lambda state: seen.append((state.totals.item_count, len(state.items))))
        store.add_item(make_product("1"))
        store.add_item(make_product("2"))
        store.remove_item("1")
        assert seen == [(1, 1), (2, 2), (1, 1)]

    def test_unsubscribe(self):
        store, _, _ = _setup()
        seen = []
        unsubscribe = store.subscribe(seen.append)
        unsubscribe()
        store.add_item(make_product("1"))
        assert seen == []


class TestRestore:

    def test_restores_items_and_queue(self):
        store, repo, connectivity = _setup(online=False)
        store.add_item(make_product("1", price="40"))
        store.update_quantity("1", 2)

        restored = CartStore.restore(repo, connectivity)
        assert restored.get_snapshot().totals.total == Money.of("80.00")
        assert len(restored.queue) == 2

    def test_empty_when_nothing_saved(self):
        restored = CartStore.restore(InMemorySnapshotRepository(), ConnectivityMonitor())
        assert restored.cart.items == ()

    def test_explicit_cart_and_queue(self):
        cart = Cart()
        cart.add_item(make_product("1"))
        store = CartStore(InMemorySnapshotRepository(), ConnectivityMonitor(), cart=cart, queue=SyncQueue())
        assert store.get_snapshot().totals.item_count == 1
