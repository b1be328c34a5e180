"""Integration tests for replaying the offline queue through SyncManager."""

import asyncio
from datetime import datetime, timedelta, timezone

from cartsync.application.cart_store import CartStore
from cartsync.application.connectivity import ConnectivityMonitor
from cartsync.application.sync_manager import SyncManager
from cartsync.domain.exceptions import SourceUnavailableError
from cartsync.domain.model.notices import NoticeKind
from cartsync.domain.model.sync_queue import MutationType
from cartsync.domain.service.errors import ErrorClassifier, ErrorStats
from cartsync.domain.service.retry import RetryPolicy
from tests.fakes import FakeProductSource, InMemorySnapshotRepository, make_product


class FakeClock:

    def __init__(self) -> None:
        self.now = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class GatedProductSource(FakeProductSource):
    """Blocks every lookup until ``gate`` is set."""

    def __init__(self, products) -> None:
        super().__init__(products)
        self.gate = asyncio.Event()

    async def get_by_id(self, product_id):
        await self.gate.wait()
        return await super().get_by_id(product_id)


def _setup(products, source=None):
    source = source or FakeProductSource(products)
    repo = InMemorySnapshotRepository()
    connectivity = ConnectivityMonitor(online=False)
    store = CartStore(repo, connectivity)
    clock = FakeClock()
    manager = SyncManager(
        store,
        source,
        RetryPolicy(classifier=ErrorClassifier(ErrorStats())),
        connectivity,
        clock=clock,
    )
    return manager, store, source, connectivity, clock, repo


class TestReconnect:

    def test_going_online_drains_queue(self):
        manager, store, _, connectivity, _, repo = _setup([make_product("1"), make_product("2")])
        store.add_item(make_product("1"))
        store.add_item(make_product("2"))
        store.update_quantity("1", 3)
        assert len(store.queue) == 3

        asyncio.run(connectivity.set_online(True))

        assert len(store.queue) == 0
        assert len(manager.last_report.synced) == 3
        assert repo.latest.sync_queue == ()
        assert repo.latest.offline_changes is False
        assert store.sync_in_progress is False
        assert store.last_sync_attempt is not None

    def test_queued_quantity_reclamped_to_current_stock(self):
        manager, store, source, connectivity, _, _ = _setup([make_product("1", stock=10)])
        store.add_item(make_product("1", stock=10))
        store.update_quantity("1", 8)
        source.put(make_product("1", stock=3))

        asyncio.run(connectivity.set_online(True))

        assert store.cart.find("1").quantity == 3
        kinds = [n.kind for n in manager.last_report.notices]
        assert kinds == [NoticeKind.QUANTITY_ADJUSTED]

    def test_remove_and_clear_need_no_lookup(self):
        manager, store, source, connectivity, _, _ = _setup([])
        store.add_item(make_product("1"))
        store.remove_item("1")
        store.clear()
        source.put(make_product("1"))

        asyncio.run(connectivity.set_online(True))

        assert len(store.queue) == 0
        assert sum(source.calls.values()) == 1

    def test_replay_is_fifo(self):
        _, store, source, connectivity, _, _ = _setup(
            [make_product("1"), make_product("2"), make_product("3")]
        )
        order = []
        source.on_call = order.append
        for pid in ("3", "1", "2"):
            store.add_item(make_product(pid))

        asyncio.run(connectivity.set_online(True))

        assert order == ["3", "1", "2"]


class TestFailures:

    def test_retryable_failure_deferred_while_rest_syncs(self):
        manager, store, source, connectivity, clock, _ = _setup([make_product("1"), make_product("2")])
        store.add_item(make_product("1"))
        store.add_item(make_product("2"))
        source.fail("1", SourceUnavailableError("network down"))

        asyncio.run(connectivity.set_online(True))

        report = manager.last_report
        assert len(report.synced) == 1
        assert len(report.deferred) == 1
        entry = store.queue.entries[0]
        assert entry.mutation.product_id == "1"
        assert entry.retry_count == 1
        assert clock.now + timedelta(seconds=1) <= entry.not_before <= clock.now + timedelta(seconds=1.1)

        # Not due yet: nothing to do.
        assert asyncio.run(manager.drain()).synced == []

        clock.advance(2)
        assert asyncio.run(manager.drain()).synced == [entry.id]
        assert len(store.queue) == 0

    def test_not_found_is_dropped_and_item_removed(self):
        manager, store, source, connectivity, _, _ = _setup([])
        store.add_item(make_product("1", name="Rice"))

        asyncio.run(connectivity.set_online(True))

        report = manager.last_report
        assert len(report.dropped) == 1
        assert [n.kind for n in report.notices] == [NoticeKind.SYNC_DROPPED, NoticeKind.ITEM_REMOVED]
        assert store.cart.find("1") is None
        assert len(store.queue) == 0

    def test_dropped_after_retries_exhausted(self):
        manager, store, source, connectivity, clock, _ = _setup([make_product("1")])
        store.add_item(make_product("1"))
        source.fail("1", *[SourceUnavailableError("network down")] * 4)
        asyncio.run(connectivity.set_online(True))

        for _ in range(3):
            clock.advance(60)
            report = asyncio.run(manager.drain())

        assert report.dropped != []
        assert report.notices[0].kind == NoticeKind.SYNC_DROPPED
        assert len(store.queue) == 0
        assert store.cart.find("1") is not None
        assert source.calls["1"] == 4

    def test_connectivity_lost_mid_drain_leaves_entry_untouched(self):
        manager, store, source, connectivity, _, _ = _setup([make_product("1"), make_product("2")])
        store.add_item(make_product("1"))
        store.add_item(make_product("2"))
        source.fail("1", SourceUnavailableError("network down"))
        source.on_call = lambda _pid: connectivity.go_offline()

        asyncio.run(connectivity.set_online(True))

        report = manager.last_report
        assert report.interrupted is True
        assert report.synced == [] and report.deferred == [] and report.dropped == []
        assert [e.retry_count for e in store.queue.entries] == [0, 0]
        assert source.calls["2"] == 0


class TestDrainGuards:

    def test_drain_is_noop_while_offline(self):
        manager, store, source, _, _, _ = _setup([make_product("1")])
        store.add_item(make_product("1"))
        report = asyncio.run(manager.drain())
        assert report.synced == []
        assert len(store.queue) == 1
        assert source.calls["1"] == 0

    def test_concurrent_drain_is_noop(self):
        source = GatedProductSource([make_product("1")])
        manager, store, _, connectivity, _, _ = _setup([], source=source)
        store.add_item(make_product("1"))

        async def scenario():
            reconnect = asyncio.create_task(connectivity.set_online(True))
            await asyncio.sleep(0)
            second = await manager.drain()
            source.gate.set()
            await reconnect
            return manager.last_report, second

        first, second = asyncio.run(scenario())
        assert first.synced != []
        assert second.synced == []
        assert len(store.queue) == 0
