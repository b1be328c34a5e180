"""Tests for the JSON product catalog."""

import asyncio
import json

import pytest

from cartsync.application.cart_store import CartStore
from cartsync.application.connectivity import ConnectivityMonitor
from cartsync.application.sync_manager import SyncManager
from cartsync.domain.exceptions import (
    ProductNotFoundError,
    SourceServerError,
    SourceUnavailableError,
)
from cartsync.domain.service.errors import ErrorClassifier, ErrorStats
from cartsync.domain.service.retry import RetryPolicy
from cartsync.infrastructure.persistence.json_product_source import JsonProductSource
from tests.fakes import InMemorySnapshotRepository, make_product


def test_creates_empty_catalog(tmp_path):
    path = tmp_path / "data" / "products.json"
    source = JsonProductSource(path)
    assert json.loads(path.read_text()) == []
    assert asyncio.run(source.list_all()) == []


def test_save_and_get(tmp_path):
    source = JsonProductSource(tmp_path / "products.json")
    source.save(make_product("1", name="Rice", price="150.50", stock=4))

    product = asyncio.run(source.get_by_id("1"))

    assert product.name == "Rice"
    assert str(product.price) == "150.50"
    assert product.stock == 4


def test_save_replaces_existing(tmp_path):
    source = JsonProductSource(tmp_path / "products.json")
    source.save(make_product("1", price="10"))
    source.save(make_product("1", price="12"))
    assert len(asyncio.run(source.list_all())) == 1


def test_save_leaves_no_temporary_files(tmp_path):
    path = tmp_path / "products.json"
    JsonProductSource(path).save(make_product("1"))
    assert list(tmp_path.iterdir()) == [path]


def test_edits_by_other_writers_are_visible(tmp_path):
    path = tmp_path / "products.json"
    source = JsonProductSource(path)
    JsonProductSource(path).save(make_product("9"))
    assert asyncio.run(source.get_by_id("9")).id == "9"


def test_missing_product(tmp_path):
    source = JsonProductSource(tmp_path / "products.json")
    with pytest.raises(ProductNotFoundError):
        asyncio.run(source.get_by_id("404"))


def test_unreadable_catalog_is_unavailable(tmp_path):
    source = JsonProductSource(tmp_path)
    with pytest.raises(SourceUnavailableError):
        asyncio.run(source.list_all())


@pytest.mark.parametrize("content", ["[{", '[{"name": "no id"}]', '{"id": 1}', "42"])
def test_malformed_catalog_is_a_server_error(tmp_path, content):
    path = tmp_path / "products.json"
    source = JsonProductSource(path)
    path.write_text(content, encoding="utf-8")
    with pytest.raises(SourceServerError):
        asyncio.run(source.get_by_id("1"))


def test_garbled_catalog_defers_queued_change(tmp_path):
    path = tmp_path / "products.json"
    source = JsonProductSource(path)
    source.save(make_product("1"))
    connectivity = ConnectivityMonitor(online=False)
    store = CartStore(InMemorySnapshotRepository(), connectivity)
    manager = SyncManager(
        store, source, RetryPolicy(classifier=ErrorClassifier(ErrorStats())), connectivity
    )
    store.add_item(make_product("1"))
    path.write_text("[{", encoding="utf-8")

    asyncio.run(connectivity.set_online(True))

    report = manager.last_report
    assert report.dropped == []
    assert len(report.deferred) == 1
    assert store.queue.entries[0].retry_count == 1
    assert store.cart.find("1") is not None
