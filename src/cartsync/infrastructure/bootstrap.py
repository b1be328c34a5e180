"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from cartsync.application.cart_store import CartStore
from cartsync.application.connectivity import ConnectivityMonitor
from cartsync.application.sync_manager import SyncManager
from cartsync.application.validate_cart import ValidateCartHandler
from cartsync.domain.service.errors import ErrorClassifier, ErrorStats
from cartsync.domain.service.retry import RetryPolicy
from cartsync.infrastructure.config import Settings, load_settings
from cartsync.infrastructure.persistence.json_product_source import JsonProductSource
from cartsync.infrastructure.persistence.json_snapshot_repository import (
    JsonCartSnapshotRepository,
)


@dataclass
class Engine:
    """Everything a caller needs to drive one cart."""

    store: CartStore
    connectivity: ConnectivityMonitor
    product_source: JsonProductSource
    validator: ValidateCartHandler
    sync_manager: SyncManager
    error_stats: ErrorStats


def product_source(settings: Settings | None = None) -> JsonProductSource:
    settings = settings or load_settings()
    return JsonProductSource(settings.catalog_path)


def snapshot_repository(settings: Settings | None = None) -> JsonCartSnapshotRepository:
    settings = settings or load_settings()
    return JsonCartSnapshotRepository(
        settings.snapshot_path,
        max_age=timedelta(days=settings.snapshot_max_age_days),
    )


def retry_policy(settings: Settings, stats: ErrorStats) -> RetryPolicy:
    return RetryPolicy(
        max_retries=settings.max_retries,
        base_delay=settings.retry_base_delay,
        max_delay=settings.retry_max_delay,
        classifier=ErrorClassifier(stats),
    )


def build_engine(online: bool = True, settings: Settings | None = None) -> Engine:
    settings = settings or load_settings()
    stats = ErrorStats()
    policy = retry_policy(settings, stats)
    connectivity = ConnectivityMonitor(online=online)
    source = product_source(settings)
    store = CartStore.restore(snapshot_repository(settings), connectivity)
    return Engine(
        store=store,
        connectivity=connectivity,
        product_source=source,
        validator=ValidateCartHandler(store, source, policy),
        sync_manager=SyncManager(store, source, policy, connectivity),
        error_stats=stats,
    )
