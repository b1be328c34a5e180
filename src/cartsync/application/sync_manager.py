"""Application service: Sync Manager.

Replays the offline mutation queue once connectivity returns. A drain
pass walks the due entries strictly in FIFO order, one at a time:

- REMOVE and CLEAR need no confirmation and complete immediately.
- ADD and UPDATE_QUANTITY re-fetch the product and reconcile the line,
  so a quantity queued while offline is re-clamped to the stock that is
  current *now* instead of being honoured as originally requested.
- A failed replay goes through the shared retry policy. Retryable
  failures are deferred with backoff and skipped for the rest of the
  pass; anything else is dropped and reported.

If connectivity drops mid-pass the drain stops before the next entry and
leaves the remainder exactly as it was.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from cartsync.application.cart_store import CartStore
from cartsync.application.connectivity import ConnectivityMonitor
from cartsync.application.validate_cart import build_validation_result
from cartsync.domain.model.notices import CartNotice, NoticeKind, ValidationResult
from cartsync.domain.model.sync_queue import ClearCart, RemoveItem, SyncQueueEntry
from cartsync.domain.repository.product_source import ProductSource
from cartsync.domain.service.errors import ErrorKind
from cartsync.domain.service.retry import RetryPolicy

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SyncReport:
    synced: list[int] = field(default_factory=list)
    deferred: list[int] = field(default_factory=list)
    dropped: list[int] = field(default_factory=list)
    notices: list[CartNotice] = field(default_factory=list)
    interrupted: bool = False


class SyncManager:

    def __init__(
        self,
        store: CartStore,
        product_source: ProductSource,
        retry_policy: RetryPolicy,
        connectivity: ConnectivityMonitor,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._product_source = product_source
        self._retry_policy = retry_policy
        self._connectivity = connectivity
        self._clock = clock
        self._draining = False
        self.last_report: SyncReport | None = None
        connectivity.subscribe(self._on_connectivity_change)

    async def _on_connectivity_change(self, online: bool) -> None:
        if online and len(self._store.queue) > 0:
            self.last_report = await self.drain()

    async def drain(self) -> SyncReport:
        """Run one FIFO pass over the due entries of the queue."""
        report = SyncReport()
        if self._draining:
            logger.debug("Drain already in progress; ignoring request")
            return report
        if not self._connectivity.is_online or len(self._store.queue) == 0:
            return report

        self._draining = True
        self._store.begin_sync()
        try:
            for entry in self._store.queue.pending(self._clock()):
                if not self._connectivity.is_online:
                    report.interrupted = True
                    logger.info("Connectivity lost; stopping drain before entry #%d", entry.id)
                    break
                await self._replay(entry, report)
        finally:
            self._draining = False
            self._store.end_sync()

        if report.synced:
            logger.info("Synced %d cart changes", len(report.synced))
        if report.dropped:
            logger.warning("Dropped %d cart changes that could not be synced", len(report.dropped))
        self.last_report = report
        return report

    async def _replay(self, entry: SyncQueueEntry, report: SyncReport) -> None:
        mutation = entry.mutation
        if isinstance(mutation, (RemoveItem, ClearCart)):
            self._store.complete_entry(entry.id)
            report.synced.append(entry.id)
            return

        try:
            product = await self._product_source.get_by_id(mutation.product_id)
        except Exception as exc:
            self._handle_failure(entry, exc, report)
            return

        item = self._store.cart.find(mutation.product_id)
        if item is not None:
            report.notices.extend(
                self._store.reconcile([build_validation_result(item, product)])
            )
        self._store.complete_entry(entry.id)
        report.synced.append(entry.id)

    def _handle_failure(
        self, entry: SyncQueueEntry, exc: Exception, report: SyncReport
    ) -> None:
        if not self._connectivity.is_online:
            # Lost the network mid-call: leave the entry exactly as it was.
            report.interrupted = True
            return

        policy = self._retry_policy
        kind = policy.classifier.record(exc, f"sync {entry.type.value}")

        if policy.should_retry(exc, entry.retry_count):
            not_before = self._clock() + timedelta(seconds=policy.delay(entry.retry_count))
            self._store.defer_entry(entry.id, not_before)
            report.deferred.append(entry.id)
            return

        self._store.drop_entry(entry.id)
        report.dropped.append(entry.id)
        product_id = entry.mutation.product_id
        report.notices.append(
            CartNotice(
                kind=NoticeKind.SYNC_DROPPED,
                product_id=product_id,
                message=policy.classifier.describe(
                    exc, f"Could not sync {entry.type.value} for product {product_id}"
                ),
            )
        )
        if kind == ErrorKind.NOT_FOUND and product_id is not None:
            item = self._store.cart.find(product_id)
            if item is not None:
                report.notices.extend(
                    self._store.reconcile([ValidationResult.gone(item.product_id, item.name)])
                )
