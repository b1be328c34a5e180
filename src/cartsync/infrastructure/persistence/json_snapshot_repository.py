"""JSON-file-backed implementation of CartSnapshotRepository.

The file is always rewritten whole through a temporary file and an
atomic rename, so a crash mid-write leaves the previous snapshot intact.
Snapshots older than the age ceiling, and files that cannot be parsed,
are discarded rather than trusted.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

from cartsync.domain.exceptions import DomainException
from cartsync.domain.model.cart_item import CartItem
from cartsync.domain.model.product import DealType, DiscountType, coerce_int
from cartsync.domain.model.snapshot import CartSnapshot
from cartsync.domain.model.sync_queue import SyncQueueEntry, mutation_from_payload
from cartsync.domain.model.value_objects import Money, coerce_amount
from cartsync.domain.repository.snapshot_repository import CartSnapshotRepository
from cartsync.infrastructure.persistence.atomic_file import write_atomic

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JsonCartSnapshotRepository(CartSnapshotRepository):

    def __init__(
        self,
        file_path: Path,
        max_age: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._file_path = file_path
        self._max_age = max_age
        self._clock = clock

    # --- CartSnapshotRepository interface -------------------------------------

    def load(self) -> CartSnapshot | None:
        if not self._file_path.exists():
            return None
        try:
            raw = json.loads(self._file_path.read_text(encoding="utf-8"))
            snapshot = self._to_domain(raw)
            age = self._clock() - snapshot.saved_at
        except (ValueError, KeyError, TypeError, DomainException) as exc:
            logger.warning("Discarding unreadable cart snapshot %s: %s", self._file_path, exc)
            self.clear()
            return None

        if age > self._max_age:
            logger.info("Discarding cart snapshot saved at %s (expired)", snapshot.saved_at)
            self.clear()
            return None
        return snapshot

    def save(self, snapshot: CartSnapshot) -> None:
        write_atomic(self._file_path, json.dumps(self._to_raw(snapshot), indent=2) + "\n")

    def clear(self) -> None:
        self._file_path.unlink(missing_ok=True)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(snapshot: CartSnapshot) -> dict:
        return {
            "saved_at": snapshot.saved_at.isoformat(),
            "total": str(snapshot.total.amount),
            "item_count": snapshot.item_count,
            "offline_changes": snapshot.offline_changes,
            "last_sync_attempt": (
                snapshot.last_sync_attempt.isoformat() if snapshot.last_sync_attempt else None
            ),
            "items": [
                {
                    "product_id": item.product_id,
                    "name": item.name,
                    "quantity": item.quantity,
                    "price": str(item.price),
                    "stock": item.stock,
                    "base_price": _opt_str(item.base_price),
                    "variation_price": _opt_str(item.variation_price),
                    "seasonal_discount": str(item.seasonal_discount),
                    "seasonal_discount_type": item.seasonal_discount_type.value,
                    "seasonal_discount_active": item.seasonal_discount_active,
                    "deal_type": item.deal_type.value if item.deal_type else None,
                    "deal_value": item.deal_value,
                    "unit": item.unit,
                    "added_at": item.added_at.isoformat(),
                    "updated_at": item.updated_at.isoformat(),
                }
                for item in snapshot.items
            ],
            "sync_queue": [
                {
                    "id": entry.id,
                    "type": entry.type.value,
                    "payload": entry.mutation.to_payload(),
                    "timestamp": entry.timestamp.isoformat(),
                    "retry_count": entry.retry_count,
                    "not_before": entry.not_before.isoformat() if entry.not_before else None,
                }
                for entry in snapshot.sync_queue
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> CartSnapshot:
        items = tuple(
            CartItem(
                product_id=str(i["product_id"]),
                name=i["name"],
                quantity=coerce_int(i["quantity"]),
                price=coerce_amount(i.get("price")),
                stock=coerce_int(i.get("stock")),
                base_price=_opt_amount(i.get("base_price")),
                variation_price=_opt_amount(i.get("variation_price")),
                seasonal_discount=coerce_amount(i.get("seasonal_discount")),
                seasonal_discount_type=DiscountType.parse(i.get("seasonal_discount_type")),
                seasonal_discount_active=bool(i.get("seasonal_discount_active", False)),
                deal_type=DealType.parse(i.get("deal_type")),
                deal_value=i.get("deal_value"),
                unit=i.get("unit") or "piece",
                added_at=datetime.fromisoformat(i["added_at"]),
                updated_at=datetime.fromisoformat(i["updated_at"]),
            )
            for i in raw["items"]
        )
        queue = tuple(
            SyncQueueEntry(
                id=int(e["id"]),
                mutation=mutation_from_payload(e["type"], e.get("payload")),
                timestamp=datetime.fromisoformat(e["timestamp"]),
                retry_count=int(e.get("retry_count", 0)),
                not_before=_opt_datetime(e.get("not_before")),
            )
            for e in raw.get("sync_queue", [])
        )
        return CartSnapshot(
            items=items,
            total=Money(coerce_amount(raw.get("total"))),
            item_count=coerce_int(raw.get("item_count")),
            sync_queue=queue,
            offline_changes=bool(raw.get("offline_changes", False)),
            last_sync_attempt=_opt_datetime(raw.get("last_sync_attempt")),
            saved_at=datetime.fromisoformat(raw["saved_at"]),
        )


def _opt_str(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def _opt_amount(value: object) -> Decimal | None:
    return None if value is None else coerce_amount(value)


def _opt_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None
