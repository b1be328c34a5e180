"""Product snapshot as reported by the Product Source.

Products live outside the cart. The cart only ever holds copies of what
the source last said about a product, so a snapshot is immutable and is
replaced wholesale whenever fresher data arrives.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal
from enum import Enum

from cartsync.domain.model.value_objects import coerce_amount


class DiscountType(Enum):
    PERCENTAGE = "Percentage"
    FIXED = "Fixed Amount"

    @staticmethod
    def parse(raw: object) -> DiscountType:
        """Anything that is not recognizably a percentage is a fixed amount."""
        if isinstance(raw, DiscountType):
            return raw
        if str(raw or "").strip().lower() in ("percentage", "percent", "%"):
            return DiscountType.PERCENTAGE
        return DiscountType.FIXED


class DealType(Enum):
    BOGO = "BOGO"
    BUNDLE = "Bundle"

    @staticmethod
    def parse(raw: object) -> DealType | None:
        if isinstance(raw, DealType):
            return raw
        text = str(raw or "").strip().lower()
        for deal_type in DealType:
            if deal_type.value.lower() == text:
                return deal_type
        return None


def coerce_int(value: object) -> int:
    """Integer or zero; negative values are treated as zero."""
    if isinstance(value, bool):
        return 0
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(number, 0)


def _optional_amount(value: object) -> Decimal | None:
    amount = coerce_amount(value)
    return amount if amount > 0 else None


@dataclass(frozen=True)
class ProductSnapshot:
    """Point-in-time copy of a catalog product."""

    id: str
    name: str
    price: Decimal
    stock: int
    base_price: Decimal | None = None
    variation_price: Decimal | None = None
    seasonal_discount: Decimal = Decimal("0")
    seasonal_discount_type: DiscountType = DiscountType.FIXED
    seasonal_discount_active: bool = False
    unit: str = "piece"
    is_active: bool = True
    deal_type: DealType | None = None
    deal_value: str | None = None

    @staticmethod
    def from_record(raw: dict) -> ProductSnapshot:
        """Build a snapshot from a loosely typed record.

        Malformed numbers are coerced rather than rejected: a broken price
        field on one product must not stop the rest of the cart working.
        """
        return ProductSnapshot(
            id=str(raw["id"]),
            name=str(raw.get("name") or raw["id"]),
            price=coerce_amount(raw.get("price")),
            stock=coerce_int(raw.get("stock")),
            base_price=_optional_amount(raw.get("base_price")),
            variation_price=_optional_amount(raw.get("variation_price")),
            seasonal_discount=coerce_amount(raw.get("seasonal_discount")),
            seasonal_discount_type=DiscountType.parse(raw.get("seasonal_discount_type")),
            seasonal_discount_active=bool(raw.get("seasonal_discount_active", False)),
            unit=str(raw.get("unit") or "piece"),
            is_active=bool(raw.get("is_active", True)),
            deal_type=DealType.parse(raw.get("deal_type")),
            deal_value=raw.get("deal_value") or None,
        )

    def to_record(self) -> dict:
        record = asdict(self)
        for key in ("price", "base_price", "variation_price", "seasonal_discount"):
            if record[key] is not None:
                record[key] = str(record[key])
        record["seasonal_discount_type"] = self.seasonal_discount_type.value
        record["deal_type"] = self.deal_type.value if self.deal_type else None
        return record
