from __future__ import annotations

import uuid
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Any


class _Unset:
    """Marker for a field that an update does not touch."""

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()

#: Fields a caller may set on a product. Anything else is rejected.
PRODUCT_FIELDS = ("name", "description", "stock_quantity", "low_stock_threshold")

# Largest value a PositiveIntegerField column holds on every supported database.
MAX_QUANTITY = 2147483647


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_product_id() -> str:
    return str(uuid.uuid4())


def isoformat(value: datetime) -> str:
    """
    Render a timestamp as ISO-8601 UTC with millisecond precision, e.g.
    ``2026-01-02T03:04:05.678Z``.
    """
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Product:
    """
    A stored product record.

    Instances are immutable snapshots: a mutation produces a new instance, so
    a caller holding a Product never sees it change underneath them.
    """

    id: str
    name: str
    description: str
    stock_quantity: int
    low_stock_threshold: int | None
    created_at: datetime
    updated_at: datetime

    @property
    def is_low_stock(self) -> bool:
        # No threshold means never low, even at zero stock.
        if self.low_stock_threshold is None:
            return False
        return self.stock_quantity < self.low_stock_threshold

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "stock_quantity": self.stock_quantity,
        }
        if self.low_stock_threshold is not None:
            payload["low_stock_threshold"] = self.low_stock_threshold
        payload["createdAt"] = isoformat(self.created_at)
        payload["updatedAt"] = isoformat(self.updated_at)
        return payload


@dataclass(frozen=True)
class ProductDraft:
    """Input for creating a product. Validated by the store on create."""

    name: str
    stock_quantity: int
    description: str = ""
    low_stock_threshold: int | None = None


@dataclass(frozen=True)
class ProductChanges:
    """
    A partial update. Fields left as UNSET are not touched.

    ``low_stock_threshold=None`` is a real change: it clears the threshold.
    """

    name: Any = UNSET
    description: Any = UNSET
    stock_quantity: Any = UNSET
    low_stock_threshold: Any = UNSET

    def provided(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }


@dataclass(frozen=True)
class StockLevel:
    """Result of a stock adjustment."""

    id: str
    stock_quantity: int

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "stock_quantity": self.stock_quantity}
