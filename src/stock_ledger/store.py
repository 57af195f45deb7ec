"""
The Stock Ledger Store: keyed Product storage with atomic stock adjustment.

`ProductStore` fixes the contract every backend honours. Two concurrent
adjustments of the same product are linearizable: one read-check-write never
interleaves with another's write on that product. Adjustments of different
products never wait on each other.

`InMemoryProductStore` keeps records in process memory and serializes work on
one product with a per-key lock from `stock_ledger.locks`. The Django-backed
store lives in `stock_ledger.inventory.store`.
"""
from __future__ import annotations

import abc
import dataclasses
import itertools
import threading
from datetime import datetime
from typing import Any, Callable

from .exceptions import InsufficientStock, NotFound
from .locks import LocalLockBackend, LockBackend, lock
from .models import (
    Product,
    ProductChanges,
    ProductDraft,
    StockLevel,
    new_product_id,
    utc_now,
)
from .validation import (
    require_amount,
    require_capacity,
    require_delta,
    validate_changes,
    validate_draft,
)


def usable_limit(limit: Any) -> int | None:
    # Only a positive integer caps the listing; anything else means "all".
    if isinstance(limit, int) and not isinstance(limit, bool) and limit > 0:
        return limit
    return None


class ProductStore(abc.ABC):
    """Contract shared by every Product store."""

    @abc.abstractmethod
    def create(self, draft: ProductDraft) -> Product: ...

    @abc.abstractmethod
    def get(self, product_id: str) -> Product: ...

    @abc.abstractmethod
    def list(self, limit: Any = None) -> list[Product]: ...

    @abc.abstractmethod
    def update(self, product_id: str, changes: ProductChanges) -> Product: ...

    @abc.abstractmethod
    def delete(self, product_id: str) -> dict[str, str]: ...

    @abc.abstractmethod
    def adjust_stock(self, product_id: str, delta: int) -> StockLevel:
        """
        Atomically add `delta` to the product's stock.

        Raises InsufficientStock, leaving the product untouched, when the
        result would be negative.
        """

    @abc.abstractmethod
    def list_low_stock(self) -> list[Product]: ...

    def increase_stock(self, product_id: str, amount: int) -> StockLevel:
        return self.adjust_stock(product_id, require_amount(amount))

    def decrease_stock(self, product_id: str, amount: int) -> StockLevel:
        return self.adjust_stock(product_id, -require_amount(amount))


class InMemoryProductStore(ProductStore):
    """
    Process-local ProductStore.

    Records are immutable `Product` snapshots. A mutation builds a new
    snapshot and swaps it into the mapping, so readers see either the old
    record or the new one, never a half-written one.

    Two kinds of locking
    --------------------
    - Per product: update, delete and adjust_stock hold the product's key
      lock for their whole read-check-write. This is what makes adjustments
      linearizable per product.
    - Mapping guard: a plain mutex held only for a single dict read, write or
      copy. It never wraps a read-check-write and never waits on a key lock.
    """

    def __init__(
        self,
        *,
        lock_backend: LockBackend | None = None,
        lock_timeout: float | None = 3.0,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.lock_backend = lock_backend if lock_backend is not None else LocalLockBackend()
        self.lock_timeout = lock_timeout
        self._clock = clock
        self._guard = threading.Lock()
        # id -> (insertion sequence, record); the sequence breaks createdAt ties.
        self._records: dict[str, tuple[int, Product]] = {}
        self._sequence = itertools.count()

    def lock_key(self, product_id: str) -> str:
        return f"product:{product_id}"

    def _locked(self, product_id: str):
        return lock(self.lock_key(product_id), self.lock_backend, timeout=self.lock_timeout)

    def _read(self, product_id: str) -> tuple[int, Product]:
        with self._guard:
            entry = self._records.get(product_id)
        if entry is None:
            raise NotFound(product_id)
        return entry

    def _write(self, seq: int, product: Product) -> None:
        with self._guard:
            self._records[product.id] = (seq, product)

    def _snapshot(self) -> list[tuple[int, Product]]:
        with self._guard:
            return list(self._records.values())

    def create(self, draft: ProductDraft) -> Product:
        validate_draft(draft)
        now = self._clock()
        product = Product(
            id=new_product_id(),
            name=draft.name,
            description=draft.description,
            stock_quantity=draft.stock_quantity,
            low_stock_threshold=draft.low_stock_threshold,
            created_at=now,
            updated_at=now,
        )
        # A fresh id is invisible to everyone else until written; no key lock.
        self._write(next(self._sequence), product)
        return product

    def get(self, product_id: str) -> Product:
        return self._read(product_id)[1]

    def list(self, limit: Any = None) -> list[Product]:
        entries = sorted(
            self._snapshot(),
            key=lambda entry: (entry[1].created_at, entry[0]),
            reverse=True,
        )
        products = [product for _, product in entries]
        cap = usable_limit(limit)
        return products[:cap] if cap is not None else products

    def update(self, product_id: str, changes: ProductChanges) -> Product:
        provided = validate_changes(changes)
        with self._locked(product_id):
            seq, current = self._read(product_id)
            updated = dataclasses.replace(current, updated_at=self._clock(), **provided)
            self._write(seq, updated)
        return updated

    def delete(self, product_id: str) -> dict[str, str]:
        with self._locked(product_id):
            with self._guard:
                removed = self._records.pop(product_id, None)
        if removed is None:
            raise NotFound(product_id)
        return {"id": product_id}

    def adjust_stock(self, product_id: str, delta: int) -> StockLevel:
        require_delta(delta)
        with self._locked(product_id):
            seq, current = self._read(product_id)
            new_quantity = current.stock_quantity + delta
            if new_quantity < 0:
                raise InsufficientStock(product_id, current.stock_quantity, -delta)
            require_capacity(product_id, current.stock_quantity, delta)
            self._write(
                seq,
                dataclasses.replace(
                    current, stock_quantity=new_quantity, updated_at=self._clock()
                ),
            )
        return StockLevel(id=product_id, stock_quantity=new_quantity)

    def list_low_stock(self) -> list[Product]:
        return [product for _, product in self._snapshot() if product.is_low_stock]
