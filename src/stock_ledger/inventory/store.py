from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, TypeVar

from django.db import DatabaseError, OperationalError, transaction
from django.db.models import F

from stock_ledger.exceptions import InsufficientStock, NotFound, StorageFailure
from stock_ledger.models import (
    Product,
    ProductChanges,
    ProductDraft,
    StockLevel,
    new_product_id,
    utc_now,
)
from stock_ledger.retry import RetryPolicy, run_with_retry
from stock_ledger.store import ProductStore, usable_limit
from stock_ledger.validation import (
    require_capacity,
    require_delta,
    validate_changes,
    validate_draft,
)

from .models import ProductRecord

T = TypeVar("T")


class DjangoProductStore(ProductStore):
    """
    ProductStore on top of the Django ORM.

    Every mutation of an existing product runs inside `transaction.atomic()`
    and starts with `select_for_update()`, so the row stays locked from the
    read through the write. Concurrent adjustments of one product queue on
    that row; different products lock different rows.

    Retry behavior
    --------------
    OperationalError (deadlock, serialization failure, lock wait timeout,
    SQLite's "database is locked") re-runs the whole transaction from a fresh
    read, as configured by `retry`. When the attempts run out, or on any
    other DatabaseError, the caller gets StorageFailure.

    Limitations
    -----------
    - SQLite ignores select_for_update(); it serializes writers on the whole
      database instead, which keeps the same per-product guarantee at the cost
      of cross-product contention.
    """

    def __init__(
        self,
        *,
        using: str = "default",
        retry: RetryPolicy | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.using = using
        self.retry = retry if retry is not None else RetryPolicy()
        self._clock = clock

    @property
    def _objects(self):
        return ProductRecord.objects.using(self.using)

    def _execute(self, operation: Callable[[], T]) -> T:
        try:
            return run_with_retry(operation, self.retry, retry_on=(OperationalError,))
        except DatabaseError as exc:
            raise StorageFailure(f"Storage error: {exc}") from exc

    def _locked_record(self, product_id: str) -> ProductRecord:
        try:
            return self._objects.select_for_update().get(pk=product_id)
        except ProductRecord.DoesNotExist:
            raise NotFound(product_id) from None

    def create(self, draft: ProductDraft) -> Product:
        validate_draft(draft)
        now = self._clock()

        def attempt() -> Product:
            record = ProductRecord(
                id=new_product_id(),
                name=draft.name,
                description=draft.description,
                stock_quantity=draft.stock_quantity,
                low_stock_threshold=draft.low_stock_threshold,
                created_at=now,
                updated_at=now,
            )
            with transaction.atomic(using=self.using):
                record.save(using=self.using, force_insert=True)
            return record.to_product()

        return self._execute(attempt)

    def get(self, product_id: str) -> Product:
        def attempt() -> Product:
            try:
                return self._objects.get(pk=product_id).to_product()
            except ProductRecord.DoesNotExist:
                raise NotFound(product_id) from None

        return self._execute(attempt)

    def list(self, limit: Any = None) -> list[Product]:
        cap = usable_limit(limit)

        def attempt() -> list[Product]:
            queryset = self._objects.order_by("-created_at")
            if cap is not None:
                queryset = queryset[:cap]
            return [record.to_product() for record in queryset]

        return self._execute(attempt)

    def update(self, product_id: str, changes: ProductChanges) -> Product:
        provided = validate_changes(changes)

        def attempt() -> Product:
            with transaction.atomic(using=self.using):
                record = self._locked_record(product_id)
                for name, value in provided.items():
                    setattr(record, name, value)
                record.updated_at = self._clock()
                record.save(using=self.using, update_fields=[*provided, "updated_at"])
            return record.to_product()

        return self._execute(attempt)

    def delete(self, product_id: str) -> dict[str, str]:
        def attempt() -> dict[str, str]:
            with transaction.atomic(using=self.using):
                deleted, _ = self._objects.filter(pk=product_id).delete()
            if not deleted:
                raise NotFound(product_id)
            return {"id": product_id}

        return self._execute(attempt)

    def adjust_stock(self, product_id: str, delta: int) -> StockLevel:
        require_delta(delta)

        def attempt() -> StockLevel:
            with transaction.atomic(using=self.using):
                record = self._locked_record(product_id)
                new_quantity = record.stock_quantity + delta
                if new_quantity < 0:
                    # Raising inside atomic() rolls back; nothing was written.
                    raise InsufficientStock(product_id, record.stock_quantity, -delta)
                require_capacity(product_id, record.stock_quantity, delta)
                record.stock_quantity = new_quantity
                record.updated_at = self._clock()
                record.save(using=self.using, update_fields=["stock_quantity", "updated_at"])
            return StockLevel(id=product_id, stock_quantity=new_quantity)

        return self._execute(attempt)

    def list_low_stock(self) -> list[Product]:
        def attempt() -> list[Product]:
            queryset = self._objects.filter(
                low_stock_threshold__isnull=False,
                stock_quantity__lt=F("low_stock_threshold"),
            )
            return [record.to_product() for record in queryset]

        return self._execute(attempt)
