"""
Exception hierarchy for stock_ledger.

Every failure a store can report is a subclass of `StockLedgerError`. Callers
that only need to know "did the ledger refuse this?" catch the base class;
transport layers map the concrete subclasses to their own status codes.

Stores raise these exceptions and never log them.
"""
from __future__ import annotations

from typing import Any


class StockLedgerError(Exception):
    """
    Base exception for all stock_ledger errors.

    Example
    -------
    >>> try:
    ...     store.decrease_stock(product_id, 3)
    ... except StockLedgerError as exc:
    ...     report(exc.code, str(exc))
    """

    #: Stable error code for programmatic handling.
    code: str = "stock_ledger_error"

    def __init__(self, message: str | None = None, *, details: Any = None) -> None:
        if message is None:
            message = "An unspecified stock ledger error occurred."
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(StockLedgerError):
    """
    Raised when input is malformed: empty name, negative or non-integer
    quantities, a non-positive adjustment amount.

    Recoverable by the caller correcting the input. Never retried.
    """

    code: str = "validation_error"


class NotFound(StockLedgerError):
    """Raised when no product exists under the given id."""

    code: str = "not_found"

    def __init__(self, product_id: str) -> None:
        super().__init__("Product not found", details={"id": product_id})
        self.product_id = product_id


class InsufficientStock(StockLedgerError):
    """
    Raised when a decrease would drive stock below zero.

    The product is left exactly as it was before the call.
    """

    code: str = "insufficient_stock"

    def __init__(self, product_id: str, available: int, requested: int) -> None:
        super().__init__(
            "Insufficient stock",
            details={"id": product_id, "available": available, "requested": requested},
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class StorageFailure(StockLedgerError):
    """
    Raised when the underlying storage is unavailable or a transaction could
    not commit after exhausting its retries.

    The caller may retry the whole operation.
    """

    code: str = "storage_failure"


class LockAcquireTimeout(StorageFailure):
    """
    Raised when a per-product lock cannot be acquired within the timeout.

    This typically means another caller is adjusting the same product and
    holding its lock for longer than expected.
    """

    code: str = "lock_acquire_timeout"
