from .exceptions import (
    InsufficientStock,
    LockAcquireTimeout,
    NotFound,
    StockLedgerError,
    StorageFailure,
    ValidationError,
)
from .locks import LocalLockBackend, lock
from .models import Product, ProductChanges, ProductDraft, StockLevel
from .retry import RetryPolicy
from .service import ProductService
from .store import InMemoryProductStore, ProductStore

__all__ = [
    "InMemoryProductStore",
    "InsufficientStock",
    "LocalLockBackend",
    "LockAcquireTimeout",
    "NotFound",
    "Product",
    "ProductChanges",
    "ProductDraft",
    "ProductService",
    "ProductStore",
    "RetryPolicy",
    "StockLedgerError",
    "StockLevel",
    "StorageFailure",
    "ValidationError",
    "lock",
]
