from __future__ import annotations

from .config import LedgerConfig
from .retry import RetryPolicy
from .service import ProductService
from .store import InMemoryProductStore, ProductStore


def build_store(config: LedgerConfig) -> ProductStore:
    """
    Construct the store selected by `config`.

    The Django store is imported lazily: it needs a configured Django app
    registry, which the in-memory store does not.
    """
    if config.store == "memory":
        return InMemoryProductStore(lock_timeout=config.lock_timeout)

    from .inventory.store import DjangoProductStore

    return DjangoProductStore(
        retry=RetryPolicy(attempts=config.retry_attempts, backoff=config.retry_backoff),
    )


def build_service(config: LedgerConfig) -> ProductService:
    return ProductService(build_store(config))
