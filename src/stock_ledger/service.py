"""
ProductService: the orchestration layer between a transport and a store.

It turns plain payload mappings into ledger inputs, delegates to the store it
was constructed with, and logs successful mutations. Failures propagate
unchanged as StockLedgerError subclasses; mapping them to a transport status
is the transport's job.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping

from .models import Product, StockLevel
from .store import ProductStore
from .validation import changes_from_mapping, draft_from_mapping

logger = logging.getLogger(__name__)


class ProductService:
    def __init__(self, store: ProductStore) -> None:
        self.store = store

    def create_product(self, payload: Mapping[str, Any]) -> Product:
        product = self.store.create(draft_from_mapping(payload))
        logger.info(
            "Created product %s (%r) with stock %d",
            product.id, product.name, product.stock_quantity,
        )
        return product

    def get_product(self, product_id: str) -> Product:
        return self.store.get(product_id)

    def list_products(self, limit: Any = None) -> list[Product]:
        return self.store.list(limit)

    def update_product(self, product_id: str, payload: Mapping[str, Any]) -> Product:
        changes = changes_from_mapping(payload)
        product = self.store.update(product_id, changes)
        logger.info(
            "Updated product %s fields=%s", product_id, sorted(changes.provided())
        )
        return product

    def delete_product(self, product_id: str) -> dict[str, str]:
        result = self.store.delete(product_id)
        logger.info("Deleted product %s", product_id)
        return result

    def increase_stock(self, product_id: str, amount: int) -> StockLevel:
        level = self.store.increase_stock(product_id, amount)
        logger.info(
            "Increased stock of %s by %s to %d", product_id, amount, level.stock_quantity
        )
        return level

    def decrease_stock(self, product_id: str, amount: int) -> StockLevel:
        level = self.store.decrease_stock(product_id, amount)
        logger.info(
            "Decreased stock of %s by %s to %d", product_id, amount, level.stock_quantity
        )
        return level

    def list_low_stock(self) -> list[Product]:
        products = self.store.list_low_stock()
        logger.debug("Low-stock scan matched %d products", len(products))
        return products
