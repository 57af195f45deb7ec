from django.db import models

from stock_ledger.models import Product


class ProductRecord(models.Model):
    """
    Durable row behind a Product.

    Ids are generated by the ledger (UUID4 strings), not by the database, so
    both stores hand out ids of the same shape. Timestamps are set explicitly
    by the store rather than with auto_now, since a stock adjustment must
    refresh updated_at inside the same locked transaction as the quantity.
    """

    id = models.CharField(max_length=36, primary_key=True, editable=False)
    name = models.TextField()
    description = models.TextField(blank=True, default="")
    stock_quantity = models.PositiveIntegerField(default=0)
    low_stock_threshold = models.PositiveIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(db_index=True)
    updated_at = models.DateTimeField()

    class Meta:
        db_table = "stock_ledger_product"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.name} ({self.stock_quantity})"

    def to_product(self) -> Product:
        return Product(
            id=self.id,
            name=self.name,
            description=self.description,
            stock_quantity=self.stock_quantity,
            low_stock_threshold=self.low_stock_threshold,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
