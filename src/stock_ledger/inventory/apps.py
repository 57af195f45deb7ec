from django.apps import AppConfig


class InventoryConfig(AppConfig):
    name = "stock_ledger.inventory"
    label = "inventory"
    verbose_name = "Stock ledger inventory"
    default_auto_field = "django.db.models.BigAutoField"
