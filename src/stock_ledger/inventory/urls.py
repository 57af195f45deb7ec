from django.urls import path

from stock_ledger.service import ProductService

from . import views


def build_urlpatterns(service: ProductService) -> list:
    """Routes for the product API, bound to an explicit service instance."""
    return [
        path("health/", views.HealthView.as_view(), name="health"),
        path("products/", views.ProductCollectionView.as_view(service=service), name="product_list"),
        # Must precede the <product_id> routes so "low-stock" is not taken as an id.
        path("products/low-stock/", views.LowStockView.as_view(service=service), name="product_low_stock"),
        path("products/<str:product_id>/", views.ProductDetailView.as_view(service=service), name="product_detail"),
        path(
            "products/<str:product_id>/increase/",
            views.StockAdjustmentView.as_view(service=service, direction="increase"),
            name="product_increase",
        ),
        path(
            "products/<str:product_id>/decrease/",
            views.StockAdjustmentView.as_view(service=service, direction="decrease"),
            name="product_decrease",
        ),
    ]
