from __future__ import annotations

import logging
from typing import TypeVar

import pydantic
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from stock_ledger.exceptions import (
    InsufficientStock,
    NotFound,
    StockLedgerError,
    StorageFailure,
    ValidationError,
)
from stock_ledger.models import isoformat, utc_now
from stock_ledger.service import ProductService

from .schemas import ProductCreateRequest, ProductUpdateRequest, StockAmountRequest

logger = logging.getLogger(__name__)

Payload = TypeVar("Payload", bound=pydantic.BaseModel)

STATUS_BY_ERROR: tuple[tuple[type[StockLedgerError], int], ...] = (
    (ValidationError, 400),
    (NotFound, 404),
    (InsufficientStock, 400),
    (StorageFailure, 500),
)


def error_response(exc: StockLedgerError) -> JsonResponse:
    """
    Map a ledger error to a JSON response: {"error": ..., "details": ...}.

    Server-side failures are logged with their traceback; caller mistakes are
    logged at INFO.
    """
    status = next((code for cls, code in STATUS_BY_ERROR if isinstance(exc, cls)), 500)

    if status >= 500:
        logger.error("Unhandled error: %s", exc.message, exc_info=exc)
    else:
        logger.info("Handled error: %s (status=%d, details=%r)", exc.message, status, exc.details)

    body = {"error": exc.message}
    if exc.details:
        body["details"] = exc.details
    return JsonResponse(body, status=status)


def parse_payload(request: HttpRequest, schema: type[Payload]) -> Payload:
    try:
        return schema.model_validate_json(request.body)
    except pydantic.ValidationError as exc:
        issues = [
            {"loc": ".".join(str(part) for part in error["loc"]), "msg": error["msg"]}
            for error in exc.errors(include_url=False)
        ]
        summary = "; ".join(
            f"{issue['loc']}: {issue['msg']}" if issue["loc"] else issue["msg"]
            for issue in issues
        )
        raise ValidationError(f"Invalid request body: {summary}", details=issues) from exc


def _parse_limit(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


@method_decorator(csrf_exempt, name="dispatch")
class LedgerView(View):
    """
    Base view: holds the service and turns ledger errors into JSON responses.

    Other exceptions are left to Django's own 500 handling.
    """

    service: ProductService | None = None

    def dispatch(self, request: HttpRequest, *args, **kwargs) -> HttpResponse:
        try:
            return super().dispatch(request, *args, **kwargs)
        except StockLedgerError as exc:
            return error_response(exc)


class HealthView(View):
    def get(self, request: HttpRequest) -> JsonResponse:
        return JsonResponse({"ok": True, "timestamp": isoformat(utc_now())})


class ProductCollectionView(LedgerView):
    def get(self, request: HttpRequest) -> JsonResponse:
        products = self.service.list_products(_parse_limit(request.GET.get("limit")))
        return JsonResponse([p.to_dict() for p in products], safe=False)

    def post(self, request: HttpRequest) -> JsonResponse:
        body = parse_payload(request, ProductCreateRequest)
        product = self.service.create_product(body.model_dump(exclude_none=True))
        return JsonResponse(product.to_dict(), status=201)


class ProductDetailView(LedgerView):
    def get(self, request: HttpRequest, product_id: str) -> JsonResponse:
        return JsonResponse(self.service.get_product(product_id).to_dict())

    def put(self, request: HttpRequest, product_id: str) -> JsonResponse:
        body = parse_payload(request, ProductUpdateRequest)
        product = self.service.update_product(product_id, body.model_dump(exclude_unset=True))
        return JsonResponse(product.to_dict())

    # Both verbs take the same partial payload.
    patch = put

    def delete(self, request: HttpRequest, product_id: str) -> JsonResponse:
        return JsonResponse(self.service.delete_product(product_id))


class StockAdjustmentView(LedgerView):
    direction: str = "increase"

    def post(self, request: HttpRequest, product_id: str) -> JsonResponse:
        body = parse_payload(request, StockAmountRequest)
        if self.direction == "decrease":
            level = self.service.decrease_stock(product_id, body.amount)
        else:
            level = self.service.increase_stock(product_id, body.amount)
        return JsonResponse(level.to_dict())


class LowStockView(LedgerView):
    def get(self, request: HttpRequest) -> JsonResponse:
        products = self.service.list_low_stock()
        return JsonResponse([p.to_dict() for p in products], safe=False)
