"""
Input validation shared by every store.

Stores call these before touching storage, so stock invariants are enforced
before any write and never repaired afterwards.
"""
from __future__ import annotations

from typing import Any, Mapping

from .exceptions import ValidationError
from .models import MAX_QUANTITY, PRODUCT_FIELDS, ProductChanges, ProductDraft


def _is_int(value: Any) -> bool:
    # bool is an int subclass, but True is not a quantity.
    return isinstance(value, int) and not isinstance(value, bool)


def require_name(value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise ValidationError("Product name is required", details={"field": "name"})
    return value


def require_description(value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError(
            "description must be a string", details={"field": "description"}
        )
    return value


def require_non_negative_int(value: Any, field: str) -> int:
    if not _is_int(value) or value < 0:
        raise ValidationError(
            f"{field} must be an integer >= 0", details={"field": field}
        )
    if value > MAX_QUANTITY:
        raise ValidationError(
            f"{field} must be <= {MAX_QUANTITY}", details={"field": field, "max": MAX_QUANTITY}
        )
    return value


def optional_non_negative_int(value: Any, field: str) -> int | None:
    if value is None:
        return None
    return require_non_negative_int(value, field)


def require_amount(value: Any) -> int:
    if not _is_int(value) or value <= 0:
        raise ValidationError("amount must be an integer > 0", details={"field": "amount"})
    if value > MAX_QUANTITY:
        raise ValidationError(
            f"amount must be <= {MAX_QUANTITY}", details={"field": "amount", "max": MAX_QUANTITY}
        )
    return value


def require_delta(value: Any) -> int:
    if not _is_int(value) or value == 0:
        raise ValidationError("delta must be a non-zero integer", details={"field": "delta"})
    return value


def require_capacity(product_id: str, current: int, delta: int) -> int:
    """Return `current + delta`, refusing a result the stock column cannot hold."""
    quantity = current + delta
    if quantity > MAX_QUANTITY:
        raise ValidationError(
            f"stock_quantity would exceed {MAX_QUANTITY}",
            details={"id": product_id, "available": current, "max": MAX_QUANTITY},
        )
    return quantity


def validate_draft(draft: ProductDraft) -> ProductDraft:
    require_name(draft.name)
    require_description(draft.description)
    require_non_negative_int(draft.stock_quantity, "stock_quantity")
    optional_non_negative_int(draft.low_stock_threshold, "low_stock_threshold")
    return draft


def validate_changes(changes: ProductChanges) -> dict[str, Any]:
    """Validate a partial update and return only the provided fields."""
    provided = changes.provided()
    if "name" in provided:
        require_name(provided["name"])
    if "description" in provided:
        require_description(provided["description"])
    if "stock_quantity" in provided:
        require_non_negative_int(provided["stock_quantity"], "stock_quantity")
    if "low_stock_threshold" in provided:
        optional_non_negative_int(provided["low_stock_threshold"], "low_stock_threshold")
    return provided


def _reject_unknown(data: Mapping[str, Any]) -> None:
    if not isinstance(data, Mapping):
        raise ValidationError("Invalid payload")
    unknown = sorted(set(data) - set(PRODUCT_FIELDS))
    if unknown:
        raise ValidationError(
            f"Unknown product fields: {', '.join(unknown)}",
            details={"fields": unknown},
        )


def draft_from_mapping(data: Mapping[str, Any]) -> ProductDraft:
    _reject_unknown(data)
    if "name" not in data:
        raise ValidationError("Product name is required", details={"field": "name"})
    if "stock_quantity" not in data:
        raise ValidationError(
            "stock_quantity must be an integer >= 0", details={"field": "stock_quantity"}
        )
    description = data.get("description")
    return ProductDraft(
        name=data["name"],
        stock_quantity=data["stock_quantity"],
        description="" if description is None else description,
        low_stock_threshold=data.get("low_stock_threshold"),
    )


def changes_from_mapping(data: Mapping[str, Any]) -> ProductChanges:
    _reject_unknown(data)
    return ProductChanges(**data)
