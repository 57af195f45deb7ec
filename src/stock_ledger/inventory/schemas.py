"""Pydantic request schemas for the product API.

These validate the transport payload (types, required keys, unknown keys).
The ledger validates again on its own side, so a payload that gets past
these schemas still cannot break a stock invariant.
"""

from pydantic import BaseModel, ConfigDict, Field

from stock_ledger.models import MAX_QUANTITY


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)


class ProductCreateRequest(_Payload):
    name: str = Field(min_length=1)
    description: str = ""
    stock_quantity: int = Field(ge=0, le=MAX_QUANTITY)
    low_stock_threshold: int | None = Field(default=None, ge=0, le=MAX_QUANTITY)


class ProductUpdateRequest(_Payload):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    stock_quantity: int | None = Field(default=None, ge=0, le=MAX_QUANTITY)
    # An explicit null clears the threshold.
    low_stock_threshold: int | None = Field(default=None, ge=0, le=MAX_QUANTITY)


class StockAmountRequest(_Payload):
    amount: int = Field(gt=0, le=MAX_QUANTITY)
