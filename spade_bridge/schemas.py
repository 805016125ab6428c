from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, field_validator


class CreateProductRequest(BaseModel):
    shop: str | None = None
    product: dict[str, Any] | None = None


class SourceData(BaseModel):
    original_id: Any = None
    price_range: Any = None
    stock: Any = None
    tags: list[str] = Field(default_factory=list)


class CreateProductResponse(BaseModel):
    product: dict[str, Any] | None = None
    media: dict[str, Any] | None = None
    source_data: SourceData


class CreateSubscriptionRequest(BaseModel):
    shop: str = Field(min_length=1)
    planName: str = Field(min_length=1)
    price: Decimal = Field(ge=0)
    returnUrl: str = Field(min_length=1)

    @field_validator("planName", "returnUrl")
    @classmethod
    def strip_text(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("must not be blank")
        return cleaned


class CreateSubscriptionResponse(BaseModel):
    confirmationUrl: str
    subscriptionId: str | None = None


class CreateUsageChargeRequest(BaseModel):
    shop: str = Field(min_length=1)
    subscriptionId: str = Field(min_length=1)
    description: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)


class ImportProductsRequest(BaseModel):
    shop: str | None = None
    # Validated by the route so a non-list gets the catalog's own 400 body.
    products: Any = None


class SyncProductRequest(BaseModel):
    shop: str | None = None
    product: dict[str, Any] | None = None
