import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


# --- Variant types & values ---

class VariantValueCreate(BaseModel):
    variant_type_id: uuid.UUID
    value: str = Field(min_length=1, max_length=100)
    display_value: str | None = Field(default=None, max_length=100)
    color_code: str | None = Field(default=None, max_length=20)
    sort_order: int = 0


class VariantValueUpdate(BaseModel):
    value: str | None = Field(default=None, min_length=1, max_length=100)
    display_value: str | None = Field(default=None, max_length=100)
    color_code: str | None = Field(default=None, max_length=20)
    sort_order: int | None = None


class VariantValueResponse(BaseModel):
    id: uuid.UUID
    variant_type_id: uuid.UUID
    value: str
    display_value: str
    color_code: str | None
    sort_order: int

    model_config = {"from_attributes": True}


class VariantTypeCreate(BaseModel):
    product_id: uuid.UUID
    name: str = Field(min_length=1, max_length=100)
    kind: str = Field(default="dropdown", max_length=20)
    is_required: bool = False
    sort_order: int = 0


class VariantTypeUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    kind: str | None = Field(default=None, max_length=20)
    is_required: bool | None = None
    sort_order: int | None = None


class VariantTypeResponse(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID
    name: str
    slug: str
    kind: str
    is_required: bool
    sort_order: int
    values: list[VariantValueResponse] = []

    model_config = {"from_attributes": True}


# --- Combinations ---

class CombinationFields(BaseModel):
    """Per-combination attributes shared by single create and bulk generation."""
    variant_sku: str | None = Field(default=None, min_length=1, max_length=150)
    variant_name: str | None = Field(default=None, max_length=255)
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    cost_price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    stock_quantity: int = 0
    image_url: str | None = Field(default=None, max_length=500)
    is_active: bool = True


class CombinationCreate(CombinationFields):
    product_id: uuid.UUID
    variant_sku: str = Field(min_length=1, max_length=150)
    # variant type id -> selected value, in type order
    variant_values: dict[str, str] = {}


class CombinationUpdate(BaseModel):
    variant_sku: str | None = Field(default=None, min_length=1, max_length=150)
    variant_name: str | None = Field(default=None, max_length=255)
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    cost_price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    stock_quantity: int | None = None
    image_url: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None
    variant_values: dict[str, str] | None = None


class CombinationResponse(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID
    variant_sku: str
    variant_name: str
    price: Decimal | None
    cost_price: Decimal | None
    stock_quantity: int
    image_url: str | None
    is_active: bool
    variant_data: dict[str, str]
    created_at: datetime

    model_config = {"from_attributes": True}


class ProductVariantsResponse(BaseModel):
    variant_types: list[VariantTypeResponse]
    variant_combinations: list[CombinationResponse]


# --- Bulk generation ---

class BulkGenerateRequest(BaseModel):
    product_id: uuid.UUID
    variant_type_ids: list[uuid.UUID] = Field(min_length=1)
    base_data: CombinationFields = Field(default_factory=CombinationFields)
    # Preview the combinations without writing anything
    dry_run: bool = False


class CombinationOutcome(BaseModel):
    status: Literal["created", "failed", "planned"]
    variant_name: str
    variant_data: dict[str, str]
    variant_sku: str | None = None
    id: uuid.UUID | None = None
    reason: str | None = None


class BulkGenerateResponse(BaseModel):
    total: int
    created_count: int
    failed_count: int
    ids: list[uuid.UUID]
    dry_run: bool = False
    results: list[CombinationOutcome]
