import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


class PricingTierFields(BaseModel):
    """Tier payload as sent by clients.

    Range rules (min > 0, max > min, price >= 0, ...) are checked by the
    pricing service so that every violation is reported together.
    """

    variant_combination_id: uuid.UUID | None = None
    unit_type: str | None = Field(default=None, max_length=20)
    min_quantity: Decimal | None = None
    max_quantity: Decimal | None = None
    price: Decimal | None = None
    cost_price: Decimal | None = None
    discount_percent: Decimal | None = None
    is_active: bool = True
    sort_order: int = 0


class PricingTierCreate(PricingTierFields):
    product_id: uuid.UUID | None = None


class PricingTierUpdate(BaseModel):
    """Partial update: only fields present in the body are changed."""

    variant_combination_id: uuid.UUID | None = None
    unit_type: str | None = Field(default=None, max_length=20)
    min_quantity: Decimal | None = None
    max_quantity: Decimal | None = None
    price: Decimal | None = None
    cost_price: Decimal | None = None
    discount_percent: Decimal | None = None
    is_active: bool | None = None
    sort_order: int | None = None


class PricingTierResponse(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID
    variant_combination_id: uuid.UUID | None
    unit_type: str
    min_quantity: Decimal
    max_quantity: Decimal | None
    price: Decimal
    cost_price: Decimal | None
    discount_percent: Decimal | None
    is_active: bool
    sort_order: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PricingTierDiscountResponse(PricingTierResponse):
    """Tier compared against a base price."""
    base_price: Decimal | None = None
    discount_amount: Decimal | None = None
    calculated_discount_percent: Decimal | None = None


class PricingSummary(BaseModel):
    base_price: Decimal | None
    min_price: Decimal
    max_price: Decimal
    tier_count: int
    has_tiers: bool


class ProductTiersResponse(BaseModel):
    data: list[PricingTierResponse]
    summary: PricingSummary | None


class PriceCalculationResponse(BaseModel):
    quantity: Decimal
    price: Decimal
    total: Decimal
    tier: PricingTierResponse
    discount_percent: Decimal | None
    base_price: Decimal | None = None
    savings_percent: Decimal | None = None


class BulkTiersRequest(BaseModel):
    """Full replacement of a product's tier set."""
    product_id: uuid.UUID
    tiers: list[PricingTierFields] = Field(min_length=1)
    # strict=True rejects the whole batch if any tier is invalid
    strict: bool = False


class ImportTiersRequest(BaseModel):
    product_id: uuid.UUID
    tiers: list[PricingTierFields] = Field(min_length=1)


class TierOutcome(BaseModel):
    index: int
    status: Literal["created", "failed"]
    id: uuid.UUID | None = None
    errors: list[str] = []


class BulkTiersResponse(BaseModel):
    created_count: int
    failed_count: int
    ids: list[uuid.UUID]
    results: list[TierOutcome]


class TierPresenceResponse(BaseModel):
    product_id: uuid.UUID
    has_tiers: bool
