import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.core.deps import CurrentUser, require_permission
from catalog.db.session import get_db
from catalog.schemas.pricing import (
    BulkTiersRequest,
    BulkTiersResponse,
    ImportTiersRequest,
    PriceCalculationResponse,
    PricingTierCreate,
    PricingTierDiscountResponse,
    PricingTierResponse,
    PricingTierUpdate,
    ProductTiersResponse,
    TierPresenceResponse,
)
from catalog.services import bulk_pricing, pricing

router = APIRouter(prefix="/product-pricing", tags=["pricing"])


@router.get("/units", response_model=dict[str, str])
async def list_unit_types(
    current_user: CurrentUser = Depends(require_permission("pricing:read")),
):
    """Unit types a tier quantity can be expressed in."""
    return pricing.UNIT_TYPES


@router.get("/product/{product_id}", response_model=ProductTiersResponse)
async def list_product_tiers(
    product_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_permission("pricing:read")),
    db: AsyncSession = Depends(get_db),
):
    """All tiers of a product (inactive included) plus a summary of the active ones."""
    tiers = await pricing.list_tiers_for_product(db, product_id, include_inactive=True)
    summary = await pricing.get_pricing_summary(db, product_id)
    return ProductTiersResponse(
        data=[PricingTierResponse.model_validate(t) for t in tiers],
        summary=summary,
    )


@router.get("/product/{product_id}/has-tiers", response_model=TierPresenceResponse)
async def product_has_tiers(
    product_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_permission("pricing:read")),
    db: AsyncSession = Depends(get_db),
):
    """Cheap check for listings: does the product have any active tier?"""
    return TierPresenceResponse(product_id=product_id, has_tiers=await pricing.has_tiers(db, product_id))


@router.get("/variant/{combination_id}", response_model=list[PricingTierResponse])
async def list_variant_tiers(
    combination_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_permission("pricing:read")),
    db: AsyncSession = Depends(get_db),
):
    tiers = await pricing.list_tiers_for_variant(db, combination_id, include_inactive=True)
    return [PricingTierResponse.model_validate(t) for t in tiers]


@router.get("/export/{product_id}", response_model=list[PricingTierResponse])
async def export_tiers(
    product_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_permission("pricing:read")),
    db: AsyncSession = Depends(get_db),
):
    tiers = await bulk_pricing.export_tiers(db, product_id)
    return [PricingTierResponse.model_validate(t) for t in tiers]


@router.get("/calculate/{product_id}/{quantity}", response_model=PriceCalculationResponse)
@router.get("/calculate/{product_id}/{quantity}/{variant_id}", response_model=PriceCalculationResponse)
async def calculate_price(
    product_id: uuid.UUID,
    quantity: Decimal = Path(gt=0),
    variant_id: uuid.UUID | None = None,
    current_user: CurrentUser = Depends(require_permission("pricing:read")),
    db: AsyncSession = Depends(get_db),
):
    """Price `quantity` units using the best matching tier. 404 means: use the base price."""
    calculation = await pricing.calculate_price(db, product_id, quantity, variant_id)
    return PriceCalculationResponse(
        **{**calculation, "tier": PricingTierResponse.model_validate(calculation["tier"])}
    )


@router.post("/bulk", response_model=BulkTiersResponse)
async def bulk_replace_tiers(
    body: BulkTiersRequest,
    current_user: CurrentUser = Depends(require_permission("pricing:write")),
    db: AsyncSession = Depends(get_db),
):
    """Replace every tier of the product with the given ones."""
    return await bulk_pricing.replace_all(
        db, body.product_id, body.tiers, actor_id=current_user.id, strict=body.strict
    )


@router.post("/import", response_model=BulkTiersResponse)
async def import_tiers(
    body: ImportTiersRequest,
    current_user: CurrentUser = Depends(require_permission("pricing:write")),
    db: AsyncSession = Depends(get_db),
):
    """Append tiers to the product, keeping the existing ones."""
    return await bulk_pricing.import_tiers(db, body.product_id, body.tiers)


@router.post("", response_model=PricingTierResponse, status_code=201)
async def create_tier(
    body: PricingTierCreate,
    current_user: CurrentUser = Depends(require_permission("pricing:write")),
    db: AsyncSession = Depends(get_db),
):
    tier = await pricing.create_tier(db, body)
    return PricingTierResponse.model_validate(tier)


@router.get("/{tier_id}", response_model=PricingTierResponse)
async def get_tier(
    tier_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_permission("pricing:read")),
    db: AsyncSession = Depends(get_db),
):
    tier = await pricing.get_tier_or_404(db, tier_id)
    return PricingTierResponse.model_validate(tier)


@router.get("/{tier_id}/discount", response_model=PricingTierDiscountResponse)
async def get_tier_discount(
    tier_id: uuid.UUID,
    base_price: Decimal | None = Query(default=None, ge=0, description="Price to compare the tier against"),
    current_user: CurrentUser = Depends(require_permission("pricing:read")),
    db: AsyncSession = Depends(get_db),
):
    data = await pricing.get_tier_with_discount(db, tier_id, base_price)
    return PricingTierDiscountResponse.model_validate(data)


@router.put("/{tier_id}", response_model=PricingTierResponse)
async def update_tier(
    tier_id: uuid.UUID,
    body: PricingTierUpdate,
    current_user: CurrentUser = Depends(require_permission("pricing:write")),
    db: AsyncSession = Depends(get_db),
):
    tier = await pricing.update_tier(db, tier_id, body)
    return PricingTierResponse.model_validate(tier)


@router.delete("/{tier_id}", status_code=204)
async def delete_tier(
    tier_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_permission("pricing:write")),
    db: AsyncSession = Depends(get_db),
):
    await pricing.delete_tier(db, tier_id)
