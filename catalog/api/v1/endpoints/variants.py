import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.core.deps import CurrentUser, require_permission
from catalog.db.session import get_db
from catalog.schemas.variant import (
    BulkGenerateRequest,
    BulkGenerateResponse,
    CombinationCreate,
    CombinationResponse,
    CombinationUpdate,
    ProductVariantsResponse,
    VariantTypeCreate,
    VariantTypeResponse,
    VariantTypeUpdate,
    VariantValueCreate,
    VariantValueResponse,
    VariantValueUpdate,
)
from catalog.services import combinations, variants

router = APIRouter(prefix="/product-variants", tags=["variants"])


# --- Variant types ---

@router.get("/types/{product_id}", response_model=list[VariantTypeResponse])
async def list_variant_types(
    product_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_permission("variants:read")),
    db: AsyncSession = Depends(get_db),
):
    """Variant types of a product, each with its values."""
    types = await variants.list_variant_types(db, product_id)
    return [VariantTypeResponse.model_validate(t) for t in types]


@router.post("/types", response_model=VariantTypeResponse, status_code=201)
async def create_variant_type(
    body: VariantTypeCreate,
    current_user: CurrentUser = Depends(require_permission("variants:write")),
    db: AsyncSession = Depends(get_db),
):
    variant_type = await variants.create_variant_type(db, body)
    return VariantTypeResponse.model_validate(variant_type)


@router.put("/types/{type_id}", response_model=VariantTypeResponse)
async def update_variant_type(
    type_id: uuid.UUID,
    body: VariantTypeUpdate,
    current_user: CurrentUser = Depends(require_permission("variants:write")),
    db: AsyncSession = Depends(get_db),
):
    variant_type = await variants.update_variant_type(db, type_id, body)
    return VariantTypeResponse.model_validate(variant_type)


@router.delete("/types/{type_id}", status_code=204)
async def delete_variant_type(
    type_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_permission("variants:write")),
    db: AsyncSession = Depends(get_db),
):
    await variants.delete_variant_type(db, type_id)


# --- Variant values ---

@router.post("/values", response_model=VariantValueResponse, status_code=201)
async def add_variant_value(
    body: VariantValueCreate,
    current_user: CurrentUser = Depends(require_permission("variants:write")),
    db: AsyncSession = Depends(get_db),
):
    value = await variants.add_variant_value(db, body)
    return VariantValueResponse.model_validate(value)


@router.put("/values/{value_id}", response_model=VariantValueResponse)
async def update_variant_value(
    value_id: uuid.UUID,
    body: VariantValueUpdate,
    current_user: CurrentUser = Depends(require_permission("variants:write")),
    db: AsyncSession = Depends(get_db),
):
    value = await variants.update_variant_value(db, value_id, body)
    return VariantValueResponse.model_validate(value)


@router.delete("/values/{value_id}", status_code=204)
async def delete_variant_value(
    value_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_permission("variants:write")),
    db: AsyncSession = Depends(get_db),
):
    await variants.delete_variant_value(db, value_id)


# --- Combinations ---

@router.get("/combinations/{product_id}", response_model=list[CombinationResponse])
async def list_combinations(
    product_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_permission("variants:read")),
    db: AsyncSession = Depends(get_db),
):
    """Combinations of a product, newest first."""
    combos = await variants.list_combinations(db, product_id)
    return [CombinationResponse.model_validate(c) for c in combos]


@router.post("/combinations", response_model=CombinationResponse, status_code=201)
async def create_combination(
    body: CombinationCreate,
    current_user: CurrentUser = Depends(require_permission("variants:write")),
    db: AsyncSession = Depends(get_db),
):
    """Create a combination. 409 if the SKU is already used by any product."""
    combination = await variants.create_combination(db, body, actor_id=current_user.id)
    return CombinationResponse.model_validate(combination)


@router.put("/combinations/{combination_id}", response_model=CombinationResponse)
async def update_combination(
    combination_id: uuid.UUID,
    body: CombinationUpdate,
    current_user: CurrentUser = Depends(require_permission("variants:write")),
    db: AsyncSession = Depends(get_db),
):
    combination = await variants.update_combination(
        db, combination_id, body, actor_id=current_user.id
    )
    return CombinationResponse.model_validate(combination)


@router.delete("/combinations/{combination_id}", status_code=204)
async def delete_combination(
    combination_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_permission("variants:write")),
    db: AsyncSession = Depends(get_db),
):
    await variants.delete_combination(db, combination_id, actor_id=current_user.id)


@router.post("/bulk-create", response_model=BulkGenerateResponse)
async def bulk_create_combinations(
    body: BulkGenerateRequest,
    current_user: CurrentUser = Depends(require_permission("variants:write")),
    db: AsyncSession = Depends(get_db),
):
    """Create one combination per value tuple of the selected variant types.

    Use dry_run=true to preview the count, names and SKUs first.
    """
    return await combinations.bulk_generate(
        db,
        body.product_id,
        body.variant_type_ids,
        base_data=body.base_data,
        actor_id=current_user.id,
        dry_run=body.dry_run,
    )


@router.get("/product/{product_id}", response_model=ProductVariantsResponse)
async def get_product_variants(
    product_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_permission("variants:read")),
    db: AsyncSession = Depends(get_db),
):
    """Variant types (with values) and combinations of a product in one call."""
    data = await variants.get_product_with_variants(db, product_id)
    return ProductVariantsResponse(
        variant_types=[VariantTypeResponse.model_validate(t) for t in data["variant_types"]],
        variant_combinations=[
            CombinationResponse.model_validate(c) for c in data["variant_combinations"]
        ],
    )


@router.get("/sku/{sku}", response_model=CombinationResponse)
async def get_combination_by_sku(
    sku: str,
    current_user: CurrentUser = Depends(require_permission("variants:read")),
    db: AsyncSession = Depends(get_db),
):
    combination = await variants.get_combination_by_sku(db, sku)
    return CombinationResponse.model_validate(combination)
