"""
Variant service: variant types, values and combinations, plus the SKU/name
consistency rules every combination write goes through.
"""

import logging
import re
import uuid
from collections.abc import Mapping

from sqlalchemy import exc as sa_exc
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.core.exceptions import ConflictError, NotFoundError, ValidationError
from catalog.models.audit_log import AuditLog
from catalog.models.variant import VariantCombination, VariantType, VariantValue
from catalog.schemas.variant import (
    CombinationCreate,
    CombinationUpdate,
    VariantTypeCreate,
    VariantTypeUpdate,
    VariantValueCreate,
    VariantValueUpdate,
)
from catalog.services.pricing import get_product_or_404

logger = logging.getLogger(__name__)

SKU_CONFLICT = "Variant SKU already exists"

# Length of variant_combinations.variant_name
VARIANT_NAME_MAX_LENGTH = 255
VARIANT_NAME_TOO_LONG = f"Variant name must be at most {VARIANT_NAME_MAX_LENGTH} characters"
STORAGE_REJECTED = "Variant combination values exceed storage limits"


def slugify(text: str) -> str:
    """'Shoe Size (EU)' -> 'shoe-size-eu'"""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower())
    return slug.strip("-")


def format_variant_name(type_names: Mapping[str, str], value_map: Mapping) -> str:
    """'Size: M, Color: Blue' from {type_id: value}; ids without a known type are skipped."""
    parts = []
    for type_id, value in value_map.items():
        name = type_names.get(str(type_id))
        if name is not None:
            parts.append(f"{name}: {value}")
    return ", ".join(parts)


def name_from_labels(value_map: Mapping) -> str:
    """'key: value' pairs for maps whose keys are already human labels."""
    return ", ".join(f"{key}: {value}" for key, value in value_map.items())


# --- SKU / name guard ---

async def variant_sku_exists(
    db: AsyncSession, sku: str, exclude_id: uuid.UUID | None = None
) -> bool:
    """Exact-match SKU check across all products, optionally ignoring one combination."""
    query = select(VariantCombination.id).where(VariantCombination.variant_sku == sku)
    if exclude_id is not None:
        query = query.where(VariantCombination.id != exclude_id)
    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


async def generate_variant_name(
    db: AsyncSession, product_id: uuid.UUID, value_map: Mapping
) -> str:
    """Resolve type ids to the product's type names and build the display name."""
    if not value_map:
        return ""
    result = await db.execute(
        select(VariantType.id, VariantType.name).where(VariantType.product_id == product_id)
    )
    type_names = {str(row.id): row.name for row in result}
    return format_variant_name(type_names, value_map)


async def resolve_variant_name(
    db: AsyncSession, product_id: uuid.UUID, value_map: Mapping
) -> str:
    """Display name for a value map whose keys are type ids or, failing that, labels."""
    variant_name = await generate_variant_name(db, product_id, value_map)
    if not variant_name:
        variant_name = name_from_labels(value_map)
    if len(variant_name) > VARIANT_NAME_MAX_LENGTH:
        raise ValidationError(VARIANT_NAME_TOO_LONG)
    return variant_name


async def flush_combination(db: AsyncSession, combination: VariantCombination) -> None:
    """Flush a combination write, turning a unique-SKU violation into a ConflictError.

    The pre-check in variant_sku_exists can race with another request; the
    storage constraint is what finally decides.
    """
    try:
        async with db.begin_nested():
            db.add(combination)
            await db.flush()
    except sa_exc.IntegrityError:
        logger.warning("Variant SKU %s rejected by storage constraint", combination.variant_sku)
        raise ConflictError(SKU_CONFLICT)
    except sa_exc.DataError:
        logger.warning("Variant %s rejected by storage limits", combination.variant_sku)
        raise ValidationError(STORAGE_REJECTED)


# --- Variant types ---

async def get_variant_type_or_404(db: AsyncSession, type_id: uuid.UUID) -> VariantType:
    result = await db.execute(select(VariantType).where(VariantType.id == type_id))
    variant_type = result.scalar_one_or_none()
    if variant_type is None:
        raise NotFoundError("Variant type not found")
    return variant_type


async def list_variant_types(db: AsyncSession, product_id: uuid.UUID) -> list[VariantType]:
    """The product's variant types in display order, values included."""
    result = await db.execute(
        select(VariantType)
        .where(VariantType.product_id == product_id)
        .order_by(VariantType.sort_order, VariantType.created_at)
    )
    return list(result.scalars().all())


async def create_variant_type(db: AsyncSession, body: VariantTypeCreate) -> VariantType:
    await get_product_or_404(db, body.product_id)

    variant_type = VariantType(
        product_id=body.product_id,
        name=body.name,
        slug=slugify(body.name),
        kind=body.kind,
        is_required=body.is_required,
        sort_order=body.sort_order,
    )
    db.add(variant_type)
    await db.flush()
    await db.refresh(variant_type, ["values"])
    return variant_type


async def update_variant_type(
    db: AsyncSession, type_id: uuid.UUID, body: VariantTypeUpdate
) -> VariantType:
    variant_type = await get_variant_type_or_404(db, type_id)
    changes = body.model_dump(exclude_unset=True, exclude_none=True)

    if "name" in changes:
        variant_type.name = changes["name"]
        variant_type.slug = slugify(changes["name"])
    for field in ("kind", "is_required", "sort_order"):
        if field in changes:
            setattr(variant_type, field, changes[field])

    await db.flush()
    await db.refresh(variant_type, ["values"])
    return variant_type


async def delete_variant_type(db: AsyncSession, type_id: uuid.UUID) -> None:
    """Delete a type and its values. Existing combinations keep their stored variant_data."""
    variant_type = await get_variant_type_or_404(db, type_id)
    await db.delete(variant_type)
    await db.flush()


# --- Variant values ---

async def get_variant_value_or_404(db: AsyncSession, value_id: uuid.UUID) -> VariantValue:
    result = await db.execute(select(VariantValue).where(VariantValue.id == value_id))
    value = result.scalar_one_or_none()
    if value is None:
        raise NotFoundError("Variant value not found")
    return value


async def add_variant_value(db: AsyncSession, body: VariantValueCreate) -> VariantValue:
    await get_variant_type_or_404(db, body.variant_type_id)

    value = VariantValue(
        variant_type_id=body.variant_type_id,
        value=body.value,
        display_value=body.display_value or body.value,
        color_code=body.color_code,
        sort_order=body.sort_order,
    )
    db.add(value)
    await db.flush()
    return value


async def update_variant_value(
    db: AsyncSession, value_id: uuid.UUID, body: VariantValueUpdate
) -> VariantValue:
    value = await get_variant_value_or_404(db, value_id)
    for field, new_value in body.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(value, field, new_value)
    await db.flush()
    return value


async def delete_variant_value(db: AsyncSession, value_id: uuid.UUID) -> None:
    value = await get_variant_value_or_404(db, value_id)
    await db.delete(value)
    await db.flush()


# --- Combinations ---

async def get_combination_or_404(db: AsyncSession, combination_id: uuid.UUID) -> VariantCombination:
    result = await db.execute(
        select(VariantCombination).where(VariantCombination.id == combination_id)
    )
    combination = result.scalar_one_or_none()
    if combination is None:
        raise NotFoundError("Variant combination not found")
    return combination


async def get_combination_by_sku(db: AsyncSession, sku: str) -> VariantCombination:
    result = await db.execute(
        select(VariantCombination).where(VariantCombination.variant_sku == sku)
    )
    combination = result.scalar_one_or_none()
    if combination is None:
        raise NotFoundError("Variant combination not found")
    return combination


async def list_combinations(db: AsyncSession, product_id: uuid.UUID) -> list[VariantCombination]:
    """Newest first."""
    result = await db.execute(
        select(VariantCombination)
        .where(VariantCombination.product_id == product_id)
        .order_by(VariantCombination.created_at.desc())
    )
    return list(result.scalars().all())


async def create_combination(
    db: AsyncSession, body: CombinationCreate, actor_id: uuid.UUID | None = None
) -> VariantCombination:
    """Create one combination. Rejects a SKU already used by any product (409)."""
    await get_product_or_404(db, body.product_id)

    if await variant_sku_exists(db, body.variant_sku):
        raise ConflictError(SKU_CONFLICT)

    variant_data = {str(k): v for k, v in body.variant_values.items()}
    variant_name = body.variant_name
    if variant_name is None:
        variant_name = await resolve_variant_name(db, body.product_id, variant_data)

    combination = VariantCombination(
        product_id=body.product_id,
        variant_sku=body.variant_sku,
        variant_name=variant_name,
        price=body.price,
        cost_price=body.cost_price,
        stock_quantity=body.stock_quantity,
        image_url=body.image_url,
        is_active=body.is_active,
        variant_data=variant_data,
    )
    await flush_combination(db, combination)

    db.add(
        AuditLog(
            user_id=actor_id,
            action="variant.create",
            resource_type="variant_combination",
            resource_id=combination.id,
            new_values={"variant_sku": combination.variant_sku, "variant_name": variant_name},
        )
    )
    await db.flush()
    return combination


async def update_combination(
    db: AsyncSession,
    combination_id: uuid.UUID,
    body: CombinationUpdate,
    actor_id: uuid.UUID | None = None,
) -> VariantCombination:
    combination = await get_combination_or_404(db, combination_id)
    changes = body.model_dump(exclude_unset=True)
    old_values = {"variant_sku": combination.variant_sku, "variant_name": combination.variant_name}

    new_sku = changes.get("variant_sku")
    if new_sku is not None and new_sku != combination.variant_sku:
        if await variant_sku_exists(db, new_sku, exclude_id=combination.id):
            raise ConflictError(SKU_CONFLICT)
        combination.variant_sku = new_sku

    for field in ("price", "cost_price", "image_url"):
        if field in changes:
            setattr(combination, field, changes[field])
    for field in ("stock_quantity", "is_active"):
        if changes.get(field) is not None:
            setattr(combination, field, changes[field])

    if changes.get("variant_values") is not None:
        variant_data = {str(k): v for k, v in changes["variant_values"].items()}
        variant_name = changes.get("variant_name")
        if variant_name is None:
            variant_name = await resolve_variant_name(db, combination.product_id, variant_data)
        combination.variant_data = variant_data
        combination.variant_name = variant_name
    elif changes.get("variant_name") is not None:
        combination.variant_name = changes["variant_name"]

    await flush_combination(db, combination)

    if old_values["variant_sku"] != combination.variant_sku:
        db.add(
            AuditLog(
                user_id=actor_id,
                action="variant.update",
                resource_type="variant_combination",
                resource_id=combination.id,
                old_values=old_values,
                new_values={
                    "variant_sku": combination.variant_sku,
                    "variant_name": combination.variant_name,
                },
            )
        )
        await db.flush()
    return combination


async def delete_combination(
    db: AsyncSession, combination_id: uuid.UUID, actor_id: uuid.UUID | None = None
) -> None:
    combination = await get_combination_or_404(db, combination_id)
    db.add(
        AuditLog(
            user_id=actor_id,
            action="variant.delete",
            resource_type="variant_combination",
            resource_id=combination.id,
            old_values={"variant_sku": combination.variant_sku},
        )
    )
    await db.delete(combination)
    await db.flush()


async def get_product_with_variants(db: AsyncSession, product_id: uuid.UUID) -> dict:
    await get_product_or_404(db, product_id)
    return {
        "variant_types": await list_variant_types(db, product_id),
        "variant_combinations": await list_combinations(db, product_id),
    }
