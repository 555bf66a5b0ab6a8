"""
Variant combination generator: one combination per tuple of the Cartesian
product of the selected variant types' values.

The output size is the product of every type's value count, so generation is
capped by settings.MAX_VARIANT_COMBINATIONS and can be previewed with a dry run.

SKUs are synthesized as {product_sku}-{md5 prefix}. A synthesized SKU that is
already taken (in storage or earlier in the same batch) gets a longer hash
prefix until it is unique; a caller-supplied SKU is never altered.
"""

import hashlib
import itertools
import logging
import math
import uuid

from sqlalchemy import exc as sa_exc
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.config import settings
from catalog.core.exceptions import NotFoundError, ReferentialIntegrityError, ValidationError
from catalog.models.audit_log import AuditLog
from catalog.models.variant import VariantCombination, VariantType
from catalog.schemas.variant import BulkGenerateResponse, CombinationFields, CombinationOutcome
from catalog.services.pricing import get_product_or_404
from catalog.services.variants import (
    SKU_CONFLICT,
    STORAGE_REJECTED,
    VARIANT_NAME_MAX_LENGTH,
    VARIANT_NAME_TOO_LONG,
    variant_sku_exists,
)

logger = logging.getLogger(__name__)


def cartesian_product(values_by_type: dict[str, list[str]]) -> list[dict[str, str]]:
    """All {type_id: value} tuples, type order and value order preserved.

    >>> cartesian_product({"size": ["S", "M"], "color": ["Red"]})
    [{'size': 'S', 'color': 'Red'}, {'size': 'M', 'color': 'Red'}]
    """
    if not values_by_type:
        return []
    keys = list(values_by_type)
    return [dict(zip(keys, combo)) for combo in itertools.product(*values_by_type.values())]


def count_combinations(values_by_type: dict[str, list[str]]) -> int:
    if not values_by_type:
        return 0
    return math.prod(len(values) for values in values_by_type.values())


def combination_label(values: list[str]) -> str:
    return " - ".join(values)


def sku_suffix(values: list[str], length: int) -> str:
    return hashlib.md5("-".join(values).encode("utf-8")).hexdigest()[:length]


def synthesize_sku(
    base_sku: str,
    values: list[str],
    taken: set[str],
    length: int | None = None,
    max_length: int | None = None,
) -> str | None:
    """First free {base_sku}-{hash prefix}, growing the prefix two chars at a time.

    Returns None when even the longest prefix collides.
    """
    length = length or settings.VARIANT_SKU_SUFFIX_LENGTH
    max_length = max_length or settings.VARIANT_SKU_MAX_SUFFIX_LENGTH
    while length <= max_length:
        candidate = f"{base_sku}-{sku_suffix(values, length)}"
        if candidate not in taken:
            return candidate
        length += 2
    return None


async def _load_values_by_type(
    db: AsyncSession, product_id: uuid.UUID, variant_type_ids: list[uuid.UUID]
) -> dict[str, list[str]]:
    if len(set(variant_type_ids)) != len(variant_type_ids):
        raise ValidationError("Duplicate variant type ids")

    result = await db.execute(
        select(VariantType).where(
            VariantType.id.in_(variant_type_ids),
            VariantType.product_id == product_id,
        )
    )
    types_by_id = {variant_type.id: variant_type for variant_type in result.scalars().all()}

    values_by_type: dict[str, list[str]] = {}
    for type_id in variant_type_ids:
        variant_type = types_by_id.get(type_id)
        if variant_type is None:
            raise NotFoundError(f"Variant type {type_id} not found for this product")
        if not variant_type.values:
            raise ReferentialIntegrityError(f"Variant type '{variant_type.name}' has no values")
        values_by_type[str(type_id)] = [value.value for value in variant_type.values]
    return values_by_type


async def _existing_skus(db: AsyncSession, prefix: str) -> set[str]:
    result = await db.execute(
        select(VariantCombination.variant_sku).where(
            VariantCombination.variant_sku.startswith(prefix, autoescape=True)
        )
    )
    return set(result.scalars().all())


async def bulk_generate(
    db: AsyncSession,
    product_id: uuid.UUID,
    variant_type_ids: list[uuid.UUID],
    base_data: CombinationFields | None = None,
    actor_id: uuid.UUID | None = None,
    dry_run: bool = False,
) -> BulkGenerateResponse:
    """Create one combination per value tuple of the given variant types.

    Best-effort: a tuple whose SKU cannot be made unique is reported as failed
    and the rest are still created. Nothing is written when dry_run is set or
    when the combination count exceeds the configured limit.
    """
    base_data = base_data or CombinationFields()
    product = await get_product_or_404(db, product_id)
    values_by_type = await _load_values_by_type(db, product_id, variant_type_ids)

    total = count_combinations(values_by_type)
    if total > settings.MAX_VARIANT_COMBINATIONS:
        raise ValidationError(
            f"Generating {total} combinations exceeds the limit of "
            f"{settings.MAX_VARIANT_COMBINATIONS}"
        )

    if base_data.variant_sku:
        taken = {base_data.variant_sku} if await variant_sku_exists(db, base_data.variant_sku) else set()
    else:
        taken = await _existing_skus(db, f"{product.sku}-")

    outcomes: list[CombinationOutcome] = []
    pending: list[tuple[CombinationOutcome, VariantCombination]] = []

    for combo in cartesian_product(values_by_type):
        values = list(combo.values())
        outcome = CombinationOutcome(
            status="planned",
            variant_name=combination_label(values),
            variant_data=combo,
        )
        outcomes.append(outcome)

        if len(outcome.variant_name) > VARIANT_NAME_MAX_LENGTH:
            outcome.status = "failed"
            outcome.reason = VARIANT_NAME_TOO_LONG
            continue

        if base_data.variant_sku:
            sku = base_data.variant_sku if base_data.variant_sku not in taken else None
        else:
            sku = synthesize_sku(product.sku, values, taken)
            if sku is not None and len(sku) > len(product.sku) + 1 + settings.VARIANT_SKU_SUFFIX_LENGTH:
                logger.warning("SKU suffix extended to avoid a collision: %s", sku)

        if sku is None:
            outcome.status = "failed"
            outcome.reason = SKU_CONFLICT
            continue
        taken.add(sku)
        outcome.variant_sku = sku

        if dry_run:
            continue

        combination = VariantCombination(
            product_id=product_id,
            variant_sku=sku,
            variant_name=outcome.variant_name,
            price=base_data.price,
            cost_price=base_data.cost_price,
            stock_quantity=base_data.stock_quantity,
            image_url=base_data.image_url,
            is_active=base_data.is_active,
            variant_data=combo,
        )
        pending.append((outcome, combination))

    for outcome, combination in pending:
        try:
            async with db.begin_nested():
                db.add(combination)
                await db.flush()
        except sa_exc.IntegrityError:
            logger.warning("Variant SKU %s rejected by storage constraint", combination.variant_sku)
            outcome.status = "failed"
            outcome.reason = SKU_CONFLICT
            continue
        except sa_exc.DataError:
            logger.exception("Variant %s rejected by storage limits", combination.variant_sku)
            outcome.status = "failed"
            outcome.reason = STORAGE_REJECTED
            continue
        outcome.status = "created"
        outcome.id = combination.id

    ids = [outcome.id for outcome in outcomes if outcome.status == "created"]
    failed_count = sum(1 for outcome in outcomes if outcome.status == "failed")

    if not dry_run:
        db.add(
            AuditLog(
                user_id=actor_id,
                action="variant.bulk_generate",
                resource_type="product",
                resource_id=product_id,
                new_values={
                    "variant_type_ids": [str(type_id) for type_id in variant_type_ids],
                    "created_count": len(ids),
                    "failed_count": failed_count,
                },
            )
        )
        await db.flush()
        logger.info(
            "Generated combinations for product %s: %d created, %d failed",
            product_id,
            len(ids),
            failed_count,
        )

    return BulkGenerateResponse(
        total=total,
        created_count=len(ids),
        failed_count=failed_count,
        ids=ids,
        dry_run=dry_run,
        results=outcomes,
    )

