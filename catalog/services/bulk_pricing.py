"""
Bulk tier operations: full replacement, append-only import and export.

Each item is validated on its own. Invalid items are reported back as
failed outcomes instead of aborting the batch (unless strict mode is asked for).
"""

import logging
import uuid

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.core.exceptions import TierValidationError
from catalog.models.audit_log import AuditLog
from catalog.models.pricing_tier import PricingTier
from catalog.schemas.pricing import BulkTiersResponse, PricingTierFields, TierOutcome
from catalog.services.pricing import (
    build_tier,
    get_product_or_404,
    list_tiers_for_product,
    validate_tier,
    variant_ids_for_product,
)

logger = logging.getLogger(__name__)


async def _check_items(
    db: AsyncSession, product_id: uuid.UUID, tiers: list[PricingTierFields]
) -> list[tuple[int, dict, list[str]]]:
    """Validate every item up front. Returns (index, data, errors) per item."""
    known_variants: set[uuid.UUID] | None = None
    checked = []
    for index, item in enumerate(tiers):
        data = item.model_dump()
        data["product_id"] = product_id
        errors = validate_tier(data)

        variant_id = data.get("variant_combination_id")
        if variant_id is not None:
            if known_variants is None:
                known_variants = await variant_ids_for_product(db, product_id)
            if variant_id not in known_variants:
                errors.append("Variant combination not found for this product")

        checked.append((index, data, errors))
    return checked


async def _insert_valid(
    db: AsyncSession, product_id: uuid.UUID, checked: list[tuple[int, dict, list[str]]]
) -> BulkTiersResponse:
    created: list[tuple[int, PricingTier]] = []
    results: list[TierOutcome] = []

    for index, data, errors in checked:
        if errors:
            logger.warning("Skipping tier %d for product %s: %s", index, product_id, ", ".join(errors))
            continue
        tier = build_tier(product_id, data)
        db.add(tier)
        created.append((index, tier))

    await db.flush()

    created_by_index = {index: tier for index, tier in created}
    for index, _data, errors in checked:
        tier = created_by_index.get(index)
        if tier is not None:
            results.append(TierOutcome(index=index, status="created", id=tier.id))
        else:
            results.append(TierOutcome(index=index, status="failed", errors=errors))

    ids = [tier.id for _index, tier in created]
    return BulkTiersResponse(
        created_count=len(ids),
        failed_count=len(results) - len(ids),
        ids=ids,
        results=results,
    )


async def replace_all(
    db: AsyncSession,
    product_id: uuid.UUID,
    tiers: list[PricingTierFields],
    actor_id: uuid.UUID | None = None,
    strict: bool = False,
) -> BulkTiersResponse:
    """Replace the product's whole tier set: delete every tier, insert the valid ones.

    Runs inside the request transaction, so the delete is rolled back if
    anything raises and readers never observe the product without tiers.
    In strict mode a single invalid item rejects the batch before any delete.
    """
    await get_product_or_404(db, product_id)
    checked = await _check_items(db, product_id, tiers)

    if strict:
        problems = [f"Tier {index}: {msg}" for index, _data, errors in checked for msg in errors]
        if problems:
            raise TierValidationError(problems)

    await db.execute(delete(PricingTier).where(PricingTier.product_id == product_id))
    response = await _insert_valid(db, product_id, checked)

    db.add(
        AuditLog(
            user_id=actor_id,
            action="pricing.bulk_replace",
            resource_type="product",
            resource_id=product_id,
            new_values={
                "created_count": response.created_count,
                "failed_count": response.failed_count,
                "ids": [str(tier_id) for tier_id in response.ids],
            },
        )
    )
    await db.flush()

    logger.info(
        "Replaced tiers for product %s: %d created, %d failed",
        product_id,
        response.created_count,
        response.failed_count,
    )
    return response


async def import_tiers(
    db: AsyncSession,
    product_id: uuid.UUID,
    tiers: list[PricingTierFields],
) -> BulkTiersResponse:
    """Append tiers to the product without touching the existing ones."""
    await get_product_or_404(db, product_id)
    checked = await _check_items(db, product_id, tiers)
    response = await _insert_valid(db, product_id, checked)
    logger.info(
        "Imported tiers for product %s: %d created, %d failed",
        product_id,
        response.created_count,
        response.failed_count,
    )
    return response


async def export_tiers(db: AsyncSession, product_id: uuid.UUID) -> list[PricingTier]:
    """All tiers of the product, inactive ones included."""
    return await list_tiers_for_product(db, product_id, include_inactive=True)
