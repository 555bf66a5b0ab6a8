"""
Pricing tier service: tier validation, quantity/variant-aware tier resolution,
pricing summaries and single-tier CRUD.
"""

import logging
import uuid
from collections.abc import Iterable, Mapping
from decimal import Decimal

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.config import settings
from catalog.core.exceptions import NotFoundError, TierValidationError
from catalog.models.pricing_tier import PricingTier
from catalog.models.product import Product
from catalog.models.variant import VariantCombination
from catalog.schemas.pricing import PricingSummary, PricingTierCreate, PricingTierUpdate

logger = logging.getLogger(__name__)

UNIT_TYPES: dict[str, str] = {
    "piece": "Piece(s)",
    "kg": "Kilogram(s)",
    "g": "Gram(s)",
    "liter": "Liter(s)",
    "ml": "Milliliter(s)",
    "meter": "Meter(s)",
    "cm": "Centimeter(s)",
    "pack": "Pack(s)",
    "box": "Box(es)",
    "bundle": "Bundle(s)",
    "dozen": "Dozen",
}

TIER_FIELDS = (
    "variant_combination_id",
    "unit_type",
    "min_quantity",
    "max_quantity",
    "price",
    "cost_price",
    "discount_percent",
    "is_active",
    "sort_order",
)

# Must match the Numeric columns of pricing_tiers
TIER_COLUMN_PRECISION: dict[str, tuple[int, int]] = {
    "min_quantity": (12, 3),
    "max_quantity": (12, 3),
    "price": (10, 2),
    "cost_price": (10, 2),
    "discount_percent": (5, 2),
}

TIER_NUMBER_LABELS = {
    "min_quantity": "Minimum quantity",
    "max_quantity": "Maximum quantity",
    "price": "Price",
    "cost_price": "Cost price",
    "discount_percent": "Discount percent",
}


# --- Pure helpers ---

def validate_tier(data: Mapping) -> list[str]:
    """Check a tier payload and return every violated rule (empty list = valid)."""
    errors: list[str] = []

    if data.get("product_id") is None:
        errors.append("Product ID is required")

    min_quantity = data.get("min_quantity")
    if min_quantity is None:
        errors.append("Minimum quantity is required")
    elif min_quantity <= 0:
        errors.append("Minimum quantity must be greater than zero")

    max_quantity = data.get("max_quantity")
    if max_quantity is not None:
        if max_quantity <= 0:
            errors.append("Maximum quantity must be a positive number")
        elif min_quantity is not None and max_quantity <= min_quantity:
            errors.append("Maximum quantity must be greater than minimum quantity")

    price = data.get("price")
    if price is None:
        errors.append("Price is required")
    elif price < 0:
        errors.append("Price must not be negative")

    cost_price = data.get("cost_price")
    if cost_price is not None and cost_price < 0:
        errors.append("Cost price must not be negative")

    discount_percent = data.get("discount_percent")
    if discount_percent is not None and not 0 <= discount_percent <= 100:
        errors.append("Discount percent must be between 0 and 100")

    for field, label in TIER_NUMBER_LABELS.items():
        value = data.get(field)
        if value is None:
            continue
        precision, scale = TIER_COLUMN_PRECISION[field]
        if not fits_numeric(value, precision, scale):
            errors.append(
                f"{label} must have at most {precision - scale} digits "
                f"before and {scale} after the decimal point"
            )

    return errors


def fits_numeric(value, precision: int, scale: int) -> bool:
    """True when `value` is stored by a Numeric(precision, scale) column without rounding."""
    value = Decimal(str(value))
    if not value.is_finite():
        return False
    if value.normalize().as_tuple().exponent < -scale:
        return False
    return abs(value) < Decimal(10) ** (precision - scale)


def tier_covers(tier, quantity: Decimal) -> bool:
    """Range check: min inclusive, max inclusive, null max = unbounded."""
    if tier.min_quantity > quantity:
        return False
    return tier.max_quantity is None or tier.max_quantity >= quantity


def pick_tier(
    tiers: Iterable,
    quantity: Decimal,
    variant_combination_id: uuid.UUID | None = None,
):
    """Select the tier that applies to `quantity`, or None.

    Eligible: active tiers covering the quantity. With a variant, tiers scoped
    to that variant and product-wide tiers both apply; without one, only
    product-wide tiers do.

    Winner: variant-scoped before product-wide, then highest min_quantity,
    then lowest sort_order. Remaining ties keep input order.
    """
    candidates = []
    for tier in tiers:
        if not tier.is_active:
            continue
        scope = tier.variant_combination_id
        if variant_combination_id is None:
            if scope is not None:
                continue
        elif scope is not None and scope != variant_combination_id:
            continue
        if tier_covers(tier, quantity):
            candidates.append(tier)

    if not candidates:
        return None

    return min(
        candidates,
        key=lambda t: (t.variant_combination_id is None, -t.min_quantity, t.sort_order or 0),
    )


def summarize_tiers(tiers: list, base_price: Decimal | None) -> PricingSummary | None:
    """Min/max/count over the given tiers; None when there are none."""
    if not tiers:
        return None
    prices = [tier.price for tier in tiers]
    return PricingSummary(
        base_price=base_price,
        min_price=min(prices),
        max_price=max(prices),
        tier_count=len(tiers),
        has_tiers=True,
    )


def calculate_discount(original_price: Decimal, tier_price: Decimal) -> Decimal:
    """Percentage saved going from original_price to tier_price, 2 decimals."""
    if original_price is None or original_price <= 0:
        return Decimal("0")
    percent = (Decimal(original_price) - Decimal(tier_price)) / Decimal(original_price) * 100
    return round(percent, 2)


# --- Lookups ---

async def get_product_or_404(db: AsyncSession, product_id: uuid.UUID) -> Product:
    result = await db.execute(select(Product).where(Product.id == product_id))
    product = result.scalar_one_or_none()
    if product is None:
        raise NotFoundError("Product not found")
    return product


async def get_tier_or_404(db: AsyncSession, tier_id: uuid.UUID) -> PricingTier:
    result = await db.execute(select(PricingTier).where(PricingTier.id == tier_id))
    tier = result.scalar_one_or_none()
    if tier is None:
        raise NotFoundError("Pricing tier not found")
    return tier


async def list_tiers_for_product(
    db: AsyncSession, product_id: uuid.UUID, include_inactive: bool = False
) -> list[PricingTier]:
    query = select(PricingTier).where(PricingTier.product_id == product_id)
    if not include_inactive:
        query = query.where(PricingTier.is_active.is_(True))
    query = query.order_by(PricingTier.sort_order, PricingTier.min_quantity)

    result = await db.execute(query)
    return list(result.scalars().all())


async def list_tiers_for_variant(
    db: AsyncSession, variant_combination_id: uuid.UUID, include_inactive: bool = False
) -> list[PricingTier]:
    query = select(PricingTier).where(
        PricingTier.variant_combination_id == variant_combination_id
    )
    if not include_inactive:
        query = query.where(PricingTier.is_active.is_(True))
    query = query.order_by(PricingTier.sort_order, PricingTier.min_quantity)

    result = await db.execute(query)
    return list(result.scalars().all())


async def has_tiers(db: AsyncSession, product_id: uuid.UUID) -> bool:
    result = await db.execute(
        select(PricingTier.id)
        .where(PricingTier.product_id == product_id, PricingTier.is_active.is_(True))
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def variant_ids_for_product(db: AsyncSession, product_id: uuid.UUID) -> set[uuid.UUID]:
    result = await db.execute(
        select(VariantCombination.id).where(VariantCombination.product_id == product_id)
    )
    return set(result.scalars().all())


# --- Resolution & summary ---

async def resolve_tier(
    db: AsyncSession,
    product_id: uuid.UUID,
    quantity: Decimal,
    variant_combination_id: uuid.UUID | None = None,
) -> PricingTier | None:
    """Return the tier that prices `quantity` units, or None (use the base price)."""
    query = select(PricingTier).where(
        PricingTier.product_id == product_id,
        PricingTier.is_active.is_(True),
        PricingTier.min_quantity <= quantity,
        or_(PricingTier.max_quantity.is_(None), PricingTier.max_quantity >= quantity),
    )
    if variant_combination_id is not None:
        query = query.where(
            or_(
                PricingTier.variant_combination_id == variant_combination_id,
                PricingTier.variant_combination_id.is_(None),
            )
        )
    else:
        query = query.where(PricingTier.variant_combination_id.is_(None))
    query = query.order_by(PricingTier.created_at)

    result = await db.execute(query)
    return pick_tier(result.scalars().all(), quantity, variant_combination_id)


async def get_pricing_summary(db: AsyncSession, product_id: uuid.UUID) -> PricingSummary | None:
    """Summary over the product's active tiers; None when it has none."""
    tiers = await list_tiers_for_product(db, product_id)
    if not tiers:
        return None

    result = await db.execute(select(Product.price).where(Product.id == product_id))
    base_price = result.scalar_one_or_none()
    return summarize_tiers(tiers, base_price)


async def calculate_price(
    db: AsyncSession,
    product_id: uuid.UUID,
    quantity: Decimal,
    variant_combination_id: uuid.UUID | None = None,
) -> dict:
    """Price `quantity` units; raises NotFoundError when no tier covers it."""
    tier = await resolve_tier(db, product_id, quantity, variant_combination_id)
    if tier is None:
        raise NotFoundError("No pricing tier found for this quantity")

    result = await db.execute(select(Product.price).where(Product.id == product_id))
    base_price = result.scalar_one_or_none()

    savings_percent = None
    if base_price is not None and base_price > tier.price:
        savings_percent = calculate_discount(base_price, tier.price)

    return {
        "quantity": quantity,
        "price": tier.price,
        "total": quantity * tier.price,
        "tier": tier,
        "discount_percent": tier.discount_percent,
        "base_price": base_price,
        "savings_percent": savings_percent,
    }


async def get_tier_with_discount(
    db: AsyncSession, tier_id: uuid.UUID, base_price: Decimal | None = None
) -> dict:
    """Tier fields plus the saving relative to `base_price` when it is higher."""
    tier = await get_tier_or_404(db, tier_id)
    data = {field: getattr(tier, field) for field in (*TIER_FIELDS, "id", "product_id", "created_at", "updated_at")}
    data["base_price"] = base_price
    if base_price is not None and base_price > tier.price:
        data["discount_amount"] = base_price - tier.price
        data["calculated_discount_percent"] = calculate_discount(base_price, tier.price)
    return data


# --- CRUD ---

def build_tier(product_id: uuid.UUID, data: Mapping) -> PricingTier:
    return PricingTier(
        product_id=product_id,
        variant_combination_id=data.get("variant_combination_id"),
        unit_type=data.get("unit_type") or settings.DEFAULT_UNIT_TYPE,
        min_quantity=data["min_quantity"],
        max_quantity=data.get("max_quantity"),
        price=data["price"],
        cost_price=data.get("cost_price"),
        discount_percent=data.get("discount_percent"),
        is_active=data.get("is_active", True),
        sort_order=data.get("sort_order") or 0,
    )


async def create_tier(db: AsyncSession, body: PricingTierCreate) -> PricingTier:
    """Validate and insert a single tier."""
    data = body.model_dump()
    errors = validate_tier(data)
    if errors:
        raise TierValidationError(errors)

    await get_product_or_404(db, body.product_id)
    if body.variant_combination_id is not None:
        if body.variant_combination_id not in await variant_ids_for_product(db, body.product_id):
            raise NotFoundError("Variant combination not found for this product")

    tier = build_tier(body.product_id, data)
    db.add(tier)
    await db.flush()
    await db.refresh(tier)
    return tier


async def update_tier(db: AsyncSession, tier_id: uuid.UUID, body: PricingTierUpdate) -> PricingTier:
    """Apply a partial update; the merged tier must still pass validation."""
    tier = await get_tier_or_404(db, tier_id)
    changes = body.model_dump(exclude_unset=True)

    merged = {field: getattr(tier, field) for field in TIER_FIELDS}
    merged.update(changes)
    merged["product_id"] = tier.product_id
    errors = validate_tier(merged)
    if errors:
        raise TierValidationError(errors)

    new_scope = changes.get("variant_combination_id")
    if new_scope is not None and new_scope != tier.variant_combination_id:
        if new_scope not in await variant_ids_for_product(db, tier.product_id):
            raise NotFoundError("Variant combination not found for this product")

    for field, value in changes.items():
        # NOT NULL columns: an explicit null means "leave as is"
        if field in ("unit_type", "is_active", "sort_order") and value is None:
            continue
        setattr(tier, field, value)
    await db.flush()
    await db.refresh(tier)
    return tier


async def delete_tier(db: AsyncSession, tier_id: uuid.UUID) -> None:
    tier = await get_tier_or_404(db, tier_id)
    await db.delete(tier)
    await db.flush()
