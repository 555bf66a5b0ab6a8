"""Tier payload rules, discount math and summaries."""

import uuid
from decimal import Decimal

from catalog.services.pricing import (
    calculate_discount,
    fits_numeric,
    has_tiers,
    summarize_tiers,
    validate_tier,
)
from tests.conftest import make_result, make_session, make_tier

# ── Helpers ──────────────────────────────────────────────────────────────

VALID = {
    "product_id": uuid.uuid4(),
    "min_quantity": Decimal("1"),
    "max_quantity": Decimal("10"),
    "price": Decimal("30.00"),
}


def errors_for(**overrides):
    return validate_tier({**VALID, **overrides})


# ── validate_tier ────────────────────────────────────────────────────────

def test_valid_tier_has_no_errors():
    assert errors_for() == []


def test_unbounded_tier_is_valid():
    assert errors_for(max_quantity=None) == []


def test_zero_price_is_allowed():
    """A free tier is a legitimate price, not a missing one."""
    assert errors_for(price=Decimal("0")) == []


def test_missing_product():
    assert errors_for(product_id=None) == ["Product ID is required"]


def test_missing_min_quantity():
    assert errors_for(min_quantity=None) == ["Minimum quantity is required"]


def test_zero_min_quantity():
    assert errors_for(min_quantity=Decimal("0")) == ["Minimum quantity must be greater than zero"]


def test_max_equal_to_min_rejected():
    assert errors_for(min_quantity=Decimal("10"), max_quantity=Decimal("10")) == [
        "Maximum quantity must be greater than minimum quantity"
    ]


def test_max_below_min_rejected():
    assert errors_for(min_quantity=Decimal("10"), max_quantity=Decimal("5")) == [
        "Maximum quantity must be greater than minimum quantity"
    ]


def test_non_positive_max_rejected():
    assert "Maximum quantity must be a positive number" in errors_for(max_quantity=Decimal("0"))


def test_missing_price():
    assert errors_for(price=None) == ["Price is required"]


def test_negative_price():
    assert errors_for(price=Decimal("-1")) == ["Price must not be negative"]


def test_negative_cost_price():
    assert errors_for(cost_price=Decimal("-0.01")) == ["Cost price must not be negative"]


def test_discount_out_of_range():
    assert errors_for(discount_percent=Decimal("101")) == [
        "Discount percent must be between 0 and 100"
    ]
    assert errors_for(discount_percent=Decimal("-5")) == [
        "Discount percent must be between 0 and 100"
    ]
    assert errors_for(discount_percent=Decimal("100")) == []


def test_every_violation_is_reported():
    errors = validate_tier({"product_id": None, "min_quantity": None, "price": None})
    assert errors == [
        "Product ID is required",
        "Minimum quantity is required",
        "Price is required",
    ]


# ── calculate_discount ───────────────────────────────────────────────────

def test_discount_percentage():
    assert calculate_discount(Decimal("25.00"), Decimal("20.00")) == Decimal("20")


def test_discount_rounds_to_two_places():
    assert calculate_discount(Decimal("30"), Decimal("20")) == Decimal("33.33")


def test_discount_against_zero_price_is_zero():
    assert calculate_discount(Decimal("0"), Decimal("5")) == Decimal("0")


def test_tier_above_original_gives_negative_discount():
    assert calculate_discount(Decimal("10"), Decimal("12")) == Decimal("-20")


# ── summarize_tiers ──────────────────────────────────────────────────────

def test_summary_over_tiers():
    tiers = [
        make_tier(price=Decimal("30")),
        make_tier(price=Decimal("26")),
        make_tier(price=Decimal("20")),
    ]
    summary = summarize_tiers(tiers, Decimal("32"))

    assert summary.base_price == Decimal("32")
    assert summary.min_price == Decimal("20")
    assert summary.max_price == Decimal("30")
    assert summary.tier_count == 3
    assert summary.has_tiers is True


def test_summary_without_tiers_is_none():
    assert summarize_tiers([], Decimal("32")) is None


# ── has_tiers ────────────────────────────────────────────────────────────

async def test_has_tiers_when_an_active_tier_exists():
    db = make_session(make_result(one=uuid.uuid4()))
    assert await has_tiers(db, uuid.uuid4()) is True


async def test_has_no_tiers():
    db = make_session(make_result(one=None))
    assert await has_tiers(db, uuid.uuid4()) is False


# ── Column precision ─────────────────────────────────────────────────────

def test_min_quantity_finer_than_storage_rejected():
    """0.0001 would be stored as 0.000 and break the positive-minimum rule."""
    assert errors_for(min_quantity=Decimal("0.0001"), max_quantity=None) == [
        "Minimum quantity must have at most 9 digits before and 3 after the decimal point"
    ]


def test_max_quantity_finer_than_storage_rejected():
    """10.0004 would be stored as 10.000, equal to the minimum."""
    assert errors_for(min_quantity=Decimal("10"), max_quantity=Decimal("10.0004")) == [
        "Maximum quantity must have at most 9 digits before and 3 after the decimal point"
    ]


def test_price_too_large_rejected():
    assert errors_for(price=Decimal("123456789012")) == [
        "Price must have at most 8 digits before and 2 after the decimal point"
    ]


def test_fractional_cent_price_rejected():
    assert errors_for(price=Decimal("10.005")) == [
        "Price must have at most 8 digits before and 2 after the decimal point"
    ]


def test_trailing_zeros_fit_storage():
    assert errors_for(min_quantity=Decimal("2.50000"), price=Decimal("10.1000")) == []


def test_largest_storable_values_pass():
    assert errors_for(
        min_quantity=Decimal("1"),
        max_quantity=Decimal("999999999.999"),
        price=Decimal("99999999.99"),
        cost_price=Decimal("0.01"),
        discount_percent=Decimal("12.5"),
    ) == []


def test_fits_numeric():
    assert fits_numeric(Decimal("99999999.99"), 10, 2)
    assert not fits_numeric(Decimal("100000000"), 10, 2)
    assert not fits_numeric(Decimal("0.001"), 10, 2)
    assert fits_numeric(Decimal("1E+2"), 5, 2)
    assert not fits_numeric(Decimal("NaN"), 10, 2)
