"""SKU uniqueness and variant naming on single combination writes."""

import uuid
from types import SimpleNamespace

import pytest
from sqlalchemy import exc as sa_exc

from catalog.core.exceptions import ConflictError, NotFoundError, ValidationError
from catalog.models.audit_log import AuditLog
from catalog.models.variant import VariantCombination
from catalog.schemas.variant import CombinationCreate, CombinationUpdate
from catalog.services.variants import (
    STORAGE_REJECTED,
    VARIANT_NAME_TOO_LONG,
    create_combination,
    generate_variant_name,
    update_combination,
    variant_sku_exists,
)
from tests.conftest import make_product, make_result, make_session

SIZE_ID = uuid.uuid4()
COLOR_ID = uuid.uuid4()
TYPE_ROWS = [SimpleNamespace(id=SIZE_ID, name="Size"), SimpleNamespace(id=COLOR_ID, name="Color")]


def _combination(**overrides) -> VariantCombination:
    data = {
        "id": uuid.uuid4(),
        "product_id": uuid.uuid4(),
        "variant_sku": "TSHIRT-M-BLUE",
        "variant_name": "Size: M, Color: Blue",
        "stock_quantity": 0,
        "is_active": True,
        "variant_data": {str(SIZE_ID): "M", str(COLOR_ID): "Blue"},
    }
    data.update(overrides)
    return VariantCombination(**data)


# ── variant_sku_exists ───────────────────────────────────────────────────

async def test_sku_exists_when_row_found():
    db = make_session(make_result(one=uuid.uuid4()))
    assert await variant_sku_exists(db, "TSHIRT-M") is True


async def test_sku_free_when_no_row():
    db = make_session(make_result(one=None))
    assert await variant_sku_exists(db, "TSHIRT-M") is False


async def test_sku_check_filters_on_exact_sku():
    db = make_session(make_result(one=None))
    await variant_sku_exists(db, "TSHIRT-M")

    stmt = db.execute.call_args.args[0]
    assert "TSHIRT-M" in stmt.compile().params.values()


async def test_sku_check_can_exclude_the_row_being_updated():
    exclude = uuid.uuid4()
    db = make_session(make_result(one=None))
    await variant_sku_exists(db, "TSHIRT-M", exclude_id=exclude)

    stmt = db.execute.call_args.args[0]
    assert exclude in stmt.compile().params.values()


# ── generate_variant_name ────────────────────────────────────────────────

async def test_generated_name_follows_value_order():
    db = make_session(make_result(rows=TYPE_ROWS))
    name = await generate_variant_name(
        db, uuid.uuid4(), {str(COLOR_ID): "Blue", str(SIZE_ID): "M"}
    )
    assert name == "Color: Blue, Size: M"


async def test_generated_name_for_empty_map_skips_query():
    db = make_session()
    assert await generate_variant_name(db, uuid.uuid4(), {}) == ""
    db.execute.assert_not_called()


# ── create_combination ───────────────────────────────────────────────────

async def test_create_builds_name_and_audits():
    product = make_product()
    db = make_session(
        make_result(one=product),
        make_result(one=None),
        make_result(rows=TYPE_ROWS),
    )
    body = CombinationCreate(
        product_id=product.id,
        variant_sku="TSHIRT-M-BLUE",
        variant_values={str(SIZE_ID): "M", str(COLOR_ID): "Blue"},
    )

    combination = await create_combination(db, body, actor_id=uuid.uuid4())

    assert combination.variant_name == "Size: M, Color: Blue"
    assert combination.variant_data == {str(SIZE_ID): "M", str(COLOR_ID): "Blue"}
    assert combination.id is not None
    audit = [obj for obj in db.added if isinstance(obj, AuditLog)]
    assert len(audit) == 1
    assert audit[0].action == "variant.create"


async def test_create_keeps_explicit_name():
    product = make_product()
    db = make_session(make_result(one=product), make_result(one=None))
    body = CombinationCreate(
        product_id=product.id,
        variant_sku="TSHIRT-RED",
        variant_name="Red edition",
        variant_values={str(COLOR_ID): "Red"},
    )

    combination = await create_combination(db, body)

    assert combination.variant_name == "Red edition"
    assert db.execute.await_count == 2


async def test_create_with_taken_sku_conflicts():
    product = make_product()
    db = make_session(make_result(one=product), make_result(one=uuid.uuid4()))
    body = CombinationCreate(product_id=product.id, variant_sku="TSHIRT-M-BLUE")

    with pytest.raises(ConflictError) as exc:
        await create_combination(db, body)

    assert exc.value.status_code == 409
    assert db.added == []


async def test_create_for_unknown_product():
    db = make_session(make_result(one=None))
    body = CombinationCreate(product_id=uuid.uuid4(), variant_sku="X-1")

    with pytest.raises(NotFoundError):
        await create_combination(db, body)


async def test_storage_constraint_violation_becomes_conflict():
    """A concurrent insert slipping past the pre-check still ends in 409."""
    product = make_product()
    db = make_session(make_result(one=product), make_result(one=None))
    db.flush.side_effect = sa_exc.IntegrityError("INSERT", {}, Exception("duplicate key"))
    body = CombinationCreate(product_id=product.id, variant_sku="TSHIRT-RACE")

    with pytest.raises(ConflictError):
        await create_combination(db, body)


async def test_create_names_label_keyed_values():
    product = make_product()
    db = make_session(
        make_result(one=product),
        make_result(one=None),
        make_result(rows=TYPE_ROWS),
    )
    body = CombinationCreate(
        product_id=product.id, variant_sku="TSHIRT-M", variant_values={"Size": "M"}
    )

    combination = await create_combination(db, body)

    assert combination.variant_name == "Size: M"
    assert combination.variant_data == {"Size": "M"}


async def test_create_with_over_long_generated_name_is_rejected():
    product = make_product()
    db = make_session(
        make_result(one=product),
        make_result(one=None),
        make_result(rows=TYPE_ROWS),
    )
    body = CombinationCreate(
        product_id=product.id,
        variant_sku="TSHIRT-LONG",
        variant_values={str(SIZE_ID): "M" * 200, str(COLOR_ID): "Blue" * 20},
    )

    with pytest.raises(ValidationError) as exc:
        await create_combination(db, body)

    assert exc.value.status_code == 422
    assert exc.value.detail == VARIANT_NAME_TOO_LONG
    assert db.added == []


async def test_storage_data_error_becomes_validation_error():
    product = make_product()
    db = make_session(make_result(one=product), make_result(one=None))
    db.flush.side_effect = sa_exc.DataError("INSERT", {}, Exception("value too long"))
    body = CombinationCreate(product_id=product.id, variant_sku="TSHIRT-BIG", variant_name="Big")

    with pytest.raises(ValidationError) as exc:
        await create_combination(db, body)

    assert exc.value.detail == STORAGE_REJECTED


# ── update_combination ───────────────────────────────────────────────────

async def test_update_to_taken_sku_conflicts():
    combination = _combination()
    db = make_session(make_result(one=combination), make_result(one=uuid.uuid4()))

    with pytest.raises(ConflictError):
        await update_combination(db, combination.id, CombinationUpdate(variant_sku="TAKEN"))

    assert combination.variant_sku == "TSHIRT-M-BLUE"


async def test_update_with_same_sku_skips_check():
    combination = _combination()
    db = make_session(make_result(one=combination))

    updated = await update_combination(
        db, combination.id, CombinationUpdate(variant_sku="TSHIRT-M-BLUE", stock_quantity=7)
    )

    assert updated.stock_quantity == 7
    assert db.execute.await_count == 1
    assert not any(isinstance(obj, AuditLog) for obj in db.added)


async def test_sku_change_is_audited():
    combination = _combination()
    db = make_session(make_result(one=combination), make_result(one=None))

    await update_combination(db, combination.id, CombinationUpdate(variant_sku="TSHIRT-NEW"))

    assert combination.variant_sku == "TSHIRT-NEW"
    audit = [obj for obj in db.added if isinstance(obj, AuditLog)]
    assert audit[0].action == "variant.update"
    assert audit[0].old_values["variant_sku"] == "TSHIRT-M-BLUE"


async def test_new_values_regenerate_name():
    combination = _combination()
    db = make_session(make_result(one=combination), make_result(rows=TYPE_ROWS))

    await update_combination(
        db,
        combination.id,
        CombinationUpdate(variant_values={str(SIZE_ID): "L", str(COLOR_ID): "Red"}),
    )

    assert combination.variant_name == "Size: L, Color: Red"
    assert combination.variant_data == {str(SIZE_ID): "L", str(COLOR_ID): "Red"}


async def test_labels_used_when_keys_are_not_type_ids():
    combination = _combination()
    db = make_session(make_result(one=combination), make_result(rows=TYPE_ROWS))

    await update_combination(
        db, combination.id, CombinationUpdate(variant_values={"Size": "S"})
    )

    assert combination.variant_name == "Size: S"


async def test_update_with_over_long_name_leaves_combination_untouched():
    combination = _combination()
    db = make_session(make_result(one=combination), make_result(rows=TYPE_ROWS))

    with pytest.raises(ValidationError):
        await update_combination(
            db, combination.id, CombinationUpdate(variant_values={str(SIZE_ID): "X" * 300})
        )

    assert combination.variant_name == "Size: M, Color: Blue"
    assert combination.variant_data == {str(SIZE_ID): "M", str(COLOR_ID): "Blue"}
