import uuid
from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog.db.base import BaseModel


class VariantType(BaseModel):
    """A named axis of variation for a product (Size, Color, ...)."""

    __tablename__ = "variant_types"

    product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    # dropdown / color / text / multiselect: display vocabulary only
    kind: Mapped[str] = mapped_column(String(20), nullable=False, default="dropdown")
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    product: Mapped["Product"] = relationship("Product", back_populates="variant_types")
    values: Mapped[list["VariantValue"]] = relationship(
        "VariantValue",
        back_populates="variant_type",
        cascade="all, delete-orphan",
        order_by="[VariantValue.sort_order, VariantValue.created_at]",
        lazy="selectin",
    )


class VariantValue(BaseModel):
    __tablename__ = "variant_values"

    variant_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("variant_types.id", ondelete="CASCADE"), nullable=False, index=True
    )
    value: Mapped[str] = mapped_column(String(100), nullable=False)
    display_value: Mapped[str] = mapped_column(String(100), nullable=False)
    # Only meaningful when the owning type's kind is "color"
    color_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    variant_type: Mapped["VariantType"] = relationship("VariantType", back_populates="values")


class VariantCombination(BaseModel):
    """One sellable SKU: a single value chosen for each type the product varies over."""

    __tablename__ = "variant_combinations"
    __table_args__ = (
        UniqueConstraint("variant_sku", name="uq_variant_combinations_variant_sku"),
    )

    product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Unique system-wide; the service pre-checks, the constraint is the real guard
    variant_sku: Mapped[str] = mapped_column(String(150), nullable=False)
    variant_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    # Overrides (null = inherit from product)
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    cost_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    stock_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # variant type id -> selected value. Plain JSON (not JSONB) keeps key order.
    variant_data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    # Relationships
    product: Mapped["Product"] = relationship("Product", back_populates="variant_combinations")
