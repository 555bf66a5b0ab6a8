import uuid
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog.db.base import BaseModel


class PricingTier(BaseModel):
    """Quantity-ranged price for a product, optionally scoped to one variant combination.

    A null ``variant_combination_id`` means the tier applies to the product
    regardless of variant. Ranges of the same scope may overlap; resolution
    order decides which one wins.
    """

    __tablename__ = "pricing_tiers"
    __table_args__ = (
        CheckConstraint("min_quantity > 0", name="chk_tier_min_quantity_positive"),
        CheckConstraint(
            "max_quantity IS NULL OR max_quantity > min_quantity",
            name="chk_tier_max_above_min",
        ),
        CheckConstraint("price >= 0", name="chk_tier_price_non_negative"),
        CheckConstraint("cost_price IS NULL OR cost_price >= 0", name="chk_tier_cost_price_non_negative"),
        CheckConstraint(
            "discount_percent IS NULL OR (discount_percent >= 0 AND discount_percent <= 100)",
            name="chk_tier_discount_percent_range",
        ),
    )

    product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    variant_combination_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("variant_combinations.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    unit_type: Mapped[str] = mapped_column(String(20), nullable=False, default="piece")

    # Quantity range: min inclusive, max inclusive, null max = unbounded
    min_quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    max_quantity: Mapped[Decimal | None] = mapped_column(Numeric(12, 3), nullable=True)

    # Pricing
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    cost_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    discount_percent: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    product: Mapped["Product"] = relationship("Product", back_populates="pricing_tiers")
