from decimal import Decimal

from sqlalchemy import CheckConstraint, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog.db.base import BaseModel


class Product(BaseModel):
    """Catalog product. Owned by the product CRUD service; read here for SKU and base price."""

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("status IN ('draft', 'active', 'inactive', 'archived')", name="chk_product_status"),
    )

    sku: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True, default=0)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft", index=True)

    # Relationships
    pricing_tiers: Mapped[list["PricingTier"]] = relationship(
        "PricingTier", back_populates="product", cascade="all, delete-orphan"
    )
    variant_types: Mapped[list["VariantType"]] = relationship(
        "VariantType", back_populates="product", cascade="all, delete-orphan"
    )
    variant_combinations: Mapped[list["VariantCombination"]] = relationship(
        "VariantCombination", back_populates="product", cascade="all, delete-orphan"
    )
