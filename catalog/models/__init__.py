from catalog.models.audit_log import AuditLog
from catalog.models.pricing_tier import PricingTier
from catalog.models.product import Product
from catalog.models.variant import VariantCombination, VariantType, VariantValue

__all__ = [
    "AuditLog",
    "PricingTier",
    "Product",
    "VariantCombination",
    "VariantType",
    "VariantValue",
]
