"""create_catalog_pricing_and_variant_tables

Revision ID: 4d2e9a7c1b30
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '4d2e9a7c1b30'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'products',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('sku', sa.String(100), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft'),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('draft', 'active', 'inactive', 'archived')", name='chk_product_status'
        ),
    )
    op.create_index('ix_products_status', 'products', ['status'])

    op.create_table(
        'variant_types',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'product_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('products.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False),
        sa.Column('kind', sa.String(20), nullable=False, server_default='dropdown'),
        sa.Column('is_required', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_variant_types_product_id', 'variant_types', ['product_id'])

    op.create_table(
        'variant_values',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'variant_type_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('variant_types.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('value', sa.String(100), nullable=False),
        sa.Column('display_value', sa.String(100), nullable=False),
        sa.Column('color_code', sa.String(20), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_variant_values_variant_type_id', 'variant_values', ['variant_type_id'])

    op.create_table(
        'variant_combinations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'product_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('products.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('variant_sku', sa.String(150), nullable=False),
        sa.Column('variant_name', sa.String(255), nullable=False, server_default=''),
        sa.Column('price', sa.Numeric(10, 2), nullable=True),
        sa.Column('cost_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('stock_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('variant_data', postgresql.JSON(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('variant_sku', name='uq_variant_combinations_variant_sku'),
    )
    op.create_index('ix_variant_combinations_product_id', 'variant_combinations', ['product_id'])

    op.create_table(
        'pricing_tiers',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'product_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('products.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'variant_combination_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('variant_combinations.id', ondelete='CASCADE'),
            nullable=True,
        ),
        sa.Column('unit_type', sa.String(20), nullable=False, server_default='piece'),
        sa.Column('min_quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('max_quantity', sa.Numeric(12, 3), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('cost_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('discount_percent', sa.Numeric(5, 2), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.CheckConstraint('min_quantity > 0', name='chk_tier_min_quantity_positive'),
        sa.CheckConstraint(
            'max_quantity IS NULL OR max_quantity > min_quantity', name='chk_tier_max_above_min'
        ),
        sa.CheckConstraint('price >= 0', name='chk_tier_price_non_negative'),
        sa.CheckConstraint(
            'cost_price IS NULL OR cost_price >= 0', name='chk_tier_cost_price_non_negative'
        ),
        sa.CheckConstraint(
            'discount_percent IS NULL OR (discount_percent >= 0 AND discount_percent <= 100)',
            name='chk_tier_discount_percent_range',
        ),
    )
    op.create_index('ix_pricing_tiers_product_id', 'pricing_tiers', ['product_id'])
    op.create_index('ix_pricing_tiers_variant_combination_id', 'pricing_tiers', ['variant_combination_id'])
    op.create_index('ix_pricing_tiers_is_active', 'pricing_tiers', ['is_active'])

    op.create_table(
        'audit_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('resource_type', sa.String(50), nullable=False),
        sa.Column('resource_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('old_values', postgresql.JSONB(), nullable=True),
        sa.Column('new_values', postgresql.JSONB(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('pricing_tiers')
    op.drop_table('variant_combinations')
    op.drop_table('variant_values')
    op.drop_table('variant_types')
    op.drop_table('products')
