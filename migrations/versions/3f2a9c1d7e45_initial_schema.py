"""initial schema

Revision ID: 3f2a9c1d7e45
Revises: 
Create Date: 2026-10-12 10:41:27.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7e45'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


shop_plan_enum = sa.Enum('Free', 'Standard', 'Enterprise', name='shop_plan', native_enum=False)
event_type_enum = sa.Enum('impression', 'click', 'add_to_cart', name='analytics_event_type', native_enum=False)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'tbl_shops',
        sa.Column('id', sa.String(length=255), primary_key=True, nullable=False),
        sa.Column('plan', shop_plan_enum, nullable=False, server_default=sa.text("'Free'")),
        sa.Column('recommendations_used', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('billing_cycle_start', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('created_date', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.CheckConstraint('recommendations_used >= 0', name='ck_shops_used_non_negative'),
    )

    op.create_table(
        'tbl_recommendation_overrides',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('shop_domain', sa.String(length=255), nullable=False),
        sa.Column('handle', sa.String(length=255), nullable=False),
        sa.Column('source_product', sa.Text(), nullable=False),
        sa.Column('recommended_products', sa.Text(), nullable=False),
        sa.Column('priority', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_date', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.UniqueConstraint('shop_domain', 'handle', name='uq_recommendation_override_handle'),
    )
    op.create_index(
        'ix_recommendation_overrides_shop_updated',
        'tbl_recommendation_overrides',
        ['shop_domain', 'updated_date'],
    )

    op.create_table(
        'tbl_recommendation_analytics',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), primary_key=True, autoincrement=True),
        sa.Column('handle', sa.Text(), nullable=False),
        sa.Column('shop_domain', sa.String(length=255), nullable=False),
        sa.Column('source_product_id', sa.Text(), nullable=False),
        sa.Column('recommended_product_id', sa.Text(), nullable=False),
        sa.Column('event_type', event_type_enum, nullable=False),
        sa.Column('event_date', sa.Date(), nullable=False),
        sa.Column('count', sa.BigInteger(), nullable=False, server_default=sa.text('1')),
        sa.UniqueConstraint(
            'shop_domain',
            'source_product_id',
            'recommended_product_id',
            'event_type',
            'event_date',
            name='uq_recommendation_analytics_key',
        ),
        sa.CheckConstraint('count > 0', name='ck_recommendation_analytics_count_positive'),
    )
    op.create_index('ix_tbl_recommendation_analytics_handle', 'tbl_recommendation_analytics', ['handle'])
    op.create_index(
        'ix_recommendation_analytics_shop_date',
        'tbl_recommendation_analytics',
        ['shop_domain', 'event_date'],
    )

    op.create_table(
        'tbl_catalog_products',
        sa.Column('shop_domain', sa.String(length=255), nullable=False),
        sa.Column('product_id', sa.String(length=255), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('handle', sa.Text(), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('image_alt', sa.Text(), nullable=True),
        sa.Column('price_amount', sa.String(length=32), nullable=True),
        sa.Column('currency_code', sa.String(length=3), nullable=True),
        sa.Column('variant_id', sa.Text(), nullable=True),
        sa.Column('updated_date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('shop_domain', 'product_id', name='pk_catalog_products'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('tbl_catalog_products')
    op.drop_index('ix_recommendation_analytics_shop_date', table_name='tbl_recommendation_analytics')
    op.drop_index('ix_tbl_recommendation_analytics_handle', table_name='tbl_recommendation_analytics')
    op.drop_table('tbl_recommendation_analytics')
    op.drop_index('ix_recommendation_overrides_shop_updated', table_name='tbl_recommendation_overrides')
    op.drop_table('tbl_recommendation_overrides')
    op.drop_table('tbl_shops')
