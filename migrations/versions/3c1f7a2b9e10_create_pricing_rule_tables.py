"""Create pricing rule tables

Revision ID: 3c1f7a2b9e10
Revises:
Create Date: 2026-10-19 09:12:44.118203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f7a2b9e10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'pricing_rules',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('rule_type', sa.String(50), nullable=False, server_default='price_rule'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('discount_type', sa.String(50), nullable=False),
        sa.Column('discount_value', sa.Numeric(19, 4), nullable=False, server_default='0'),
        sa.Column('apply_to', sa.String(50), nullable=False, server_default='all_products'),
        sa.Column('conditions', sa.Text(), nullable=True),
        sa.Column('schedule_from', sa.DateTime(), nullable=True),
        sa.Column('schedule_to', sa.DateTime(), nullable=True),
        sa.Column('usage_limit', sa.Integer(), nullable=True),
        sa.Column('usage_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('exclusive', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_pricing_rules_rule_type', 'pricing_rules', ['rule_type'])
    op.create_index('ix_pricing_rules_status', 'pricing_rules', ['status'])
    op.create_index('ix_pricing_rules_schedule_from', 'pricing_rules', ['schedule_from'])
    op.create_index('ix_pricing_rules_schedule_to', 'pricing_rules', ['schedule_to'])

    op.create_table(
        'quantity_ranges',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('rule_id', sa.Integer(), nullable=False),
        sa.Column('min_quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('max_quantity', sa.Integer(), nullable=True),
        sa.Column('discount_type', sa.String(50), nullable=False, server_default='percentage'),
        sa.Column('discount_value', sa.Numeric(19, 4), nullable=False, server_default='0'),
    )
    op.create_index('ix_quantity_ranges_rule_id', 'quantity_ranges', ['rule_id'])

    op.create_table(
        'rule_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('rule_id', sa.Integer(), nullable=False),
        sa.Column('item_type', sa.String(50), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
    )
    op.create_index('ix_rule_items_rule_id', 'rule_items', ['rule_id'])
    op.create_index('ix_rule_items_item_id', 'rule_items', ['item_id'])

    op.create_table(
        'rule_exclusions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('rule_id', sa.Integer(), nullable=False),
        sa.Column('exclusion_type', sa.String(50), nullable=False),
        sa.Column('exclusion_id', sa.Integer(), nullable=False),
    )
    op.create_index('ix_rule_exclusions_rule_id', 'rule_exclusions', ['rule_id'])

    op.create_table(
        'gift_products',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('rule_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('discount_type', sa.String(50), nullable=False, server_default='percentage'),
        sa.Column('discount_value', sa.Numeric(19, 4), nullable=False, server_default='100'),
    )
    op.create_index('ix_gift_products_rule_id', 'gift_products', ['rule_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('gift_products')
    op.drop_table('rule_exclusions')
    op.drop_table('rule_items')
    op.drop_table('quantity_ranges')
    op.drop_table('pricing_rules')
