"""Menu sync schema

Revision ID: 3c5e1a7d9b20
Revises:
Create Date: 2026-10-16 21:40:12.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c5e1a7d9b20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # 1. Independent tables
    op.create_table('menu_groups',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('tenant_id', sa.String(length=64), nullable=False),
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('display_order', sa.Integer(), nullable=False),
    sa.Column('service_availability', sa.JSON(), nullable=False),
    sa.Column('last_synced_at', sa.DateTime(), nullable=True),
    sa.Column('sync_status', sa.String(length=16), nullable=True),
    sa.Column('sync_error', sa.Text(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.Column('updated_at', sa.DateTime(), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_menu_groups_id'), 'menu_groups', ['id'], unique=False)
    op.create_index(op.f('ix_menu_groups_tenant_id'), 'menu_groups', ['tenant_id'], unique=False)

    op.create_table('menu_categories',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('tenant_id', sa.String(length=64), nullable=False),
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('source_category_id', sa.String(length=64), nullable=True),
    sa.Column('display_order', sa.Integer(), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.Column('updated_at', sa.DateTime(), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('tenant_id', 'source_category_id', name='uq_menu_categories_source')
    )
    op.create_index(op.f('ix_menu_categories_id'), 'menu_categories', ['id'], unique=False)
    op.create_index(op.f('ix_menu_categories_tenant_id'), 'menu_categories', ['tenant_id'], unique=False)

    op.create_table('menu_sync_history',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('tenant_id', sa.String(length=64), nullable=False),
    sa.Column('menu_group_id', sa.Integer(), nullable=True),
    sa.Column('sync_type', sa.String(length=16), nullable=False),
    sa.Column('menu_type', sa.String(length=64), nullable=False),
    sa.Column('item_count', sa.Integer(), nullable=False),
    sa.Column('category_count', sa.Integer(), nullable=False),
    sa.Column('modifier_group_count', sa.Integer(), nullable=False),
    sa.Column('skipped_count', sa.Integer(), nullable=False),
    sa.Column('custom_price_count', sa.Integer(), nullable=False),
    sa.Column('success', sa.Boolean(), nullable=False),
    sa.Column('error_message', sa.Text(), nullable=True),
    sa.Column('synced_at', sa.DateTime(), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_menu_sync_history_tenant_id'), 'menu_sync_history', ['tenant_id'], unique=False)

    # 2. Tables depending on menu groups and categories
    op.create_table('menu_category_items',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('menu_category_id', sa.Integer(), nullable=False),
    sa.Column('pos_item_id', sa.String(length=64), nullable=False),
    sa.Column('pos_item_name', sa.String(length=255), nullable=True),
    sa.Column('display_order', sa.Integer(), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.ForeignKeyConstraint(['menu_category_id'], ['menu_categories.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('menu_category_id', 'pos_item_id', name='uq_menu_category_items_item')
    )
    op.create_index(op.f('ix_menu_category_items_pos_item_id'), 'menu_category_items', ['pos_item_id'], unique=False)

    op.create_table('menu_group_categories',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('menu_group_id', sa.Integer(), nullable=False),
    sa.Column('menu_category_id', sa.Integer(), nullable=False),
    sa.Column('display_order', sa.Integer(), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.ForeignKeyConstraint(['menu_group_id'], ['menu_groups.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['menu_category_id'], ['menu_categories.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('menu_group_id', 'menu_category_id', name='uq_menu_group_categories_pair')
    )

    op.create_table('config_overrides',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('scope', sa.String(length=32), nullable=False),
    sa.Column('entity_ref', sa.String(length=512), nullable=False),
    sa.Column('menu_group_id', sa.Integer(), nullable=False),
    sa.Column('pos_item_id', sa.String(length=64), nullable=False),
    sa.Column('modifier_group_id', sa.String(length=64), nullable=True),
    sa.Column('modifier_option_id', sa.String(length=64), nullable=True),
    sa.Column('enabled', sa.Boolean(), nullable=False),
    sa.Column('price_override', sa.Integer(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.Column('updated_at', sa.DateTime(), nullable=False),
    sa.ForeignKeyConstraint(['menu_group_id'], ['menu_groups.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('scope', 'entity_ref', 'menu_group_id', name='uq_config_overrides_key')
    )
    op.create_index(op.f('ix_config_overrides_menu_group_id'), 'config_overrides', ['menu_group_id'], unique=False)
    op.create_index(op.f('ix_config_overrides_pos_item_id'), 'config_overrides', ['pos_item_id'], unique=False)

    op.create_table('sync_records',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('scope', sa.String(length=32), nullable=False),
    sa.Column('entity_ref', sa.String(length=512), nullable=False),
    sa.Column('menu_group_id', sa.Integer(), nullable=False),
    sa.Column('pos_item_id', sa.String(length=64), nullable=False),
    sa.Column('status', sa.String(length=16), nullable=False),
    sa.Column('error_detail', sa.Text(), nullable=True),
    sa.Column('last_synced_at', sa.DateTime(), nullable=True),
    sa.Column('updated_at', sa.DateTime(), nullable=False),
    sa.ForeignKeyConstraint(['menu_group_id'], ['menu_groups.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('scope', 'entity_ref', 'menu_group_id', name='uq_sync_records_key')
    )
    op.create_index(op.f('ix_sync_records_menu_group_id'), 'sync_records', ['menu_group_id'], unique=False)
    op.create_index(op.f('ix_sync_records_pos_item_id'), 'sync_records', ['pos_item_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    # Drop in reverse dependency order
    op.drop_index(op.f('ix_sync_records_pos_item_id'), table_name='sync_records')
    op.drop_index(op.f('ix_sync_records_menu_group_id'), table_name='sync_records')
    op.drop_table('sync_records')
    op.drop_index(op.f('ix_config_overrides_pos_item_id'), table_name='config_overrides')
    op.drop_index(op.f('ix_config_overrides_menu_group_id'), table_name='config_overrides')
    op.drop_table('config_overrides')
    op.drop_table('menu_group_categories')
    op.drop_index(op.f('ix_menu_category_items_pos_item_id'), table_name='menu_category_items')
    op.drop_table('menu_category_items')
    op.drop_index(op.f('ix_menu_sync_history_tenant_id'), table_name='menu_sync_history')
    op.drop_table('menu_sync_history')
    op.drop_index(op.f('ix_menu_categories_tenant_id'), table_name='menu_categories')
    op.drop_index(op.f('ix_menu_categories_id'), table_name='menu_categories')
    op.drop_table('menu_categories')
    op.drop_index(op.f('ix_menu_groups_tenant_id'), table_name='menu_groups')
    op.drop_index(op.f('ix_menu_groups_id'), table_name='menu_groups')
    op.drop_table('menu_groups')
