"""Initial schema

Creates the two tables of the price history backend.

Tables:
    - assets: Holdings owned by users (quoted or manually priced)
    - asset_history: One price per asset per calendar day

Revision ID: 001
Revises: None
Create Date: 2025-01-02

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ==========================================================================
    # ASSETS
    # ==========================================================================
    op.create_table(
        'assets',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('symbol', sa.String(), nullable=True),
        sa.Column('category', sa.Enum('STOCKS', 'CRYPTO', 'SAVINGS', 'REAL_ESTATE', 'OTHER', name='assetcategory'), nullable=False),
        sa.Column('region', sa.String(), nullable=True),
        sa.Column('sector', sa.String(), nullable=True),
        sa.Column('quantity', sa.Numeric(18, 8), nullable=False, server_default='0'),
        sa.Column('purchase_price', sa.Numeric(18, 2), nullable=False, server_default='0'),
        sa.Column('current_price', sa.Numeric(18, 2), nullable=True),
        sa.Column('apy', sa.Numeric(6, 3), nullable=True),
        sa.Column('last_updated', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )

    # ==========================================================================
    # ASSET HISTORY
    # ==========================================================================
    op.create_table(
        'asset_history',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('asset_id', sa.String(36), sa.ForeignKey('assets.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('price', sa.Numeric(18, 2), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('recorded_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('asset_id', 'date', name='uq_asset_history_asset_date'),
    )

    op.create_index('ix_asset_history_user_date', 'asset_history', ['user_id', 'date'])


def downgrade() -> None:
    op.drop_index('ix_asset_history_user_date', table_name='asset_history')
    op.drop_table('asset_history')
    op.drop_table('assets')

    op.execute('DROP TYPE IF EXISTS assetcategory')
