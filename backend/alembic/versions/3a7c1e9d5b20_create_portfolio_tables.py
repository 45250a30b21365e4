"""create_portfolio_tables

Revision ID: 3a7c1e9d5b20
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3a7c1e9d5b20'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'portfolios',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('owner_id', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_portfolios_owner_id', 'portfolios', ['owner_id'])

    op.create_table(
        'holdings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('portfolio_id', sa.Uuid(), nullable=False),
        sa.Column('ticker', sa.String(length=20), nullable=False),
        sa.Column('weight_pct', sa.Numeric(5, 2), nullable=False),
        sa.Column('sector', sa.Text(), nullable=True),
        sa.Column('market_cap', sa.Numeric(24, 2), nullable=True),
        sa.Column('co2_emission', sa.Numeric(20, 4), nullable=True),
        sa.Column('data_sources', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['portfolio_id'], ['portfolios.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_holdings_portfolio_id', 'holdings', ['portfolio_id'])

    op.create_table(
        'peer_recommendations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('portfolio_id', sa.Uuid(), nullable=False),
        sa.Column('holding_id', sa.Uuid(), nullable=False),
        sa.Column('peer_ticker', sa.String(length=20), nullable=False),
        sa.Column('peer_sector', sa.Text(), nullable=True),
        sa.Column('peer_market_cap', sa.Numeric(24, 2), nullable=True),
        sa.Column('peer_co2_emission', sa.Numeric(20, 4), nullable=True),
        sa.Column('rank', sa.Integer(), nullable=False),
        sa.Column('sources', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['portfolio_id'], ['portfolios.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['holding_id'], ['holdings.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('holding_id', 'rank', name='uq_peer_recommendations_holding_rank'),
    )
    op.create_index('ix_peer_recommendations_portfolio_id', 'peer_recommendations', ['portfolio_id'])
    op.create_index('ix_peer_recommendations_holding_id', 'peer_recommendations', ['holding_id'])


def downgrade() -> None:
    op.drop_index('ix_peer_recommendations_holding_id', table_name='peer_recommendations')
    op.drop_index('ix_peer_recommendations_portfolio_id', table_name='peer_recommendations')
    op.drop_table('peer_recommendations')
    op.drop_index('ix_holdings_portfolio_id', table_name='holdings')
    op.drop_table('holdings')
    op.drop_index('ix_portfolios_owner_id', table_name='portfolios')
    op.drop_table('portfolios')
