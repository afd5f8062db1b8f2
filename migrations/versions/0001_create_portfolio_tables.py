"""Create properties and monthly_financials tables

Revision ID: 0001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _money(name: str) -> sa.Column:
    return sa.Column(name, sa.Float(), nullable=False, server_default='0')


def upgrade() -> None:
    op.create_table(
        'properties',
        sa.Column('property_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('property_name', sa.String(255), nullable=False),
        sa.Column('address', sa.String(255), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('state', sa.String(50), nullable=True),
        sa.Column('purchase_price', sa.Float(), nullable=False, server_default='0'),
        sa.Column('unit_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_properties_property_name', 'properties', ['property_name'])

    op.create_table(
        'monthly_financials',
        sa.Column('financial_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('property_id', sa.Integer(),
                  sa.ForeignKey('properties.property_id', ondelete='CASCADE'), nullable=False),
        sa.Column('reporting_month', sa.Date(), nullable=False),
        # Income
        _money('gross_rent'),
        _money('vacancy_loss'),
        _money('other_income'),
        _money('total_income'),
        # Operating expenses
        _money('repairs_maintenance'),
        _money('utilities'),
        _money('property_management'),
        _money('property_taxes'),
        _money('insurance'),
        _money('marketing'),
        _money('administrative'),
        _money('total_expenses'),
        # Results
        _money('noi'),
        _money('debt_service'),
        _money('cash_flow'),
        # Rates
        _money('vacancy_rate'),
        _money('occupancy_rate'),
        sa.Column('source', sa.String(255), nullable=False, server_default='Manual Entry'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('property_id', 'reporting_month', name='uq_financials_property_month'),
    )
    op.create_index('idx_financials_month', 'monthly_financials', ['reporting_month'])


def downgrade() -> None:
    op.drop_index('idx_financials_month', table_name='monthly_financials')
    op.drop_table('monthly_financials')
    op.drop_index('ix_properties_property_name', table_name='properties')
    op.drop_table('properties')
