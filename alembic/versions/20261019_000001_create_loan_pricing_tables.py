"""Create loan pricing tables

Revision ID: 20261019_000001
Revises: None
Create Date: 2026-10-19

This migration creates customers, fee configs, loans with their fees and
invoices, and the loan snapshot history table.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


fee_calculation_type = sa.Enum('flat', 'percentage', 'tiered', name='fee_calculation_type')
fee_basis = sa.Enum('principal', 'outstanding', 'total_invoices', name='fee_basis')
loan_fee_calculation_type = sa.Enum('flat', 'percentage', 'tiered', name='loan_fee_calculation_type')
loan_fee_basis = sa.Enum('principal', 'outstanding', 'total_invoices', name='loan_fee_basis')


def upgrade() -> None:
    """Create the loan pricing tables."""
    op.create_table(
        'customers',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_customers'),
    )
    op.create_index('ix_customers_code', 'customers', ['code'], unique=True)

    op.create_table(
        'fee_configs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('code', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('fee_type', sa.String(length=50), nullable=False),
        sa.Column('calculation_type', fee_calculation_type, nullable=False),
        sa.Column('default_flat_amount', sa.Float(), nullable=True),
        sa.Column('default_rate', sa.Float(), nullable=True),
        sa.Column('default_basis_amount', fee_basis, nullable=True),
        sa.Column('default_tiers', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_fee_configs'),
    )
    op.create_index('ix_fee_configs_code', 'fee_configs', ['code'], unique=True)

    op.create_table(
        'loans',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('loan_number', sa.String(length=50), nullable=False),
        sa.Column('customer_id', sa.String(length=36), nullable=True),
        sa.Column('borrower_id', sa.String(length=36), nullable=False),
        sa.Column('borrower_name', sa.String(length=255), nullable=False),
        sa.Column('total_amount', sa.Float(), nullable=False),
        sa.Column('outstanding_amount', sa.Float(), nullable=False),
        sa.Column('total_invoice_amount', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column(
            'status',
            sa.Enum('draft', 'pending', 'active', 'closed', 'defaulted', name='loan_status'),
            nullable=False,
        ),
        sa.Column(
            'pricing_status',
            sa.Enum('pending', 'priced', 'approved', 'rejected', name='pricing_status'),
            nullable=False,
        ),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('maturity_date', sa.Date(), nullable=False),
        sa.Column('base_rate', sa.Float(), nullable=False),
        sa.Column('spread', sa.Float(), nullable=False),
        sa.Column('effective_rate', sa.Float(), nullable=False),
        sa.Column(
            'day_count_convention',
            sa.Enum('30/360', 'actual/360', 'actual/365', name='day_count_convention'),
            nullable=False,
        ),
        sa.Column(
            'accrual_method',
            sa.Enum('simple', 'compound', name='accrual_method'),
            nullable=False,
        ),
        sa.Column('interest_amount', sa.Float(), nullable=False),
        sa.Column('total_fees', sa.Float(), nullable=False),
        sa.Column('net_proceeds', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_loans'),
        sa.ForeignKeyConstraint(
            ['customer_id'],
            ['customers.id'],
            name='fk_loans_customer_id',
            ondelete='CASCADE'
        ),
    )
    op.create_index('ix_loans_loan_number', 'loans', ['loan_number'], unique=True)
    op.create_index('ix_loans_customer_id', 'loans', ['customer_id'])
    op.create_index('ix_loans_currency', 'loans', ['currency'])
    op.create_index('ix_loans_status', 'loans', ['status'])
    op.create_index('ix_loans_maturity_date', 'loans', ['maturity_date'])

    op.create_table(
        'fees',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('loan_id', sa.String(length=36), nullable=False),
        sa.Column('fee_config_id', sa.String(length=36), nullable=True),
        sa.Column('code', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('calculation_type', loan_fee_calculation_type, nullable=False),
        sa.Column('flat_amount', sa.Float(), nullable=True),
        sa.Column('rate', sa.Float(), nullable=True),
        sa.Column('basis_amount', loan_fee_basis, nullable=True),
        sa.Column('tiers', sa.JSON(), nullable=True),
        sa.Column('calculated_amount', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('is_waived', sa.Boolean(), nullable=False),
        sa.Column('is_overridden', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_fees'),
        sa.ForeignKeyConstraint(
            ['loan_id'],
            ['loans.id'],
            name='fk_fees_loan_id',
            ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['fee_config_id'],
            ['fee_configs.id'],
            name='fk_fees_fee_config_id',
        ),
    )
    op.create_index('ix_fees_loan_id', 'fees', ['loan_id'])

    op.create_table(
        'invoices',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('loan_id', sa.String(length=36), nullable=False),
        sa.Column('invoice_number', sa.String(length=50), nullable=False),
        sa.Column('buyer_name', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('issue_date', sa.Date(), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column(
            'status',
            sa.Enum('pending', 'collected', 'overdue', 'disputed', name='invoice_status'),
            nullable=False,
        ),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_invoices'),
        sa.ForeignKeyConstraint(
            ['loan_id'],
            ['loans.id'],
            name='fk_invoices_loan_id',
            ondelete='CASCADE'
        ),
    )
    op.create_index('ix_invoices_loan_id', 'invoices', ['loan_id'])
    op.create_index('ix_invoices_invoice_number', 'invoices', ['invoice_number'])
    op.create_index('ix_invoices_due_date', 'invoices', ['due_date'])

    op.create_table(
        'loan_snapshots',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('customer_id', sa.String(length=36), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('user_id', sa.String(length=100), nullable=False),
        sa.Column('user_name', sa.String(length=255), nullable=False),
        sa.Column('loans_compressed', sa.LargeBinary(), nullable=False),
        sa.Column('summary', sa.JSON(), nullable=False),
        sa.Column('delta', sa.JSON(), nullable=True),
        sa.Column('changes', sa.JSON(), nullable=False),
        sa.Column('change_count', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_loan_snapshots'),
        sa.ForeignKeyConstraint(
            ['customer_id'],
            ['customers.id'],
            name='fk_loan_snapshots_customer_id',
            ondelete='CASCADE'
        ),
    )
    # Timeline queries: a customer's snapshots by time
    op.create_index('ix_loan_snapshots_customer_id', 'loan_snapshots', ['customer_id'])
    op.create_index('ix_loan_snapshots_timestamp', 'loan_snapshots', ['timestamp'])


def downgrade() -> None:
    """Drop the loan pricing tables."""
    op.drop_index('ix_loan_snapshots_timestamp', table_name='loan_snapshots')
    op.drop_index('ix_loan_snapshots_customer_id', table_name='loan_snapshots')
    op.drop_table('loan_snapshots')

    op.drop_index('ix_invoices_due_date', table_name='invoices')
    op.drop_index('ix_invoices_invoice_number', table_name='invoices')
    op.drop_index('ix_invoices_loan_id', table_name='invoices')
    op.drop_table('invoices')

    op.drop_index('ix_fees_loan_id', table_name='fees')
    op.drop_table('fees')

    op.drop_index('ix_loans_maturity_date', table_name='loans')
    op.drop_index('ix_loans_status', table_name='loans')
    op.drop_index('ix_loans_currency', table_name='loans')
    op.drop_index('ix_loans_customer_id', table_name='loans')
    op.drop_index('ix_loans_loan_number', table_name='loans')
    op.drop_table('loans')

    op.drop_index('ix_fee_configs_code', table_name='fee_configs')
    op.drop_table('fee_configs')

    op.drop_index('ix_customers_code', table_name='customers')
    op.drop_table('customers')
