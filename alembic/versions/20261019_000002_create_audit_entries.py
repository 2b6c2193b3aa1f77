"""Create audit entries table

Revision ID: 20261019_000002
Revises: 20261019_000001
Create Date: 2026-10-19

Per-field change history for loans, fees and invoices.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000002'
down_revision: Union[str, None] = '20261019_000001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the audit_entries table."""
    op.create_table(
        'audit_entries',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column(
            'entity_type',
            sa.Enum('loan', 'fee', 'invoice', name='audit_entity_type'),
            nullable=False,
        ),
        sa.Column('entity_id', sa.String(length=36), nullable=False),
        sa.Column('loan_id', sa.String(length=36), nullable=True),
        sa.Column(
            'action',
            sa.Enum('create', 'update', 'delete', 'move', name='audit_action'),
            nullable=False,
        ),
        sa.Column('field_name', sa.String(length=100), nullable=True),
        sa.Column('old_value', sa.JSON(), nullable=True),
        sa.Column('new_value', sa.JSON(), nullable=True),
        sa.Column('user_id', sa.String(length=100), nullable=False),
        sa.Column('user_name', sa.String(length=255), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_audit_entries'),
    )
    # A loan's trail, newest first
    op.create_index('ix_audit_entries_loan_id', 'audit_entries', ['loan_id'])
    op.create_index('ix_audit_entries_timestamp', 'audit_entries', ['timestamp'])
    op.create_index('ix_audit_entries_entity', 'audit_entries', ['entity_type', 'entity_id'])


def downgrade() -> None:
    """Drop the audit_entries table."""
    op.drop_index('ix_audit_entries_entity', table_name='audit_entries')
    op.drop_index('ix_audit_entries_timestamp', table_name='audit_entries')
    op.drop_index('ix_audit_entries_loan_id', table_name='audit_entries')
    op.drop_table('audit_entries')
