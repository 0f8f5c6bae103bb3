"""Add payment intents

Revision ID: 8b2d4e6f1a7c
Revises: 3f1c2a9d8e4b
Create Date: 2026-10-17 15:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# Revision identifiers used by Alembic
revision: str = '8b2d4e6f1a7c'
down_revision: Union[str, Sequence[str], None] = '3f1c2a9d8e4b'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'payment_intents',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('gateway_order_ref', sa.String(), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('receipt', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_payment_intents_id', 'payment_intents', ['id'])
    op.create_index('ix_payment_intents_user_id', 'payment_intents', ['user_id'])
    op.create_index('ix_payment_intents_gateway_order_ref', 'payment_intents', ['gateway_order_ref'], unique=True)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('payment_intents')
