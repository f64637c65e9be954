"""Create subscriptions and wallets tables

Revision ID: 0001_subscriptions_and_wallets
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_subscriptions_and_wallets'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create installment subscription and wallet tables."""

    op.create_table(
        'subscriptions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(100)),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),

        # Plan terms
        sa.Column('payment_plan', sa.String(20), nullable=False),
        sa.Column('frequency', sa.String(20), nullable=False),
        sa.Column('total_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('drop_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('total_drops', sa.Integer, nullable=False),

        # Payment facts
        sa.Column('drops_paid', sa.Integer, server_default='0', nullable=False),
        sa.Column('amount_paid', sa.Numeric(14, 2), server_default='0', nullable=False),
        sa.Column('drop_schedule', sa.JSON, nullable=False),

        # Derived state
        sa.Column('next_drop_date', sa.DateTime(timezone=True)),
        sa.Column('status', sa.String(20), server_default='active', nullable=False),
        sa.Column('is_completed', sa.Boolean, server_default='false', nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True)),
        sa.Column('notes', sa.String(500)),

        # Bookkeeping
        sa.Column('version', sa.Integer, server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),

        sa.CheckConstraint('drops_paid <= total_drops', name='ck_subscriptions_drops_paid'),
    )

    op.create_index('ix_subscriptions_user_id', 'subscriptions', ['user_id'])
    op.create_index('ix_subscriptions_order_id', 'subscriptions', ['order_id'], unique=True)
    op.create_index('ix_subscriptions_payment_plan', 'subscriptions', ['payment_plan'])
    op.create_index('ix_subscriptions_status', 'subscriptions', ['status'])
    op.create_index('ix_subscriptions_is_completed', 'subscriptions', ['is_completed'])
    op.create_index('ix_subscriptions_next_drop_date', 'subscriptions', ['next_drop_date'])

    op.create_table(
        'wallets',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('food_money', sa.Numeric(14, 2), server_default='0', nullable=False),
        sa.Column('food_points', sa.Numeric(14, 2), server_default='0', nullable=False),
        sa.Column('food_safe', sa.Numeric(14, 2), server_default='0', nullable=False),
        sa.Column('status', sa.String(20), server_default='active', nullable=False),
        sa.Column('last_transaction_at', sa.DateTime(timezone=True)),
        sa.Column('version', sa.Integer, server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),

        sa.CheckConstraint('food_money >= 0', name='ck_wallets_food_money'),
        sa.CheckConstraint('food_safe >= 0', name='ck_wallets_food_safe'),
    )

    op.create_index('ix_wallets_user_id', 'wallets', ['user_id'], unique=True)
    op.create_index('ix_wallets_status', 'wallets', ['status'])


def downgrade() -> None:
    """Drop installment subscription and wallet tables."""
    op.drop_index('ix_wallets_status', table_name='wallets')
    op.drop_index('ix_wallets_user_id', table_name='wallets')
    op.drop_table('wallets')

    op.drop_index('ix_subscriptions_next_drop_date', table_name='subscriptions')
    op.drop_index('ix_subscriptions_is_completed', table_name='subscriptions')
    op.drop_index('ix_subscriptions_status', table_name='subscriptions')
    op.drop_index('ix_subscriptions_payment_plan', table_name='subscriptions')
    op.drop_index('ix_subscriptions_order_id', table_name='subscriptions')
    op.drop_index('ix_subscriptions_user_id', table_name='subscriptions')
    op.drop_table('subscriptions')
