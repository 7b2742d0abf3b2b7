"""Initial ledger schema.

Revision ID: 20260101_000001
Revises:
Create Date: 2026-01-01

Accounts, package tiers, ledger transactions, quota counters, withdrawal
requests, commission payouts and investments.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20260101_000001'
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.DECIMAL(precision=18, scale=8)
PERCENT = sa.DECIMAL(precision=5, scale=2)


def upgrade() -> None:
    """Create ledger tables."""
    op.create_table(
        'package_tiers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('price', MONEY, nullable=False),
        sa.Column('daily_income', MONEY, nullable=False),
        sa.Column('validity_days', sa.Integer(), nullable=False),
        sa.Column(
            'level_commission_percents',
            sa.JSON(),
            nullable=False,
            comment='Percent per level as strings, index 0 = level 1'
        ),
        sa.Column('game_multiplier', sa.Numeric(6, 2), nullable=True),
        sa.Column('video_multiplier', sa.Numeric(6, 2), nullable=True),
        sa.Column('ad_multiplier', sa.Numeric(6, 2), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_package_tiers_name', 'package_tiers', ['name'], unique=True
    )
    op.create_index(
        'ix_package_tiers_is_active', 'package_tiers', ['is_active']
    )

    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('referral_code', sa.String(length=20), nullable=False),
        sa.Column('sponsor_id', sa.Integer(), nullable=True),
        sa.Column('depth', sa.Integer(), nullable=False),
        sa.Column('package_tier_id', sa.Integer(), nullable=True),
        sa.Column(
            'package_activated_at', sa.DateTime(timezone=True), nullable=True
        ),
        sa.Column('upgrade_balance', MONEY, nullable=False),
        sa.Column('withdrawal_balance', MONEY, nullable=False),
        sa.Column('total_earnings', MONEY, nullable=False),
        sa.Column('total_withdrawals', MONEY, nullable=False),
        sa.Column('investment_amount', MONEY, nullable=False),
        sa.Column('games_played', sa.Integer(), nullable=False),
        sa.Column('gaming_earnings', MONEY, nullable=False),
        sa.Column('high_score', sa.Integer(), nullable=False),
        sa.Column('welcome_video_claimed', sa.Boolean(), nullable=False),
        sa.Column('referral_bonus_paid', sa.Boolean(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'upgrade_balance >= 0', name='check_account_upgrade_non_negative'
        ),
        sa.CheckConstraint(
            'withdrawal_balance >= 0',
            name='check_account_withdrawal_non_negative'
        ),
        sa.CheckConstraint(
            'total_earnings >= 0', name='check_account_earnings_non_negative'
        ),
        sa.CheckConstraint(
            'total_withdrawals >= 0',
            name='check_account_withdrawals_non_negative'
        ),
        sa.ForeignKeyConstraint(
            ['sponsor_id'], ['accounts.id'], ondelete='RESTRICT'
        ),
        sa.ForeignKeyConstraint(
            ['package_tier_id'], ['package_tiers.id'], ondelete='SET NULL'
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_accounts_username', 'accounts', ['username'], unique=True
    )
    op.create_index(
        'ix_accounts_referral_code', 'accounts', ['referral_code'], unique=True
    )
    op.create_index('ix_accounts_sponsor_id', 'accounts', ['sponsor_id'])
    op.create_index(
        'ix_accounts_package_tier_id', 'accounts', ['package_tier_id']
    )

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('wallet', sa.String(length=20), nullable=False),
        sa.Column('direction', sa.String(length=10), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('tax_amount', MONEY, nullable=False),
        sa.Column('net_amount', MONEY, nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('activity', sa.String(length=50), nullable=True),
        sa.Column('reference', sa.String(length=100), nullable=True),
        sa.Column('idempotency_key', sa.String(length=200), nullable=True),
        sa.Column('business_day', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'amount > 0', name='check_transaction_amount_positive'
        ),
        sa.CheckConstraint(
            'tax_amount >= 0', name='check_transaction_tax_non_negative'
        ),
        sa.ForeignKeyConstraint(
            ['account_id'], ['accounts.id'], ondelete='RESTRICT'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('idempotency_key'),
    )
    op.create_index(
        'ix_transactions_account_id', 'transactions', ['account_id']
    )
    op.create_index('ix_transactions_type', 'transactions', ['type'])
    op.create_index('ix_transactions_reference', 'transactions', ['reference'])
    op.create_index(
        'ix_transactions_account_day_type',
        'transactions',
        ['account_id', 'business_day', 'type'],
    )

    op.create_table(
        'quota_counters',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('activity', sa.String(length=50), nullable=False),
        sa.Column('day', sa.Date(), nullable=False),
        sa.Column('count', sa.Integer(), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('count >= 0', name='check_quota_count_non_negative'),
        sa.ForeignKeyConstraint(
            ['account_id'], ['accounts.id'], ondelete='CASCADE'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'account_id', 'activity', 'day',
            name='uq_quota_account_activity_day'
        ),
    )
    op.create_index(
        'ix_quota_counters_account_id', 'quota_counters', ['account_id']
    )

    op.create_table(
        'withdrawal_requests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('tax_amount', MONEY, nullable=False),
        sa.Column('net_amount', MONEY, nullable=False),
        sa.Column('tds_percent', PERCENT, nullable=False),
        sa.Column(
            'destination',
            sa.JSON(),
            nullable=False,
            comment='account_number, ifsc_code, account_holder_name, bank_name'
        ),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('decided_by', sa.Integer(), nullable=True),
        sa.Column('decided_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('processed_by', sa.Integer(), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reserve_transaction_id', sa.Integer(), nullable=True),
        sa.Column('refund_transaction_id', sa.Integer(), nullable=True),
        sa.Column('business_day', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'amount > 0', name='check_withdrawal_amount_positive'
        ),
        sa.CheckConstraint(
            'net_amount >= 0', name='check_withdrawal_net_non_negative'
        ),
        sa.ForeignKeyConstraint(
            ['account_id'], ['accounts.id'], ondelete='RESTRICT'
        ),
        sa.ForeignKeyConstraint(
            ['reserve_transaction_id'], ['transactions.id']
        ),
        sa.ForeignKeyConstraint(
            ['refund_transaction_id'], ['transactions.id']
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_withdrawal_requests_account_id',
        'withdrawal_requests',
        ['account_id'],
    )
    op.create_index(
        'ix_withdrawal_requests_status', 'withdrawal_requests', ['status']
    )
    op.create_index(
        'ix_withdrawal_requests_account_status',
        'withdrawal_requests',
        ['account_id', 'status'],
    )

    op.create_table(
        'commission_payouts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            'investment_event_id', sa.String(length=64), nullable=False
        ),
        sa.Column('sponsor_id', sa.Integer(), nullable=False),
        sa.Column('investor_id', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('percent', PERCENT, nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('transaction_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ['sponsor_id'], ['accounts.id'], ondelete='RESTRICT'
        ),
        sa.ForeignKeyConstraint(
            ['investor_id'], ['accounts.id'], ondelete='RESTRICT'
        ),
        sa.ForeignKeyConstraint(['transaction_id'], ['transactions.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'investment_event_id', 'sponsor_id', 'level',
            name='uq_commission_event_sponsor_level'
        ),
    )
    op.create_index(
        'ix_commission_payouts_investment_event_id',
        'commission_payouts',
        ['investment_event_id'],
    )
    op.create_index(
        'ix_commission_payouts_sponsor_id',
        'commission_payouts',
        ['sponsor_id'],
    )

    op.create_table(
        'investments',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('package_tier_id', sa.Integer(), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('payment_method', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('gateway_reference', sa.String(length=128), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ['account_id'], ['accounts.id'], ondelete='RESTRICT'
        ),
        sa.ForeignKeyConstraint(
            ['package_tier_id'], ['package_tiers.id'], ondelete='RESTRICT'
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_investments_account_id', 'investments', ['account_id']
    )
    op.create_index('ix_investments_status', 'investments', ['status'])


def downgrade() -> None:
    """Drop ledger tables."""
    op.drop_table('investments')
    op.drop_table('commission_payouts')
    op.drop_table('withdrawal_requests')
    op.drop_table('quota_counters')
    op.drop_table('transactions')
    op.drop_table('accounts')
    op.drop_table('package_tiers')
