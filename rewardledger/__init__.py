"""
rewardledger.

Compensation and reward ledger: wallets, referral commissions,
daily-quota rewards and withdrawals.
"""

__version__ = "1.0.0"
