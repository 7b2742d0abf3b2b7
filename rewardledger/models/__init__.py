"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from rewardledger.models.account import Account
from rewardledger.models.base import Base
from rewardledger.models.commission_payout import CommissionPayout
from rewardledger.models.enums import (
    DAILY_INCOME_QUOTA,
    LOGIN_QUOTA,
    ActivityType,
    EntryDirection,
    InvestmentStatus,
    PaymentMethod,
    TransactionStatus,
    TransactionType,
    WalletType,
    WithdrawalStatus,
    quota_key,
)
from rewardledger.models.investment import Investment
from rewardledger.models.package_tier import PackageTier
from rewardledger.models.quota_counter import QuotaCounter
from rewardledger.models.transaction import Transaction
from rewardledger.models.withdrawal_request import WithdrawalRequest

__all__ = [
    "Base",
    # Core
    "Account",
    "PackageTier",
    "Transaction",
    "QuotaCounter",
    "WithdrawalRequest",
    "CommissionPayout",
    "Investment",
    # Enums
    "ActivityType",
    "EntryDirection",
    "InvestmentStatus",
    "PaymentMethod",
    "TransactionStatus",
    "TransactionType",
    "WalletType",
    "WithdrawalStatus",
    "quota_key",
    "LOGIN_QUOTA",
    "DAILY_INCOME_QUOTA",
]
