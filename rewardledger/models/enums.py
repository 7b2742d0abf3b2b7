"""
Enumerations shared by models and services.
"""

from enum import Enum


class WalletType(str, Enum):
    """Named sub-balances of an account."""

    UPGRADE = "upgrade"
    WITHDRAWAL = "withdrawal"


class EntryDirection(str, Enum):
    """Direction of a ledger entry against its wallet."""

    CREDIT = "credit"
    DEBIT = "debit"


class TransactionType(str, Enum):
    """Ledger transaction types."""

    LEVEL_INCOME = "level_income"
    REFERRAL_BONUS = "referral_bonus"
    VIDEO_REWARD = "video_reward"
    GAME_REWARD = "game_reward"
    AD_REWARD = "ad_reward"
    DAILY_LOGIN = "daily_login"
    DAILY_INCOME = "daily_income"
    WALLET_TRANSFER = "wallet_transfer"
    PURCHASE = "purchase"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    WITHDRAWAL_REFUND = "withdrawal_refund"
    ADJUSTMENT = "adjustment"


class TransactionStatus(str, Enum):
    """Ledger transaction status."""

    COMPLETED = "completed"


class WithdrawalStatus(str, Enum):
    """Withdrawal request states."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PROCESSED = "processed"

    @property
    def is_terminal(self) -> bool:
        """Rejected and processed requests never change again."""
        return self in (WithdrawalStatus.REJECTED, WithdrawalStatus.PROCESSED)


class InvestmentStatus(str, Enum):
    """Package purchase states."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentMethod(str, Enum):
    """How a package purchase is paid."""

    WALLET = "wallet"
    GATEWAY = "gateway"


class ActivityType:
    """Reward activity families accepted by claim_reward."""

    VIDEO = "video"
    GAME = "game"
    AD = "ad"
    DAILY_LOGIN = "daily_login"
    DAILY_INCOME = "daily_income"

    ALL = (VIDEO, GAME, AD, DAILY_LOGIN, DAILY_INCOME)


def quota_key(family: str, kind: str) -> str:
    """Build quota counter activity key, e.g. ``game:casual``."""
    return f"{family}:{kind}"


LOGIN_QUOTA = quota_key("task", "login")
DAILY_INCOME_QUOTA = quota_key("income", "daily")
