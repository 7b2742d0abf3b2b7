"""
Services.

Business logic layer.
"""

from rewardledger.services.base_service import (
    BaseService,
    ServiceResult,
    atomic_operation,
    log_operation,
)
from rewardledger.services.commission_service import CommissionService
from rewardledger.services.investment_service import (
    InvestmentService,
    PurchaseOutcome,
)
from rewardledger.services.ledger_service import LedgerService
from rewardledger.services.referral_service import ReferralService
from rewardledger.services.reward_service import RewardService
from rewardledger.services.withdrawal_service import WithdrawalService

__all__ = [
    # Base
    "BaseService",
    "ServiceResult",
    "atomic_operation",
    "log_operation",
    # Core
    "CommissionService",
    "InvestmentService",
    "LedgerService",
    "PurchaseOutcome",
    "ReferralService",
    "RewardService",
    "WithdrawalService",
]
