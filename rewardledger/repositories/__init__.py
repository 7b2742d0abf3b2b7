"""
Repositories.

Data access layer, one repository per table.
"""

from rewardledger.repositories.account_repository import AccountRepository
from rewardledger.repositories.base import BaseRepository
from rewardledger.repositories.commission_payout_repository import (
    CommissionPayoutRepository,
)
from rewardledger.repositories.investment_repository import InvestmentRepository
from rewardledger.repositories.package_tier_repository import (
    PackageTierRepository,
)
from rewardledger.repositories.quota_counter_repository import (
    QuotaCounterRepository,
)
from rewardledger.repositories.transaction_repository import (
    TransactionRepository,
)
from rewardledger.repositories.withdrawal_request_repository import (
    WithdrawalRequestRepository,
)

__all__ = [
    "BaseRepository",
    "AccountRepository",
    "CommissionPayoutRepository",
    "InvestmentRepository",
    "PackageTierRepository",
    "QuotaCounterRepository",
    "TransactionRepository",
    "WithdrawalRequestRepository",
]
