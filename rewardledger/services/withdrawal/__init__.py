"""
Withdrawal services package.

- tax: TDS calculation
- withdrawal_validator: eligibility checks and bank detail validation
- withdrawal_request_handler: request submission
- withdrawal_lifecycle_handler: approval, rejection, processing
- withdrawal_query_service: queries
"""

from rewardledger.services.withdrawal.tax import TdsBreakdown, calculate_tds
from rewardledger.services.withdrawal.withdrawal_lifecycle_handler import (
    WithdrawalLifecycleHandler,
)
from rewardledger.services.withdrawal.withdrawal_query_service import (
    WithdrawalQueryService,
)
from rewardledger.services.withdrawal.withdrawal_request_handler import (
    WithdrawalRequestHandler,
)
from rewardledger.services.withdrawal.withdrawal_validator import (
    WithdrawalValidator,
    normalize_destination,
)

__all__ = [
    "TdsBreakdown",
    "WithdrawalLifecycleHandler",
    "WithdrawalQueryService",
    "WithdrawalRequestHandler",
    "WithdrawalValidator",
    "calculate_tds",
    "normalize_destination",
]
