"""
Referral services package.

- code_generator: referral code candidates
- graph: sponsor chain and downline traversal
- statistics: team statistics
"""

from rewardledger.services.referral.code_generator import (
    MAX_ATTEMPTS,
    generate_referral_code,
    username_prefix,
)
from rewardledger.services.referral.graph import ReferralGraph, TreeNode
from rewardledger.services.referral.statistics import (
    ReferralStatistics,
    TeamStats,
)

__all__ = [
    "MAX_ATTEMPTS",
    "ReferralGraph",
    "ReferralStatistics",
    "TeamStats",
    "TreeNode",
    "generate_referral_code",
    "username_prefix",
]
