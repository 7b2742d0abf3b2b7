"""
Quota services package.
"""

from rewardledger.services.quota.quota_tracker import QuotaStatus, QuotaTracker

__all__ = ["QuotaStatus", "QuotaTracker"]
