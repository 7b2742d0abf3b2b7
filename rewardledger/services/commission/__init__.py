"""
Commission services package.
"""

from rewardledger.services.commission.calculator import (
    CommissionReport,
    LevelFailure,
    LevelPayout,
    LevelPlan,
    calculate_commission,
    resolve_level_percent,
)

__all__ = [
    "CommissionReport",
    "LevelFailure",
    "LevelPayout",
    "LevelPlan",
    "calculate_commission",
    "resolve_level_percent",
]
