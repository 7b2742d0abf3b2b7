"""
Reward services package.

- reward_calculator: reward amounts and tier multipliers
- video_reward_processor: welcome, daily_ad and game_unlock videos
- game_reward_processor: casual games
- ad_reward_processor: ad views
- daily_task_processor: daily task bundle and login bonus
- daily_income_processor: package daily income
"""

from rewardledger.services.reward.ad_reward_processor import AdRewardProcessor
from rewardledger.services.reward.claims import (
    DailyTaskBundle,
    DailyTaskProgress,
    RewardClaim,
)
from rewardledger.services.reward.daily_income_processor import (
    DailyIncomeProcessor,
)
from rewardledger.services.reward.daily_task_processor import DailyTaskProcessor
from rewardledger.services.reward.game_reward_processor import (
    GameRewardProcessor,
)
from rewardledger.services.reward.reward_calculator import RewardCalculator
from rewardledger.services.reward.video_reward_processor import (
    VideoRewardProcessor,
)

__all__ = [
    "AdRewardProcessor",
    "DailyIncomeProcessor",
    "DailyTaskBundle",
    "DailyTaskProcessor",
    "DailyTaskProgress",
    "GameRewardProcessor",
    "RewardCalculator",
    "RewardClaim",
    "VideoRewardProcessor",
]
