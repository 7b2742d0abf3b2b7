"""
Reward calculator.

Encapsulates reward amount calculation for games, ads, videos and daily
tasks. Pure: no database access.
"""

from decimal import Decimal

from loguru import logger

from rewardledger.config.rules import AdRule, CompensationRules, GameRule
from rewardledger.models.package_tier import PackageTier
from rewardledger.utils.money import round_half_up

ONE = Decimal("1")


class RewardCalculator:
    """
    Reward calculator driven by CompensationRules.

    Single source of truth for reward amounts; processors only decide
    eligibility and move money.
    """

    def __init__(self, rules: CompensationRules) -> None:
        """
        Initialize reward calculator.

        Args:
            rules: Compensation rules
        """
        self.rules = rules

    def tier_multiplier(
        self, package: PackageTier | None, family: str | None = None
    ) -> Decimal:
        """
        Reward multiplier granted by a package.

        The package's explicit override for the family wins; otherwise the
        price thresholds apply (no package = 1).

        Args:
            package: Account package (None = no package)
            family: Reward family (game, ad, video) or None for daily tasks

        Returns:
            Multiplier
        """
        if package is not None and family is not None:
            override = package.multiplier_override(family)
            if override is not None:
                return override
        price = package.price if package is not None else None
        return self.rules.tiers.multiplier_for_price(price)

    def calculate_game_reward(
        self, rule: GameRule, score: int, tier_multiplier: Decimal
    ) -> Decimal:
        """
        Game reward.

        Formula: (base + min(score * score_multiplier, base))
                 * tier_multiplier * performance_bonus

        Example:
            >>> calc.calculate_game_reward(casual, 1500, Decimal("1"))
            Decimal("1.20")
        """
        if score < 0:
            logger.bind(score=score).warning("Negative game score")
            score = 0

        score_bonus = min(Decimal(score) * rule.score_multiplier, rule.base_reward)
        tiers = self.rules.tiers
        performance = (
            tiers.performance_bonus
            if score >= tiers.performance_bonus_score
            else ONE
        )
        return round_half_up(
            (rule.base_reward + score_bonus) * tier_multiplier * performance
        )

    def calculate_ad_reward(self, rule: AdRule, tier_multiplier: Decimal) -> Decimal:
        """Ad reward: per-ad amount times the tier multiplier."""
        return round_half_up(rule.reward_per_ad * tier_multiplier)

    def calculate_video_reward(
        self, reward: Decimal, package: PackageTier | None
    ) -> Decimal:
        """Video reward: flat, scaled only by an explicit package override."""
        override = package.multiplier_override("video") if package else None
        return round_half_up(reward * (override or ONE))

    def calculate_task_reward(
        self, reward: Decimal, package: PackageTier | None
    ) -> Decimal:
        """Daily task reward amplified by the package price tier."""
        return round_half_up(reward * self.tier_multiplier(package))

    def watch_ratio_met(self, watched_seconds: int, total_seconds: int) -> bool:
        """True when watched/total reaches the configured minimum ratio."""
        if total_seconds <= 0:
            return False
        ratio = Decimal(watched_seconds) / Decimal(total_seconds)
        return ratio >= self.rules.min_watch_ratio
