"""
Compensation rules.

Versioned business configuration for rewards, quotas, commissions and
withdrawals. Engines receive a CompensationRules instance explicitly so the
rules can be swapped per deployment or per test.
"""

from decimal import Decimal
from pathlib import Path

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

from rewardledger.config.settings import Settings, settings


class GameRule(BaseModel):
    """Reward rule for one casual game type."""

    model_config = ConfigDict(frozen=True)

    base_reward: Decimal = Field(..., ge=0, description="Flat reward per game")
    score_multiplier: Decimal = Field(..., ge=0, description="Reward per score point")
    max_per_day: int = Field(..., ge=0, description="Rewarded games per day")
    min_duration_seconds: int = Field(..., ge=0, description="Minimum play time")


class AdRule(BaseModel):
    """Reward rule for one ad format."""

    model_config = ConfigDict(frozen=True)

    reward_per_ad: Decimal = Field(..., ge=0)
    max_per_day: int = Field(..., ge=0)
    min_duration_seconds: int = Field(..., ge=0)


class VideoRule(BaseModel):
    """Reward rule for one video type."""

    model_config = ConfigDict(frozen=True)

    reward: Decimal = Field(..., ge=0)
    daily_cap: int | None = Field(default=None, ge=0, description="None = uncapped")
    one_time: bool = Field(default=False, description="Claimable once per account")
    counts_as_gaming: bool = Field(
        default=False, description="Also add the reward to gaming earnings"
    )


class DailyTaskRule(BaseModel):
    """Target and reward of one daily task."""

    model_config = ConfigDict(frozen=True)

    reward: Decimal = Field(..., ge=0)
    target: int = Field(default=1, ge=1)
    description: str = ""


class TierRules(BaseModel):
    """Package-price thresholds for reward amplification."""

    model_config = ConfigDict(frozen=True)

    top_price: Decimal = Decimal("5000")
    top_multiplier: Decimal = Decimal("2")
    mid_price: Decimal = Decimal("2000")
    mid_multiplier: Decimal = Decimal("1.5")
    performance_bonus_score: int = 1000
    performance_bonus: Decimal = Decimal("1.2")

    def multiplier_for_price(self, price: Decimal | None) -> Decimal:
        """Return the tier multiplier for a package price (None = no package)."""
        if price is None:
            return Decimal("1")
        if price >= self.top_price:
            return self.top_multiplier
        if price >= self.mid_price:
            return self.mid_multiplier
        return Decimal("1")


class CommissionRules(BaseModel):
    """Level income configuration."""

    model_config = ConfigDict(frozen=True)

    max_levels: int = Field(default=10, ge=1, le=50)
    default_level_percents: tuple[Decimal, ...] = (
        Decimal("10"), Decimal("8"), Decimal("6"), Decimal("4"), Decimal("3"),
        Decimal("2"), Decimal("2"), Decimal("1"), Decimal("1"), Decimal("1"),
    )
    # Pay ancestors whose package validity has lapsed?
    require_unexpired_package: bool = False
    direct_referral_bonus: Decimal = Field(default=Decimal("100"), ge=0)

    @field_validator("default_level_percents")
    @classmethod
    def validate_percents(cls, v: tuple[Decimal, ...]) -> tuple[Decimal, ...]:
        """Level percentages must be non-negative and sum to at most 100."""
        if any(p < 0 for p in v):
            raise ValueError("Level percentages cannot be negative")
        if sum(v, Decimal("0")) > 100:
            raise ValueError("Total level income percentage cannot exceed 100%")
        return v


class WithdrawalRules(BaseModel):
    """Withdrawal limits and tax."""

    model_config = ConfigDict(frozen=True)

    min_amount: Decimal = Field(default=Decimal("100"), gt=0)
    max_amount: Decimal = Field(default=Decimal("100000"), gt=0)
    tds_percent: Decimal = Field(default=Decimal("10"), ge=0, lt=100)
    daily_percent_of_earnings: Decimal = Field(default=Decimal("10"), ge=0, le=100)


def _default_games() -> dict[str, GameRule]:
    return {
        "casual": GameRule(
            base_reward=Decimal("0.5"), score_multiplier=Decimal("0.001"),
            max_per_day=15, min_duration_seconds=60,
        ),
        "puzzle": GameRule(
            base_reward=Decimal("1"), score_multiplier=Decimal("0.002"),
            max_per_day=10, min_duration_seconds=120,
        ),
        "action": GameRule(
            base_reward=Decimal("1.5"), score_multiplier=Decimal("0.003"),
            max_per_day=8, min_duration_seconds=180,
        ),
    }


def _default_ads() -> dict[str, AdRule]:
    return {
        "banner": AdRule(
            reward_per_ad=Decimal("0.5"), max_per_day=20, min_duration_seconds=5
        ),
        "video": AdRule(
            reward_per_ad=Decimal("2"), max_per_day=10, min_duration_seconds=15
        ),
        "interstitial": AdRule(
            reward_per_ad=Decimal("1"), max_per_day=15, min_duration_seconds=10
        ),
    }


def _default_videos() -> dict[str, VideoRule]:
    return {
        "welcome": VideoRule(reward=Decimal("100"), one_time=True),
        "daily_ad": VideoRule(reward=Decimal("2"), daily_cap=50),
        "game_unlock": VideoRule(reward=Decimal("50"), counts_as_gaming=True),
    }


def _default_daily_tasks() -> dict[str, DailyTaskRule]:
    return {
        "login": DailyTaskRule(reward=Decimal("5"), description="Daily login bonus"),
        "watch_videos": DailyTaskRule(
            reward=Decimal("10"), target=5, description="Watch 5 videos"
        ),
        "view_ads": DailyTaskRule(
            reward=Decimal("8"), target=10, description="View 10 ads"
        ),
        "play_games": DailyTaskRule(
            reward=Decimal("15"), target=3, description="Play 3 games"
        ),
        "refer_friend": DailyTaskRule(
            reward=Decimal("50"), description="Refer a new friend"
        ),
        "make_transaction": DailyTaskRule(
            reward=Decimal("20"), description="Make any transaction"
        ),
    }


class CompensationRules(BaseModel):
    """Complete, versioned rule set."""

    model_config = ConfigDict(frozen=True)

    version: str = "2024.1"
    games: dict[str, GameRule] = Field(default_factory=_default_games)
    ads: dict[str, AdRule] = Field(default_factory=_default_ads)
    videos: dict[str, VideoRule] = Field(default_factory=_default_videos)
    min_watch_ratio: Decimal = Field(default=Decimal("0.90"), ge=0, le=1)
    daily_tasks: dict[str, DailyTaskRule] = Field(default_factory=_default_daily_tasks)
    tiers: TierRules = Field(default_factory=TierRules)
    commission: CommissionRules = Field(default_factory=CommissionRules)
    withdrawal: WithdrawalRules = Field(default_factory=WithdrawalRules)

    @field_validator("daily_tasks")
    @classmethod
    def validate_login_task(
        cls, v: dict[str, DailyTaskRule]
    ) -> dict[str, DailyTaskRule]:
        """The login task is claimable and must always be configured."""
        if "login" not in v:
            raise ValueError("daily_tasks must define a 'login' task")
        return v


def default_rules() -> CompensationRules:
    """Return the built-in rule set."""
    return CompensationRules()


def load_rules(path: str | Path | None = None) -> CompensationRules:
    """
    Load rules from a JSON file.

    Args:
        path: JSON file path; built-in defaults when None

    Returns:
        Validated rule set
    """
    if path is None:
        return default_rules()

    raw = Path(path).read_text(encoding="utf-8")
    rules = CompensationRules.model_validate_json(raw)

    logger.bind(path=str(path), version=rules.version).info(
        f"Compensation rules loaded (version {rules.version})",
    )
    return rules


def rules_from_settings(app_settings: Settings = settings) -> CompensationRules:
    """
    Load the rule set configured by RULES_FILE.

    Args:
        app_settings: Settings to read (global settings by default)

    Returns:
        Rules from the configured file, or the built-in defaults
    """
    return load_rules(app_settings.rules_file)
