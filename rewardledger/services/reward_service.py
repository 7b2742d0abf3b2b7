"""
Reward service - Main service facade.

Module structure:
- reward/reward_calculator: reward amounts and tier multipliers
- reward/video_reward_processor: video rewards
- reward/game_reward_processor: game rewards
- reward/ad_reward_processor: ad rewards
- reward/daily_task_processor: daily tasks and login bonus
- reward/daily_income_processor: package daily income

All credits go through the ledger primitives; this facade never touches
balances itself.
"""

from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.config.rules import CompensationRules
from rewardledger.models.enums import (
    DAILY_INCOME_QUOTA,
    LOGIN_QUOTA,
    ActivityType,
    quota_key,
)
from rewardledger.repositories.account_repository import AccountRepository
from rewardledger.services.base_service import (
    BaseService,
    ServiceResult,
    read_operation,
)
from rewardledger.services.quota.quota_tracker import QuotaStatus, QuotaTracker
from rewardledger.services.reward.ad_reward_processor import AdRewardProcessor
from rewardledger.services.reward.claims import DailyTaskBundle, RewardClaim
from rewardledger.services.reward.daily_income_processor import (
    DailyIncomeProcessor,
)
from rewardledger.services.reward.daily_task_processor import DailyTaskProcessor
from rewardledger.services.reward.game_reward_processor import (
    GameRewardProcessor,
)
from rewardledger.services.reward.video_reward_processor import (
    VideoRewardProcessor,
)
from rewardledger.utils.datetime_utils import business_day
from rewardledger.utils.exceptions import (
    AccountNotFound,
    UnknownActivityType,
    ValidationError,
)
from rewardledger.utils.locks import AccountLockRegistry


class RewardService(BaseService):
    """
    Reward service for activity rewards.

    This is a facade that delegates to one processor per reward family.
    """

    def __init__(
        self,
        session: AsyncSession,
        rules: CompensationRules,
        *,
        locks: AccountLockRegistry | None = None,
        timezone: ZoneInfo | None = None,
    ) -> None:
        """Initialize reward service and all processors."""
        super().__init__(session, locks=locks, timezone=timezone)
        self.rules = rules
        options = {"locks": self.locks, "timezone": self.tz}

        self.videos = VideoRewardProcessor(session, rules, **options)
        self.games = GameRewardProcessor(session, rules, **options)
        self.ads = AdRewardProcessor(session, rules, **options)
        self.daily_tasks = DailyTaskProcessor(session, rules, **options)
        self.daily_income = DailyIncomeProcessor(session, rules, **options)
        self.quotas = QuotaTracker(session)
        self.accounts = AccountRepository(session)

    async def claim_reward(
        self,
        account_id: int,
        activity_type: str,
        params: dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> ServiceResult[RewardClaim]:
        """
        Claim a reward for an activity.

        Args:
            account_id: Account ID
            activity_type: video, game, ad, daily_login or daily_income
            params: Activity parameters
                video: video_type, watched_seconds, total_seconds
                game: game_type, score, duration_seconds
                ad: ad_type, ad_id, view_duration_seconds
            now: Claim moment

        Returns:
            ServiceResult with the RewardClaim
        """
        params = params or {}
        try:
            if activity_type == ActivityType.VIDEO:
                return await self.videos.claim_video(
                    account_id,
                    params["video_type"],
                    int(params["watched_seconds"]),
                    int(params["total_seconds"]),
                    now=now,
                )
            if activity_type == ActivityType.GAME:
                return await self.games.claim_game(
                    account_id,
                    params["game_type"],
                    int(params["score"]),
                    int(params["duration_seconds"]),
                    now=now,
                )
            if activity_type == ActivityType.AD:
                return await self.ads.claim_ad(
                    account_id,
                    params["ad_type"],
                    str(params["ad_id"]),
                    int(params["view_duration_seconds"]),
                    now=now,
                )
        except KeyError as e:
            return ServiceResult.fail(
                ValidationError(f"Missing parameter for {activity_type}: {e.args[0]}")
            )
        except (TypeError, ValueError) as e:
            return ServiceResult.fail(
                ValidationError(f"Invalid parameter for {activity_type}: {e}")
            )

        if activity_type == ActivityType.DAILY_LOGIN:
            return await self.daily_tasks.claim_login_bonus(account_id, now=now)
        if activity_type == ActivityType.DAILY_INCOME:
            return await self.daily_income.claim_daily_income(account_id, now=now)

        self.logger.bind(account_id=account_id, activity_type=activity_type).warning(
            f"Unknown activity type: {activity_type}",
        )
        return ServiceResult.fail(
            UnknownActivityType(f"Unknown activity type: {activity_type}")
        )

    async def claim_video(
        self,
        account_id: int,
        video_type: str,
        watched_seconds: int,
        total_seconds: int,
        now: datetime | None = None,
    ) -> ServiceResult[RewardClaim]:
        """Claim a video reward."""
        return await self.videos.claim_video(
            account_id, video_type, watched_seconds, total_seconds, now=now
        )

    async def claim_game(
        self,
        account_id: int,
        game_type: str,
        score: int,
        duration_seconds: int,
        now: datetime | None = None,
    ) -> ServiceResult[RewardClaim]:
        """Claim a game reward."""
        return await self.games.claim_game(
            account_id, game_type, score, duration_seconds, now=now
        )

    async def claim_ad(
        self,
        account_id: int,
        ad_type: str,
        ad_id: str,
        view_duration_seconds: int,
        now: datetime | None = None,
    ) -> ServiceResult[RewardClaim]:
        """Claim an ad reward."""
        return await self.ads.claim_ad(
            account_id, ad_type, ad_id, view_duration_seconds, now=now
        )

    async def claim_login_bonus(
        self, account_id: int, now: datetime | None = None
    ) -> ServiceResult[RewardClaim]:
        """Claim today's login bonus."""
        return await self.daily_tasks.claim_login_bonus(account_id, now=now)

    async def claim_daily_income(
        self, account_id: int, now: datetime | None = None
    ) -> ServiceResult[RewardClaim]:
        """Claim today's package income."""
        return await self.daily_income.claim_daily_income(account_id, now=now)

    @read_operation
    async def get_daily_tasks(
        self, account_id: int, now: datetime | None = None
    ) -> DailyTaskBundle:
        """Today's daily task progress (ServiceResult with the bundle)."""
        return await self.daily_tasks.get_daily_tasks(account_id, now=now)

    def quota_caps(self) -> dict[str, int | None]:
        """Configured daily cap of every activity key."""
        caps: dict[str, int | None] = {}
        for name, video in self.rules.videos.items():
            caps[quota_key("video", name)] = 1 if video.one_time else video.daily_cap
        for name, game in self.rules.games.items():
            caps[quota_key("game", name)] = game.max_per_day
        for name, ad in self.rules.ads.items():
            caps[quota_key("ad", name)] = ad.max_per_day
        caps[LOGIN_QUOTA] = 1
        caps[DAILY_INCOME_QUOTA] = 1
        return caps

    @read_operation
    async def get_quota_status(
        self, account_id: int, day: date | None = None
    ) -> dict[str, QuotaStatus]:
        """
        Quota usage of every activity on a day.

        Args:
            account_id: Account ID
            day: Business day (today when None)

        Returns:
            ServiceResult with a dict of activity key -> QuotaStatus
        """
        if not await self.accounts.exists(id=account_id):
            raise AccountNotFound(f"Account {account_id} not found")
        day = day or business_day(tz=self.tz)
        return await self.quotas.get_status(account_id, day, self.quota_caps())
