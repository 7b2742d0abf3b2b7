"""
Video reward processor.

welcome: one-time, flagged on the account. daily_ad: capped per day.
game_unlock: uncapped and counted as gaming earnings. Every type requires
the minimum watch ratio. Video rewards credit the withdrawal wallet.
"""

from datetime import datetime

from rewardledger.models.enums import TransactionType, WalletType, quota_key
from rewardledger.services.base_service import atomic_operation
from rewardledger.services.reward.claims import RewardClaim
from rewardledger.services.reward.processor_base import RewardProcessor
from rewardledger.utils.exceptions import (
    AlreadyClaimed,
    IncompleteWatch,
    UnknownActivityType,
)


class VideoRewardProcessor(RewardProcessor):
    """Video watch rewards."""

    @atomic_operation(lock_on="account_id")
    async def claim_video(
        self,
        account_id: int,
        video_type: str,
        watched_seconds: int,
        total_seconds: int,
        now: datetime | None = None,
    ) -> RewardClaim:
        """
        Reward a watched video.

        Args:
            account_id: Account ID
            video_type: welcome, daily_ad or game_unlock
            watched_seconds: Seconds actually watched
            total_seconds: Video length
            now: Claim moment

        Returns:
            ServiceResult with the RewardClaim
        """
        rule = self.rules.videos.get(video_type)
        if rule is None:
            raise UnknownActivityType(f"Unknown video type: {video_type}")

        if not self.calculator.watch_ratio_met(watched_seconds, total_seconds):
            raise IncompleteWatch(
                f"Watched {watched_seconds}s of {total_seconds}s, "
                f"minimum ratio is {self.rules.min_watch_ratio}"
            )

        moment, day = self.moment_and_day(now)
        account = await self.ledger.get_account(account_id)
        activity = quota_key("video", video_type)

        if rule.one_time and not await self.accounts.claim_flag(
            account_id, "welcome_video_claimed"
        ):
            raise AlreadyClaimed(f"Video {video_type} reward already claimed")

        amount = self.calculator.calculate_video_reward(
            rule.reward, account.package_tier if account.has_package() else None
        )
        counter = await self.quotas.consume(
            account_id, activity, day, rule.daily_cap, amount
        )

        tx = None
        if amount > 0:
            tx = await self.ledger.credit(
                account_id,
                WalletType.WITHDRAWAL,
                amount,
                TransactionType.VIDEO_REWARD,
                f"Video reward ({video_type})",
                activity=activity,
                count_as_earnings=True,
                now=moment,
            )
            if rule.counts_as_gaming:
                await self.accounts.increment(account_id, gaming_earnings=amount)

        return RewardClaim(
            activity=activity,
            amount=amount,
            wallet=WalletType.WITHDRAWAL,
            transaction=tx,
            daily_count=counter.count,
            daily_cap=rule.daily_cap,
        )
