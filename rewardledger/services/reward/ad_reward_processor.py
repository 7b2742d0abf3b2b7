"""
Ad reward processor.

Requires an active package. The same ad is rewarded once per day.
"""

from datetime import datetime

from rewardledger.models.enums import TransactionType, WalletType, quota_key
from rewardledger.repositories.transaction_repository import (
    TransactionRepository,
)
from rewardledger.services.base_service import atomic_operation
from rewardledger.services.reward.claims import RewardClaim
from rewardledger.services.reward.processor_base import RewardProcessor
from rewardledger.utils.exceptions import (
    AlreadyClaimed,
    DurationTooShort,
    NoActivePackage,
    UnknownActivityType,
    ValidationError,
)


class AdRewardProcessor(RewardProcessor):
    """Ad view rewards."""

    @atomic_operation(lock_on="account_id")
    async def claim_ad(
        self,
        account_id: int,
        ad_type: str,
        ad_id: str,
        view_duration_seconds: int,
        now: datetime | None = None,
    ) -> RewardClaim:
        """
        Reward an ad view.

        Args:
            account_id: Account ID
            ad_type: banner, video or interstitial
            ad_id: Advertisement identifier
            view_duration_seconds: View time
            now: Claim moment

        Returns:
            ServiceResult with the RewardClaim
        """
        rule = self.rules.ads.get(ad_type)
        if rule is None:
            raise UnknownActivityType(f"Unknown ad type: {ad_type}")
        if not ad_id:
            raise ValidationError("ad_id is required")

        moment, day = self.moment_and_day(now)
        account = await self.ledger.get_account(account_id)
        if not account.has_active_package(moment):
            raise NoActivePackage("An active package is required to earn from ads")

        if view_duration_seconds < rule.min_duration_seconds:
            raise DurationTooShort(
                f"Viewed {view_duration_seconds}s, minimum is "
                f"{rule.min_duration_seconds}s"
            )

        dedupe_key = f"ad_reward:{account_id}:{ad_id}:{day.isoformat()}"
        if await TransactionRepository(self.session).get_by_idempotency_key(
            dedupe_key
        ):
            raise AlreadyClaimed(f"Ad {ad_id} already rewarded today")

        multiplier = self.calculator.tier_multiplier(account.package_tier, "ad")
        amount = self.calculator.calculate_ad_reward(rule, multiplier)

        activity = quota_key("ad", ad_type)
        counter = await self.quotas.consume(
            account_id, activity, day, rule.max_per_day, amount
        )

        tx = None
        if amount > 0:
            tx = await self.ledger.credit(
                account_id,
                WalletType.UPGRADE,
                amount,
                TransactionType.AD_REWARD,
                f"Ad reward ({ad_type})",
                reference=f"ad:{ad_id}",
                idempotency_key=dedupe_key,
                activity=activity,
                count_as_earnings=True,
                now=moment,
            )

        return RewardClaim(
            activity=activity,
            amount=amount,
            wallet=WalletType.UPGRADE,
            transaction=tx,
            daily_count=counter.count,
            daily_cap=rule.max_per_day,
        )
