"""
Game reward processor.

Gated on a claimed welcome video and an active package. Rewards credit
the upgrade wallet and update the account's gaming stats.
"""

from datetime import datetime

from rewardledger.models.enums import TransactionType, WalletType, quota_key
from rewardledger.services.base_service import atomic_operation
from rewardledger.services.reward.claims import RewardClaim
from rewardledger.services.reward.processor_base import RewardProcessor
from rewardledger.utils.exceptions import (
    DurationTooShort,
    GatingUnmet,
    UnknownActivityType,
    ValidationError,
)


class GameRewardProcessor(RewardProcessor):
    """Casual game rewards."""

    @atomic_operation(lock_on="account_id")
    async def claim_game(
        self,
        account_id: int,
        game_type: str,
        score: int,
        duration_seconds: int,
        now: datetime | None = None,
    ) -> RewardClaim:
        """
        Reward a finished game.

        Args:
            account_id: Account ID
            game_type: casual, puzzle or action
            score: Final score
            duration_seconds: Play time
            now: Claim moment

        Returns:
            ServiceResult with the RewardClaim
        """
        rule = self.rules.games.get(game_type)
        if rule is None:
            raise UnknownActivityType(f"Unknown game type: {game_type}")
        if score < 0:
            raise ValidationError("Score must not be negative")

        moment, day = self.moment_and_day(now)
        account = await self.ledger.get_account(account_id)

        if not account.welcome_video_claimed:
            raise GatingUnmet("Watch the welcome video before playing games")
        if not account.has_active_package(moment):
            raise GatingUnmet("An active package is required to earn from games")

        if duration_seconds < rule.min_duration_seconds:
            raise DurationTooShort(
                f"Played {duration_seconds}s, minimum is "
                f"{rule.min_duration_seconds}s"
            )

        multiplier = self.calculator.tier_multiplier(account.package_tier, "game")
        amount = self.calculator.calculate_game_reward(rule, score, multiplier)

        activity = quota_key("game", game_type)
        counter = await self.quotas.consume(
            account_id, activity, day, rule.max_per_day, amount
        )

        tx = None
        if amount > 0:
            tx = await self.ledger.credit(
                account_id,
                WalletType.UPGRADE,
                amount,
                TransactionType.GAME_REWARD,
                f"Game reward ({game_type}, score {score})",
                activity=activity,
                count_as_earnings=True,
                now=moment,
            )
        await self.accounts.increment(
            account_id, games_played=1, gaming_earnings=amount
        )
        await self.accounts.raise_high_score(account_id, score)

        return RewardClaim(
            activity=activity,
            amount=amount,
            wallet=WalletType.UPGRADE,
            transaction=tx,
            daily_count=counter.count,
            daily_cap=rule.max_per_day,
        )
