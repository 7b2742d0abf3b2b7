"""
Daily income processor.

Pays the package's fixed daily income into the withdrawal wallet, once
per business day while the package validity window is open.
"""

from datetime import datetime

from rewardledger.models.enums import DAILY_INCOME_QUOTA, TransactionType, WalletType
from rewardledger.services.base_service import atomic_operation
from rewardledger.services.reward.claims import RewardClaim
from rewardledger.services.reward.processor_base import RewardProcessor
from rewardledger.utils.exceptions import (
    AlreadyClaimed,
    DailyLimitReached,
    InvalidState,
    NoActivePackage,
)


class DailyIncomeProcessor(RewardProcessor):
    """Package daily income."""

    @atomic_operation(lock_on="account_id")
    async def claim_daily_income(
        self, account_id: int, now: datetime | None = None
    ) -> RewardClaim:
        """
        Claim today's package income.

        Returns:
            ServiceResult with the RewardClaim
        """
        moment, day = self.moment_and_day(now)
        account = await self.ledger.get_account(account_id)
        if not account.has_package():
            raise NoActivePackage("An active package is required for daily income")
        if not account.has_active_package(moment, require_unexpired=True):
            raise InvalidState(
                f"Package expired at {account.package_expires_at()}"
            )

        package = account.package_tier
        if package.daily_income <= 0:
            raise InvalidState(f"Package {package.name} has no daily income")

        try:
            counter = await self.quotas.consume(
                account_id, DAILY_INCOME_QUOTA, day, 1, package.daily_income
            )
        except DailyLimitReached as e:
            raise AlreadyClaimed("Daily income already claimed today") from e

        tx = await self.ledger.credit(
            account_id,
            WalletType.WITHDRAWAL,
            package.daily_income,
            TransactionType.DAILY_INCOME,
            f"Daily income ({package.name})",
            idempotency_key=f"daily_income:{account_id}:{day.isoformat()}",
            activity=DAILY_INCOME_QUOTA,
            count_as_earnings=True,
            now=moment,
        )

        return RewardClaim(
            activity=DAILY_INCOME_QUOTA,
            amount=package.daily_income,
            wallet=WalletType.WITHDRAWAL,
            transaction=tx,
            daily_count=counter.count,
            daily_cap=1,
        )
