"""
Daily task processor.

The task bundle is read-only progress against targets; only the login
bonus is independently claimable, once per business day.
"""

from datetime import datetime

from rewardledger.models.enums import LOGIN_QUOTA, TransactionType, WalletType
from rewardledger.repositories.investment_repository import InvestmentRepository
from rewardledger.services.base_service import atomic_operation
from rewardledger.services.reward.claims import (
    DailyTaskBundle,
    DailyTaskProgress,
    RewardClaim,
)
from rewardledger.services.reward.processor_base import RewardProcessor
from rewardledger.utils.datetime_utils import day_bounds
from rewardledger.utils.exceptions import (
    AlreadyClaimed,
    DailyLimitReached,
    NoActivePackage,
)

# Task -> quota activity family counted as progress
_FAMILY_TASKS = {
    "watch_videos": "video:",
    "view_ads": "ad:",
    "play_games": "game:",
}


class DailyTaskProcessor(RewardProcessor):
    """Daily tasks and login bonus."""

    async def get_daily_tasks(
        self, account_id: int, now: datetime | None = None
    ) -> DailyTaskBundle:
        """
        Today's task progress.

        Args:
            account_id: Account ID
            now: Reference moment

        Returns:
            DailyTaskBundle (raises AccountNotFound)
        """
        moment, day = self.moment_and_day(now)
        account = await self.ledger.get_account(account_id)
        package = account.package_tier if account.has_package() else None
        has_package = account.has_active_package(moment)

        status = await self.quotas.get_status(account_id, day)
        start, end = day_bounds(day, self.tz)

        def family_count(prefix: str) -> int:
            return sum(
                s.count for key, s in status.items() if key.startswith(prefix)
            )

        login_claimed = status.get(LOGIN_QUOTA) is not None and (
            status[LOGIN_QUOTA].count > 0
        )

        progress: dict[str, int] = {
            "login": 1 if login_claimed else 0,
            "refer_friend": await self.accounts.count_joined_between(
                account_id, start, end
            ),
            "make_transaction": await InvestmentRepository(
                self.session
            ).count_completed_between(account_id, start, end),
        }
        for task, prefix in _FAMILY_TASKS.items():
            progress[task] = family_count(prefix)

        tasks = []
        for name, rule in self.rules.daily_tasks.items():
            is_login = name == "login"
            tasks.append(
                DailyTaskProgress(
                    task=name,
                    description=rule.description,
                    target=rule.target,
                    progress=progress.get(name, 0),
                    reward=self.calculator.calculate_task_reward(
                        rule.reward, package
                    ),
                    claimable=is_login and has_package and not login_claimed,
                    claimed=is_login and login_claimed,
                )
            )

        return DailyTaskBundle(
            account_id=account_id,
            day=day.isoformat(),
            multiplier=self.calculator.tier_multiplier(package),
            tasks=tasks,
        )

    @atomic_operation(lock_on="account_id")
    async def claim_login_bonus(
        self, account_id: int, now: datetime | None = None
    ) -> RewardClaim:
        """
        Claim today's login bonus.

        Returns:
            ServiceResult with the RewardClaim
        """
        moment, day = self.moment_and_day(now)
        account = await self.ledger.get_account(account_id)
        if not account.has_active_package(moment):
            raise NoActivePackage("An active package is required for login bonus")

        amount = self.calculator.calculate_task_reward(
            self.rules.daily_tasks["login"].reward, account.package_tier
        )
        try:
            counter = await self.quotas.consume(
                account_id, LOGIN_QUOTA, day, 1, amount
            )
        except DailyLimitReached as e:
            raise AlreadyClaimed("Login bonus already claimed today") from e

        tx = None
        if amount > 0:
            tx = await self.ledger.credit(
                account_id,
                WalletType.UPGRADE,
                amount,
                TransactionType.DAILY_LOGIN,
                "Daily login bonus",
                idempotency_key=f"daily_login:{account_id}:{day.isoformat()}",
                activity=LOGIN_QUOTA,
                count_as_earnings=True,
                now=moment,
            )

        return RewardClaim(
            activity=LOGIN_QUOTA,
            amount=amount,
            wallet=WalletType.UPGRADE,
            transaction=tx,
            daily_count=counter.count,
            daily_cap=1,
        )
