"""
Shared plumbing for reward processors.
"""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.config.rules import CompensationRules
from rewardledger.repositories.account_repository import AccountRepository
from rewardledger.services.base_service import BaseService
from rewardledger.services.ledger.wallet_ledger import WalletLedger
from rewardledger.services.quota.quota_tracker import QuotaTracker
from rewardledger.services.reward.reward_calculator import RewardCalculator
from rewardledger.utils.datetime_utils import business_day, utc_now
from rewardledger.utils.locks import AccountLockRegistry


class RewardProcessor(BaseService):
    """Base for processors that credit rewards through the ledger."""

    def __init__(
        self,
        session: AsyncSession,
        rules: CompensationRules,
        *,
        locks: AccountLockRegistry | None = None,
        timezone: ZoneInfo | None = None,
    ) -> None:
        super().__init__(session, locks=locks, timezone=timezone)
        self.rules = rules
        self.calculator = RewardCalculator(rules)
        self.accounts = AccountRepository(session)
        self.ledger = WalletLedger(session, self.tz)
        self.quotas = QuotaTracker(session)

    def moment_and_day(self, now: datetime | None) -> tuple[datetime, date]:
        """Resolve claim moment and its business day."""
        moment = now or utc_now()
        return moment, business_day(moment, self.tz)
