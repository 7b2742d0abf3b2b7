"""
Quota tracker.

Per-(account, activity, business day) counters. consume() is a single
atomic check-and-increment, so concurrent claims can never push a counter
past its cap.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.models.quota_counter import QuotaCounter
from rewardledger.repositories.quota_counter_repository import (
    QuotaCounterRepository,
)
from rewardledger.utils.exceptions import DailyLimitReached


@dataclass(frozen=True)
class QuotaStatus:
    """Usage of one activity on one day."""

    activity: str
    count: int
    cap: int | None
    amount: Decimal

    @property
    def remaining(self) -> int | None:
        if self.cap is None:
            return None
        return max(self.cap - self.count, 0)

    @property
    def exhausted(self) -> bool:
        return self.cap is not None and self.count >= self.cap


class QuotaTracker:
    """Daily activity counters (flush only)."""

    def __init__(self, session: AsyncSession) -> None:
        self.counters = QuotaCounterRepository(session)

    async def consume(
        self,
        account_id: int,
        activity: str,
        day: date,
        cap: int | None,
        amount: Decimal = Decimal("0"),
    ) -> QuotaCounter:
        """
        Count one more occurrence of activity.

        Args:
            account_id: Account ID
            activity: Activity key, e.g. ``game:casual``
            day: Business day
            cap: Max per day (None = uncapped)
            amount: Reward earned by this occurrence

        Returns:
            Updated counter

        Raises:
            DailyLimitReached: If the counter already reached cap
        """
        await self.counters.ensure(account_id, activity, day)
        consumed = await self.counters.try_increment(
            account_id, activity, day, cap, amount
        )
        if not consumed:
            logger.bind(account_id=account_id, activity=activity, cap=cap).warning(
                f"Daily limit reached for {activity}",
            )
            raise DailyLimitReached(
                f"Daily limit of {cap} reached for {activity}",
                activity=activity,
                cap=cap,
            )
        return await self.counters.get_counter(account_id, activity, day)

    async def get_count(self, account_id: int, activity: str, day: date) -> int:
        """Occurrences counted so far on day."""
        return await self.counters.get_count(account_id, activity, day)

    async def get_status(
        self,
        account_id: int,
        day: date,
        caps: dict[str, int | None] | None = None,
    ) -> dict[str, QuotaStatus]:
        """
        Usage of all activities on day.

        Args:
            account_id: Account ID
            day: Business day
            caps: Known activity caps; listed activities appear even unused

        Returns:
            Dict of activity -> QuotaStatus
        """
        caps = caps or {}
        status = {
            activity: QuotaStatus(activity, 0, cap, Decimal("0"))
            for activity, cap in caps.items()
        }
        for counter in await self.counters.find_for_day(account_id, day):
            status[counter.activity] = QuotaStatus(
                activity=counter.activity,
                count=counter.count,
                cap=caps.get(counter.activity),
                amount=counter.amount,
            )
        return status
