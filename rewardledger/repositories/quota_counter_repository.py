"""
Quota counter repository.

Counters are created lazily with INSERT ... ON CONFLICT DO NOTHING and
incremented with a conditional UPDATE guarded by the cap.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.models.quota_counter import QuotaCounter
from rewardledger.repositories.base import BaseRepository
from rewardledger.utils.datetime_utils import utc_now


class QuotaCounterRepository(BaseRepository[QuotaCounter]):
    """Quota counter repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize quota counter repository."""
        super().__init__(QuotaCounter, session)

    async def get_counter(
        self, account_id: int, activity: str, day: date
    ) -> QuotaCounter | None:
        """Get counter row, or None if nothing was consumed that day."""
        return await self.get_by(account_id=account_id, activity=activity, day=day)

    async def find_for_day(self, account_id: int, day: date) -> list[QuotaCounter]:
        """All counters of an account for one day."""
        return await self.find_by(
            order_by=QuotaCounter.activity, account_id=account_id, day=day
        )

    async def ensure(self, account_id: int, activity: str, day: date) -> None:
        """
        Create the zero counter unless it already exists.

        Args:
            account_id: Account ID
            activity: Activity key
            day: Business day
        """
        values = {
            "account_id": account_id,
            "activity": activity,
            "day": day,
            "count": 0,
            "amount": Decimal("0"),
            "updated_at": utc_now(),
        }
        dialect = self.session.get_bind().dialect.name

        if dialect == "postgresql":
            stmt = postgresql.insert(QuotaCounter).values(**values)
        elif dialect == "sqlite":
            stmt = sqlite.insert(QuotaCounter).values(**values)
        else:
            if await self.get_counter(account_id, activity, day) is None:
                await self.create(**values)
            return

        await self.session.execute(
            stmt.on_conflict_do_nothing(
                index_elements=["account_id", "activity", "day"]
            )
        )

    async def try_increment(
        self,
        account_id: int,
        activity: str,
        day: date,
        cap: int | None,
        amount: Decimal,
    ) -> bool:
        """
        Add one to the counter while it is below cap.

        Args:
            account_id: Account ID
            activity: Activity key
            day: Business day
            cap: Max count per day (None = uncapped)
            amount: Reward to add to the counter's amount

        Returns:
            True if the counter was incremented
        """
        stmt = update(QuotaCounter).where(
            QuotaCounter.account_id == account_id,
            QuotaCounter.activity == activity,
            QuotaCounter.day == day,
        )
        if cap is not None:
            stmt = stmt.where(QuotaCounter.count < cap)
        stmt = stmt.values(
            count=QuotaCounter.count + 1,
            amount=QuotaCounter.amount + amount,
            updated_at=utc_now(),
        ).execution_options(synchronize_session=False)

        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def get_count(self, account_id: int, activity: str, day: date) -> int:
        """Current count (0 when no counter exists)."""
        stmt = select(QuotaCounter.count).where(
            QuotaCounter.account_id == account_id,
            QuotaCounter.activity == activity,
            QuotaCounter.day == day,
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0
