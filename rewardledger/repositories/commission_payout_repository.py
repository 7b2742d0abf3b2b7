"""
Commission payout repository.

Data access layer for CommissionPayout model.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.models.commission_payout import CommissionPayout
from rewardledger.repositories.base import BaseRepository


class CommissionPayoutRepository(BaseRepository[CommissionPayout]):
    """Commission payout repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission payout repository."""
        super().__init__(CommissionPayout, session)

    async def get_for_level(
        self, event_id: str, sponsor_id: int, level: int
    ) -> CommissionPayout | None:
        """Payout already made for (event, sponsor, level), if any."""
        return await self.get_by(
            investment_event_id=event_id, sponsor_id=sponsor_id, level=level
        )

    async def find_by_event(self, event_id: str) -> list[CommissionPayout]:
        """All payouts of an investment event, nearest level first."""
        return await self.find_by(
            order_by=CommissionPayout.level, investment_event_id=event_id
        )

    async def total_for_event(self, event_id: str) -> Decimal:
        """Total commission paid for an investment event."""
        stmt = select(
            func.coalesce(func.sum(CommissionPayout.amount), 0)
        ).where(CommissionPayout.investment_event_id == event_id)
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))
