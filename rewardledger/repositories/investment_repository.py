"""
Investment repository.

Data access layer for Investment model.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.models.enums import InvestmentStatus
from rewardledger.models.investment import Investment
from rewardledger.repositories.base import BaseRepository


class InvestmentRepository(BaseRepository[Investment]):
    """Investment repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize investment repository."""
        super().__init__(Investment, session)

    async def transition(
        self,
        investment_id: str,
        from_status: InvestmentStatus,
        to_status: InvestmentStatus,
        **values: Any,
    ) -> bool:
        """Change status if the investment is still in from_status."""
        stmt = (
            update(Investment)
            .where(
                Investment.id == investment_id,
                Investment.status == from_status.value,
            )
            .values(status=to_status.value, **values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def count_completed_between(
        self, account_id: int, start: datetime, end: datetime
    ) -> int:
        """Count completed investments in [start, end)."""
        stmt = select(func.count()).select_from(Investment).where(
            Investment.account_id == account_id,
            Investment.status == InvestmentStatus.COMPLETED.value,
            Investment.completed_at >= start,
            Investment.completed_at < end,
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def total_completed(self, account_ids: list[int]) -> Decimal:
        """Sum of completed investments of several accounts."""
        if not account_ids:
            return Decimal("0")
        stmt = select(func.coalesce(func.sum(Investment.amount), 0)).where(
            Investment.account_id.in_(account_ids),
            Investment.status == InvestmentStatus.COMPLETED.value,
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))
