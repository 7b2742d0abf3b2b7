"""
Withdrawal request repository.

Data access layer for WithdrawalRequest model.
"""

from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.models.enums import WithdrawalStatus
from rewardledger.models.withdrawal_request import WithdrawalRequest
from rewardledger.repositories.base import BaseRepository
from rewardledger.utils.datetime_utils import utc_now


class WithdrawalRequestRepository(BaseRepository[WithdrawalRequest]):
    """Withdrawal request repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize withdrawal request repository."""
        super().__init__(WithdrawalRequest, session)

    async def sum_for_day(
        self,
        account_id: int,
        day: date,
        statuses: tuple[WithdrawalStatus, ...] = (
            WithdrawalStatus.PENDING,
            WithdrawalStatus.APPROVED,
            WithdrawalStatus.PROCESSED,
        ),
    ) -> Decimal:
        """
        Total gross amount requested on a business day.

        Args:
            account_id: Account ID
            day: Business day
            statuses: Statuses that count against the daily cap

        Returns:
            Sum of gross amounts
        """
        stmt = select(
            func.coalesce(func.sum(WithdrawalRequest.amount), 0)
        ).where(
            WithdrawalRequest.account_id == account_id,
            WithdrawalRequest.business_day == day,
            WithdrawalRequest.status.in_([s.value for s in statuses]),
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))

    async def transition(
        self,
        request_id: int,
        from_status: WithdrawalStatus,
        to_status: WithdrawalStatus,
        **values: Any,
    ) -> bool:
        """
        Move a request between states if it is still in from_status.

        Args:
            request_id: Request ID
            from_status: Expected current status
            to_status: New status
            **values: Extra columns to set

        Returns:
            True if this call performed the transition
        """
        stmt = (
            update(WithdrawalRequest)
            .where(
                WithdrawalRequest.id == request_id,
                WithdrawalRequest.status == from_status.value,
            )
            .values(status=to_status.value, updated_at=utc_now(), **values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def find_pending(self, limit: int = 100) -> list[WithdrawalRequest]:
        """Pending requests, oldest first."""
        return await self.find_by(
            order_by=WithdrawalRequest.created_at,
            limit=limit,
            status=WithdrawalStatus.PENDING.value,
        )
