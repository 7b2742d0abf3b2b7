"""
Transaction repository.

Data access layer for the append-only Transaction ledger.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.models.enums import TransactionStatus
from rewardledger.models.transaction import Transaction
from rewardledger.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Transaction repository with ledger aggregates."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize transaction repository."""
        super().__init__(Transaction, session)

    async def get_by_idempotency_key(self, key: str) -> Transaction | None:
        """Get transaction recorded under an idempotency key."""
        return await self.get_by(idempotency_key=key)

    async def get_history(
        self,
        account_id: int,
        limit: int = 50,
        offset: int = 0,
        type: str | None = None,
    ) -> list[Transaction]:
        """
        Get account transactions, newest first.

        Args:
            account_id: Account ID
            limit: Max results
            offset: Results to skip
            type: Optional transaction type filter

        Returns:
            List of transactions
        """
        stmt = select(Transaction).where(Transaction.account_id == account_id)
        if type is not None:
            stmt = stmt.where(Transaction.type == type)
        stmt = (
            stmt.order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_wallet_sums(
        self, account_id: int
    ) -> dict[tuple[str, str], Decimal]:
        """
        Sum completed amounts per (wallet, direction).

        Args:
            account_id: Account ID

        Returns:
            Dict of (wallet, direction) -> total amount
        """
        stmt = (
            select(
                Transaction.wallet,
                Transaction.direction,
                func.coalesce(func.sum(Transaction.amount), 0),
            )
            .where(
                Transaction.account_id == account_id,
                Transaction.status == TransactionStatus.COMPLETED.value,
            )
            .group_by(Transaction.wallet, Transaction.direction)
        )
        result = await self.session.execute(stmt)
        return {
            (row[0], row[1]): Decimal(str(row[2])) for row in result.all()
        }

    async def get_totals_by_type(
        self, account_id: int
    ) -> dict[tuple[str, str], tuple[Decimal, int]]:
        """
        Completed totals grouped by (type, direction).

        Returns:
            Dict of (type, direction) -> (total amount, count)
        """
        stmt = (
            select(
                Transaction.type,
                Transaction.direction,
                func.coalesce(func.sum(Transaction.amount), 0),
                func.count(Transaction.id),
            )
            .where(
                Transaction.account_id == account_id,
                Transaction.status == TransactionStatus.COMPLETED.value,
            )
            .group_by(Transaction.type, Transaction.direction)
        )
        result = await self.session.execute(stmt)
        return {
            (row[0], row[1]): (Decimal(str(row[2])), row[3])
            for row in result.all()
        }

    async def count_for_day(
        self, account_id: int, type: str, day: date
    ) -> int:
        """Count transactions of a type on a business day."""
        return await self.count(account_id=account_id, type=type, business_day=day)

    async def sum_for_accounts(
        self, account_ids: list[int], direction: str, types: list[str] | None = None
    ) -> Decimal:
        """Total completed amount across several accounts."""
        if not account_ids:
            return Decimal("0")
        stmt = select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            Transaction.account_id.in_(account_ids),
            Transaction.direction == direction,
            Transaction.status == TransactionStatus.COMPLETED.value,
        )
        if types:
            stmt = stmt.where(Transaction.type.in_(types))
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))
