"""
Account repository.

Data access layer for Account model. Balance changes are single
conditional UPDATE statements: the row count tells whether the guard held.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.models.account import Account
from rewardledger.models.enums import WalletType
from rewardledger.repositories.base import BaseRepository


_WALLET_COLUMNS = {
    WalletType.UPGRADE: Account.upgrade_balance,
    WalletType.WITHDRAWAL: Account.withdrawal_balance,
}


class AccountRepository(BaseRepository[Account]):
    """Account repository with tree and wallet queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize account repository."""
        super().__init__(Account, session)

    async def get_by_username(self, username: str) -> Account | None:
        """Get account by username."""
        return await self.get_by(username=username)

    async def get_by_referral_code(self, referral_code: str) -> Account | None:
        """
        Get account by referral code (case-insensitive).

        Args:
            referral_code: Referral code

        Returns:
            Account or None
        """
        return await self.get_by(referral_code=referral_code.strip().upper())

    async def get_sponsor_id(self, account_id: int) -> tuple[bool, int | None]:
        """
        Read the sponsor pointer of one account.

        Returns:
            Tuple of (account exists, sponsor id or None)
        """
        stmt = select(Account.sponsor_id).where(Account.id == account_id)
        result = await self.session.execute(stmt)
        row = result.first()
        if row is None:
            return False, None
        return True, row[0]

    async def get_children(
        self, parent_ids: list[int]
    ) -> list[tuple[int, int]]:
        """
        Direct downline of several accounts in one query.

        Args:
            parent_ids: Sponsor account IDs

        Returns:
            List of (account_id, sponsor_id)
        """
        if not parent_ids:
            return []
        stmt = (
            select(Account.id, Account.sponsor_id)
            .where(Account.sponsor_id.in_(parent_ids))
            .order_by(Account.id)
        )
        result = await self.session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    async def find_by_ids(self, ids: list[int]) -> list[Account]:
        """Load several accounts (with package tier) in one query."""
        if not ids:
            return []
        stmt = (
            select(Account)
            .where(Account.id.in_(ids))
            .order_by(Account.id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.unique().scalars().all())

    async def count_joined_between(
        self, sponsor_id: int, start: datetime, end: datetime
    ) -> int:
        """Count direct referrals registered in [start, end)."""
        stmt = select(func.count()).select_from(Account).where(
            Account.sponsor_id == sponsor_id,
            Account.created_at >= start,
            Account.created_at < end,
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def apply_wallet_delta(
        self,
        account_id: int,
        wallet: WalletType,
        delta: Decimal,
        count_as_earnings: bool = False,
    ) -> bool:
        """
        Atomically add delta to a wallet.

        A negative delta only applies while the balance covers it, so the
        wallet can never go below zero.

        Args:
            account_id: Account ID
            wallet: Wallet to change
            delta: Signed amount
            count_as_earnings: Also add delta to total_earnings

        Returns:
            True if the row was updated
        """
        column = _WALLET_COLUMNS[wallet]
        values: dict[Any, Any] = {
            column: column + delta,
            Account.version: Account.version + 1,
        }
        if count_as_earnings:
            values[Account.total_earnings] = Account.total_earnings + delta

        stmt = update(Account).where(Account.id == account_id)
        if delta < 0:
            stmt = stmt.where(column >= -delta)
        stmt = stmt.values(values).execution_options(synchronize_session=False)

        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def claim_flag(self, account_id: int, flag: str) -> bool:
        """
        Flip a one-time boolean flag from False to True.

        Args:
            account_id: Account ID
            flag: Column name (welcome_video_claimed, referral_bonus_paid)

        Returns:
            True if this call flipped the flag
        """
        column = getattr(Account, flag)
        stmt = (
            update(Account)
            .where(Account.id == account_id, column.is_(False))
            .values({column: True})
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def increment(self, account_id: int, **increments: Any) -> None:
        """
        Atomically add to counter columns.

        Args:
            account_id: Account ID
            **increments: column name -> amount to add
        """
        values = {
            getattr(Account, name): getattr(Account, name) + amount
            for name, amount in increments.items()
        }
        stmt = (
            update(Account)
            .where(Account.id == account_id)
            .values(values)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def raise_high_score(self, account_id: int, score: int) -> None:
        """Store score when it beats the current high score."""
        stmt = (
            update(Account)
            .where(Account.id == account_id, Account.high_score < score)
            .values(high_score=score)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def activate_package(
        self,
        account_id: int,
        package_tier_id: int,
        activated_at: datetime,
        amount: Decimal,
    ) -> None:
        """Set the account package and add to investment_amount."""
        stmt = (
            update(Account)
            .where(Account.id == account_id)
            .values(
                package_tier_id=package_tier_id,
                package_activated_at=activated_at,
                investment_amount=Account.investment_amount + amount,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
