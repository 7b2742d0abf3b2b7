"""
Referral service - Main service facade.

Module structure:
- referral/code_generator: referral code candidates
- referral/graph: sponsor chain, subtree, registration guard
- referral/statistics: team statistics
"""

import random
from collections.abc import AsyncIterator
from datetime import datetime
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.models.account import Account
from rewardledger.repositories.account_repository import AccountRepository
from rewardledger.services.base_service import (
    BaseService,
    atomic_operation,
    read_operation,
)
from rewardledger.services.referral.code_generator import (
    MAX_ATTEMPTS,
    generate_referral_code,
)
from rewardledger.services.referral.graph import ReferralGraph, TreeNode
from rewardledger.services.referral.statistics import (
    ReferralStatistics,
    TeamStats,
)
from rewardledger.utils.datetime_utils import utc_now
from rewardledger.utils.exceptions import (
    InvalidState,
    ReferralCodeUnavailable,
    UnknownReferralCode,
    ValidationError,
)
from rewardledger.utils.locks import AccountLockRegistry


class ReferralService(BaseService):
    """Registration and referral tree queries."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        locks: AccountLockRegistry | None = None,
        timezone: ZoneInfo | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize referral service and its components."""
        super().__init__(session, locks=locks, timezone=timezone)
        self.accounts = AccountRepository(session)
        self.graph = ReferralGraph(session)
        self.statistics = ReferralStatistics(session)
        self.rng = rng

    @atomic_operation()
    async def register(
        self,
        username: str,
        sponsor_referral_code: str | None = None,
        now: datetime | None = None,
    ) -> Account:
        """
        Register an account, optionally under a sponsor.

        Args:
            username: Unique username
            sponsor_referral_code: Sponsor's referral code (None = root)
            now: Registration moment

        Returns:
            ServiceResult with the new account
        """
        username = (username or "").strip()
        if not username:
            raise ValidationError("Username must not be empty")
        if await self.accounts.exists(username=username):
            raise InvalidState(f"Username {username} is already taken")

        sponsor: Account | None = None
        if sponsor_referral_code:
            sponsor = await self.accounts.get_by_referral_code(
                sponsor_referral_code
            )
            if sponsor is None:
                raise UnknownReferralCode(
                    f"Unknown referral code: {sponsor_referral_code}"
                )

        referral_code = await self._unique_referral_code(username)
        moment = now or utc_now()
        account = await self.accounts.create(
            username=username,
            referral_code=referral_code,
            sponsor_id=sponsor.id if sponsor else None,
            depth=sponsor.depth + 1 if sponsor else 0,
            created_at=moment,
            updated_at=moment,
        )
        if sponsor is not None:
            await self.graph.ensure_acyclic(account.id, sponsor.id)

        self.logger.bind(
            account_id=account.id,
            sponsor_id=account.sponsor_id,
            referral_code=referral_code,
        ).info(
            f"Account registered: {username}",
        )
        return account

    async def _unique_referral_code(self, username: str) -> str:
        for _ in range(MAX_ATTEMPTS):
            code = generate_referral_code(username, self.rng)
            if not await self.accounts.exists(referral_code=code):
                return code
        raise ReferralCodeUnavailable(
            f"No unique referral code after {MAX_ATTEMPTS} attempts"
        )

    @read_operation
    async def sponsor_chain(
        self, account_id: int, max_depth: int = 10
    ) -> AsyncIterator[tuple[int, Account]]:
        """
        Ancestors nearest first as (level, account).

        The account is checked up front; the returned iterator then reads
        one ancestor per step.

        Returns:
            ServiceResult with an async iterator of (level, account)
        """
        await self.graph.require_account(account_id)
        return self.graph.sponsor_chain(account_id, max_depth)

    @read_operation
    async def subtree(self, account_id: int, max_depth: int = 10) -> TreeNode:
        """Downline tree, breadth-first (ServiceResult with the root node)."""
        return await self.graph.subtree(account_id, max_depth)

    @read_operation
    async def team_stats(
        self, account_id: int, max_levels: int = 10, now: datetime | None = None
    ) -> TeamStats:
        """Team statistics (ServiceResult with TeamStats)."""
        return await self.statistics.team_stats(account_id, max_levels, now)
