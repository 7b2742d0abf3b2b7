"""
Team statistics.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.repositories.account_repository import AccountRepository
from rewardledger.services.referral.graph import ReferralGraph
from rewardledger.utils.datetime_utils import month_start, utc_now


@dataclass
class TeamStats:
    """Aggregates over an account's downline."""

    account_id: int
    total_members: int = 0
    direct_referrals: int = 0
    active_members: int = 0
    team_investment: Decimal = Decimal("0")
    team_earnings: Decimal = Decimal("0")
    level_counts: dict[int, int] = field(default_factory=dict)
    joined_this_month: int = 0


class ReferralStatistics:
    """Computes TeamStats level by level."""

    def __init__(self, session: AsyncSession) -> None:
        self.accounts = AccountRepository(session)
        self.graph = ReferralGraph(session)

    async def team_stats(
        self, account_id: int, max_levels: int = 10, now: datetime | None = None
    ) -> TeamStats:
        """
        Compute team statistics down to max_levels.

        Args:
            account_id: Team leader
            max_levels: Levels to include
            now: Reference moment for "this month"

        Returns:
            TeamStats
        """
        levels = await self.graph.downline_levels(account_id, max_levels)
        since = month_start(now or utc_now())

        stats = TeamStats(account_id=account_id)
        for index, member_ids in enumerate(levels, start=1):
            stats.level_counts[index] = len(member_ids)
            for member in await self.accounts.find_by_ids(member_ids):
                stats.total_members += 1
                if member.has_package():
                    stats.active_members += 1
                stats.team_investment += member.investment_amount
                stats.team_earnings += member.total_earnings
                created = member.created_at
                if created.tzinfo is None:
                    created = created.replace(tzinfo=since.tzinfo)
                if created >= since:
                    stats.joined_this_month += 1

        stats.direct_referrals = stats.level_counts.get(1, 0)
        return stats
