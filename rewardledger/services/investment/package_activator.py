"""
Package activation.

Shared by wallet purchases and confirmed gateway payments.
"""

from datetime import datetime

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.models.investment import Investment
from rewardledger.models.package_tier import PackageTier
from rewardledger.repositories.account_repository import AccountRepository
from rewardledger.repositories.package_tier_repository import (
    PackageTierRepository,
)
from rewardledger.utils.exceptions import PackageNotFound


class PackageActivator:
    """Activates packages on accounts (flush only)."""

    def __init__(self, session: AsyncSession) -> None:
        self.accounts = AccountRepository(session)
        self.packages = PackageTierRepository(session)

    async def get_purchasable(self, package_tier_id: int) -> PackageTier:
        """
        Load an active package tier.

        Raises:
            PackageNotFound: If the tier is missing or inactive
        """
        package = await self.packages.get_by_id(package_tier_id)
        if package is None or not package.is_active:
            raise PackageNotFound(f"Package {package_tier_id} not available")
        return package

    async def activate(self, investment: Investment, now: datetime) -> None:
        """Point the account at the bought package and add the investment."""
        await self.accounts.activate_package(
            investment.account_id,
            investment.package_tier_id,
            now,
            investment.amount,
        )
        logger.bind(
            account_id=investment.account_id,
            investment_id=investment.id,
            amount=str(investment.amount),
        ).info(
            f"Package {investment.package_tier_id} activated for "
            f"account {investment.account_id}",
        )
