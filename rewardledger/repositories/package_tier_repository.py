"""
Package tier repository.

Data access layer for PackageTier model.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.models.package_tier import PackageTier
from rewardledger.repositories.base import BaseRepository


class PackageTierRepository(BaseRepository[PackageTier]):
    """Package tier repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize package tier repository."""
        super().__init__(PackageTier, session)

    async def get_by_name(self, name: str) -> PackageTier | None:
        """Get package tier by name."""
        return await self.get_by(name=name)

    async def find_active(self) -> list[PackageTier]:
        """Active tiers, cheapest first."""
        return await self.find_by(order_by=PackageTier.price, is_active=True)
