"""
Package tier model.

Purchasable packages: price, daily income, validity window, per-level
commission percentages and optional per-family reward multipliers.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import JSON, Boolean, DateTime, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from rewardledger.models.base import Base
from rewardledger.models.types import MoneyType


class PackageTier(Base):
    """Package tier with commission table and reward multipliers."""

    __tablename__ = "package_tiers"

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(
        String(50), unique=True, index=True, nullable=False
    )

    price: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    daily_income: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    validity_days: Mapped[int] = mapped_column(
        Integer, default=30, nullable=False
    )

    # Percent per level, index 0 = level 1. Stored as strings for exactness.
    level_commission_percents: Mapped[list[str]] = mapped_column(
        JSON, default=list, nullable=False
    )

    # Explicit per-family multipliers; NULL = derive from price thresholds
    game_multiplier: Mapped[Decimal | None] = mapped_column(
        Numeric(6, 2), nullable=True
    )
    video_multiplier: Mapped[Decimal | None] = mapped_column(
        Numeric(6, 2), nullable=True
    )
    ad_multiplier: Mapped[Decimal | None] = mapped_column(
        Numeric(6, 2), nullable=True
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, index=True, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def level_percent(self, level: int) -> Decimal | None:
        """
        Commission percent configured for a level.

        Args:
            level: 1-based level (1 = direct sponsor)

        Returns:
            Percent or None when the table has no entry for the level
        """
        percents = self.level_commission_percents or []
        if level < 1 or level > len(percents):
            return None
        return Decimal(str(percents[level - 1]))

    def multiplier_override(self, family: str) -> Decimal | None:
        """Explicit multiplier for a reward family (game/video/ad)."""
        return {
            "game": self.game_multiplier,
            "video": self.video_multiplier,
            "ad": self.ad_multiplier,
        }.get(family)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<PackageTier(id={self.id}, name={self.name}, "
            f"price={self.price})>"
        )
