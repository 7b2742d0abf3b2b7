"""
Investment model.

A package purchase. The string id doubles as the commission event id.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from rewardledger.models.base import Base
from rewardledger.models.enums import InvestmentStatus
from rewardledger.models.types import MoneyType


class Investment(Base):
    """Package purchase record."""

    __tablename__ = "investments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    package_tier_id: Mapped[int] = mapped_column(
        ForeignKey("package_tiers.id", ondelete="RESTRICT"), nullable=False
    )

    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=InvestmentStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    gateway_reference: Mapped[str | None] = mapped_column(
        String(128), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Investment(id={self.id}, account_id={self.account_id}, "
            f"amount={self.amount}, status={self.status})>"
        )
