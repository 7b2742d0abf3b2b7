"""
Commission payout model.

Audit row per paid (investment event, sponsor, level); the unique
constraint makes level income idempotent per event.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rewardledger.models.base import Base
from rewardledger.models.types import MoneyType, PercentType


class CommissionPayout(Base):
    """Level income paid to one ancestor for one investment event."""

    __tablename__ = "commission_payouts"
    __table_args__ = (
        UniqueConstraint(
            "investment_event_id",
            "sponsor_id",
            "level",
            name="uq_commission_event_sponsor_level",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    investment_event_id: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True
    )
    sponsor_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    investor_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="RESTRICT"), nullable=False
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    percent: Mapped[Decimal] = mapped_column(PercentType, nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    transaction_id: Mapped[int] = mapped_column(
        ForeignKey("transactions.id"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<CommissionPayout(event={self.investment_event_id}, "
            f"sponsor_id={self.sponsor_id}, level={self.level}, "
            f"amount={self.amount})>"
        )
