"""
Quota counter model.

One row per (account, activity, business day).
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from rewardledger.models.base import Base
from rewardledger.models.types import MoneyType


class QuotaCounter(Base):
    """Daily counter of a rewarded activity."""

    __tablename__ = "quota_counters"
    __table_args__ = (
        UniqueConstraint(
            "account_id", "activity", "day", name="uq_quota_account_activity_day"
        ),
        CheckConstraint("count >= 0", name="check_quota_count_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    activity: Mapped[str] = mapped_column(String(50), nullable=False)
    day: Mapped[date] = mapped_column(Date, nullable=False)

    count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Rewards earned under this counter today
    amount: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<QuotaCounter(account_id={self.account_id}, "
            f"activity={self.activity}, day={self.day}, count={self.count})>"
        )
