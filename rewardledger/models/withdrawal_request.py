"""
Withdrawal request model.

pending -> approved -> processed, or pending -> rejected.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from rewardledger.models.base import Base
from rewardledger.models.enums import WithdrawalStatus
from rewardledger.models.types import MoneyType, PercentType


class WithdrawalRequest(Base):
    """Payout request with tax breakdown and review trail."""

    __tablename__ = "withdrawal_requests"
    __table_args__ = (
        CheckConstraint("amount > 0", name="check_withdrawal_amount_positive"),
        CheckConstraint(
            "net_amount >= 0", name="check_withdrawal_net_non_negative"
        ),
        Index("ix_withdrawal_requests_account_status", "account_id", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Gross, tax (TDS) and net payout
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    net_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    tds_percent: Mapped[Decimal] = mapped_column(PercentType, nullable=False)

    # Bank details: account_number, ifsc_code, account_holder_name, bank_name
    destination: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        default=WithdrawalStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    decided_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    processed_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    reserve_transaction_id: Mapped[int | None] = mapped_column(
        ForeignKey("transactions.id"), nullable=True
    )
    refund_transaction_id: Mapped[int | None] = mapped_column(
        ForeignKey("transactions.id"), nullable=True
    )

    business_day: Mapped[date] = mapped_column(Date, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    @property
    def request_code(self) -> str:
        """Human-facing request number, e.g. WR00000042."""
        return f"WR{self.id:08d}"

    @property
    def is_pending(self) -> bool:
        """Check if request awaits a decision."""
        return self.status == WithdrawalStatus.PENDING.value

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<WithdrawalRequest(id={self.id}, account_id={self.account_id}, "
            f"amount={self.amount}, status={self.status})>"
        )
