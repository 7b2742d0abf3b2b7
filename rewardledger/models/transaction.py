"""
Transaction model.

Append-only ledger entries. A wallet balance always equals the sum of its
completed credits minus its completed debits.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from rewardledger.models.base import Base
from rewardledger.models.enums import EntryDirection, TransactionStatus
from rewardledger.models.types import MoneyType


class Transaction(Base):
    """Ledger entry against one wallet of one account."""

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="check_transaction_amount_positive"),
        CheckConstraint(
            "tax_amount >= 0", name="check_transaction_tax_non_negative"
        ),
        Index(
            "ix_transactions_account_day_type",
            "account_id",
            "business_day",
            "type",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    wallet: Mapped[str] = mapped_column(String(20), nullable=False)
    direction: Mapped[str] = mapped_column(String(10), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    # Gross amount moved; tax/net are informational (withdrawals)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    net_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        default=TransactionStatus.COMPLETED.value,
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    activity: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reference: Mapped[str | None] = mapped_column(
        String(100), nullable=True, index=True
    )
    idempotency_key: Mapped[str | None] = mapped_column(
        String(200), unique=True, nullable=True
    )

    business_day: Mapped[date] = mapped_column(Date, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    @property
    def signed_amount(self) -> Decimal:
        """Amount as a wallet delta."""
        if self.direction == EntryDirection.DEBIT.value:
            return -self.amount
        return self.amount

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Transaction(id={self.id}, account_id={self.account_id}, "
            f"{self.direction} {self.amount} {self.wallet}, "
            f"type={self.type})>"
        )
