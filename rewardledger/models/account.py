"""
Account model.

A registered participant: two wallets, lifetime totals, a single sponsor
pointer and the list of direct downline accounts.
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rewardledger.models.base import Base
from rewardledger.models.enums import WalletType
from rewardledger.models.types import MoneyType

if TYPE_CHECKING:
    from rewardledger.models.package_tier import PackageTier


class Account(Base):
    """Account model - wallets, sponsor link and one-time reward flags."""

    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint(
            "upgrade_balance >= 0", name="check_account_upgrade_non_negative"
        ),
        CheckConstraint(
            "withdrawal_balance >= 0",
            name="check_account_withdrawal_non_negative",
        ),
        CheckConstraint(
            "total_earnings >= 0", name="check_account_earnings_non_negative"
        ),
        CheckConstraint(
            "total_withdrawals >= 0",
            name="check_account_withdrawals_non_negative",
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    username: Mapped[str] = mapped_column(
        String(64), unique=True, index=True, nullable=False
    )
    referral_code: Mapped[str] = mapped_column(
        String(20), unique=True, index=True, nullable=False
    )

    # Referral tree: single upward pointer
    sponsor_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    depth: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Package
    package_tier_id: Mapped[int | None] = mapped_column(
        ForeignKey("package_tiers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    package_activated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Wallets
    upgrade_balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    withdrawal_balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Lifetime totals
    total_earnings: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    total_withdrawals: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    investment_amount: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Gaming stats
    games_played: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    gaming_earnings: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    high_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # One-time reward flags
    welcome_video_claimed: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    referral_bonus_paid: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    # Bumped by every wallet mutation
    version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

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

    # Relationships (explicit queries only; the tree can be deep)
    sponsor: Mapped[Optional["Account"]] = relationship(
        "Account",
        remote_side="Account.id",
        back_populates="downline",
        lazy="raise_on_sql",
    )
    downline: Mapped[list["Account"]] = relationship(
        "Account",
        back_populates="sponsor",
        lazy="raise_on_sql",
    )
    package_tier: Mapped[Optional["PackageTier"]] = relationship(
        "PackageTier",
        lazy="joined",
    )

    def balance_of(self, wallet: WalletType) -> Decimal:
        """Return balance of a wallet."""
        if wallet == WalletType.UPGRADE:
            return self.upgrade_balance
        return self.withdrawal_balance

    def has_package(self) -> bool:
        """True when a package reference is present and the tier is active."""
        return (
            self.package_tier_id is not None
            and self.package_tier is not None
            and self.package_tier.is_active
        )

    def package_expires_at(self) -> datetime | None:
        """Package expiry moment, or None without an activated package."""
        if not self.has_package() or self.package_activated_at is None:
            return None
        activated = self.package_activated_at
        if activated.tzinfo is None:
            activated = activated.replace(tzinfo=UTC)
        return activated + timedelta(days=self.package_tier.validity_days)

    def has_active_package(
        self, now: datetime | None = None, require_unexpired: bool = False
    ) -> bool:
        """
        Check package eligibility.

        Args:
            now: Reference moment (defaults to current UTC time)
            require_unexpired: Also require the validity window to be open

        Returns:
            True if the account holds an eligible package
        """
        if not self.has_package():
            return False
        if not require_unexpired:
            return True
        expires_at = self.package_expires_at()
        if expires_at is None:
            return False
        return (now or datetime.now(UTC)) < expires_at

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Account(id={self.id}, username={self.username}, "
            f"sponsor_id={self.sponsor_id}, "
            f"upgrade={self.upgrade_balance}, "
            f"withdrawal={self.withdrawal_balance})>"
        )
