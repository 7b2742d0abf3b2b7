"""
Ledger service - Main service facade.

Module structure:
- ledger/wallet_ledger: credit, debit and transfer primitives
- ledger/reports: balances, history, integrity and earnings reports

Each mutating method is one atomic operation locked on the account.
"""

from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.models.enums import TransactionType, WalletType
from rewardledger.models.transaction import Transaction
from rewardledger.services.base_service import (
    BaseService,
    atomic_operation,
    read_operation,
)
from rewardledger.services.ledger.reports import (
    EarningsSummary,
    IntegrityReport,
    LedgerReports,
    TransferReceipt,
    WalletBalance,
)
from rewardledger.services.ledger.wallet_ledger import WalletLedger
from rewardledger.utils.locks import AccountLockRegistry


class LedgerService(BaseService):
    """Public ledger operations."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        locks: AccountLockRegistry | None = None,
        timezone: ZoneInfo | None = None,
    ) -> None:
        """Initialize ledger service and its components."""
        super().__init__(session, locks=locks, timezone=timezone)
        self.ledger = WalletLedger(session, self.tz)
        self.reports = LedgerReports(session)

    # ========================================================================
    # MUTATIONS
    # ========================================================================

    @atomic_operation(lock_on="account_id")
    async def credit(
        self,
        account_id: int,
        wallet: WalletType | str,
        amount: Decimal,
        tx_type: TransactionType,
        description: str,
        *,
        reference: str | None = None,
        idempotency_key: str | None = None,
        activity: str | None = None,
        count_as_earnings: bool = False,
        now: datetime | None = None,
    ) -> Transaction:
        """
        Credit a wallet.

        Returns:
            ServiceResult with the credit transaction (the existing one for
            a repeated idempotency key)
        """
        return await self.ledger.credit(
            account_id,
            wallet,
            amount,
            tx_type,
            description,
            reference=reference,
            idempotency_key=idempotency_key,
            activity=activity,
            count_as_earnings=count_as_earnings,
            now=now,
        )

    @atomic_operation(lock_on="account_id")
    async def debit(
        self,
        account_id: int,
        wallet: WalletType | str,
        amount: Decimal,
        tx_type: TransactionType,
        description: str,
        *,
        tax_amount: Decimal = Decimal("0"),
        reference: str | None = None,
        idempotency_key: str | None = None,
        now: datetime | None = None,
    ) -> Transaction:
        """
        Debit a wallet; fails with InsufficientFunds rather than clamping.

        Returns:
            ServiceResult with the debit transaction
        """
        return await self.ledger.debit(
            account_id,
            wallet,
            amount,
            tx_type,
            description,
            tax_amount=tax_amount,
            reference=reference,
            idempotency_key=idempotency_key,
            now=now,
        )

    @atomic_operation(lock_on="account_id")
    async def transfer(
        self,
        account_id: int,
        from_wallet: WalletType | str,
        to_wallet: WalletType | str,
        amount: Decimal,
        now: datetime | None = None,
    ) -> TransferReceipt:
        """
        Move funds between the account's wallets, all-or-nothing.

        Returns:
            ServiceResult with the debit/credit pair
        """
        debit, credit = await self.ledger.transfer(
            account_id, from_wallet, to_wallet, amount, now=now
        )
        return TransferReceipt(debit=debit, credit=credit)

    # ========================================================================
    # QUERIES
    # ========================================================================

    @read_operation
    async def get_balance(self, account_id: int) -> WalletBalance:
        """Current balances (ServiceResult; fails with AccountNotFound)."""
        return await self.reports.get_balance(account_id)

    async def get_history(
        self,
        account_id: int,
        limit: int = 50,
        offset: int = 0,
        tx_type: TransactionType | str | None = None,
    ) -> list[Transaction]:
        """Transactions newest first, optionally filtered by type."""
        return await self.reports.get_history(
            account_id, limit=limit, offset=offset, tx_type=tx_type
        )

    async def verify_integrity(self, account_id: int) -> IntegrityReport:
        """Compare stored balances with the ledger."""
        report = await self.reports.verify_integrity(account_id)
        if not report.is_consistent:
            self.logger.bind(
                account_id=account_id,
                discrepancies={
                    k: str(v) for k, v in report.discrepancies.items()
                },
            ).error(
                f"Ledger mismatch for account {account_id}",
            )
        return report

    async def get_earnings_summary(self, account_id: int) -> EarningsSummary:
        """Lifetime earnings report."""
        return await self.reports.get_earnings_summary(account_id)
