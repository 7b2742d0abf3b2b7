"""
Ledger read models: balances, integrity check and earnings summary.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.models.enums import EntryDirection, TransactionType, WalletType
from rewardledger.models.transaction import Transaction
from rewardledger.repositories.account_repository import AccountRepository
from rewardledger.repositories.transaction_repository import (
    TransactionRepository,
)
from rewardledger.utils.exceptions import AccountNotFound

ZERO = Decimal("0")


@dataclass(frozen=True)
class WalletBalance:
    """Current balances of both wallets."""

    upgrade: Decimal
    withdrawal: Decimal

    @property
    def total(self) -> Decimal:
        return self.upgrade + self.withdrawal


@dataclass(frozen=True)
class TransferReceipt:
    """Debit/credit pair produced by a wallet transfer."""

    debit: Transaction
    credit: Transaction

    @property
    def reference(self) -> str | None:
        return self.debit.reference


@dataclass
class IntegrityReport:
    """Stored balances compared with balances recomputed from the ledger."""

    account_id: int
    stored: WalletBalance
    computed: WalletBalance

    @property
    def is_consistent(self) -> bool:
        return self.stored == self.computed

    @property
    def discrepancies(self) -> dict[str, Decimal]:
        """Wallet -> stored minus computed, for wallets that differ."""
        result = {}
        for wallet in WalletType:
            diff = getattr(self.stored, wallet.value) - getattr(
                self.computed, wallet.value
            )
            if diff != 0:
                result[wallet.value] = diff
        return result


@dataclass
class TypeTotal:
    """Completed amount and count of one transaction type."""

    amount: Decimal = ZERO
    count: int = 0


@dataclass
class EarningsSummary:
    """Lifetime earnings report of an account."""

    account_id: int
    balances: WalletBalance
    total_earnings: Decimal
    total_withdrawals: Decimal
    investment_amount: Decimal
    gaming_earnings: Decimal
    games_played: int
    credits_by_type: dict[str, TypeTotal] = field(default_factory=dict)
    debits_by_type: dict[str, TypeTotal] = field(default_factory=dict)

    @property
    def level_income(self) -> Decimal:
        return self.credits_by_type.get(
            TransactionType.LEVEL_INCOME.value, TypeTotal()
        ).amount


class LedgerReports:
    """Read-only ledger queries."""

    def __init__(self, session: AsyncSession) -> None:
        self.accounts = AccountRepository(session)
        self.transactions = TransactionRepository(session)

    async def get_balance(self, account_id: int) -> WalletBalance:
        """
        Current wallet balances.

        Raises:
            AccountNotFound: If account does not exist
        """
        account = await self.accounts.get_by_id(account_id)
        if account is None:
            raise AccountNotFound(f"Account {account_id} not found")
        return WalletBalance(
            upgrade=account.upgrade_balance,
            withdrawal=account.withdrawal_balance,
        )

    async def get_history(
        self,
        account_id: int,
        limit: int = 50,
        offset: int = 0,
        tx_type: TransactionType | str | None = None,
    ) -> list[Transaction]:
        """Account transactions, newest first."""
        type_value = TransactionType(tx_type).value if tx_type else None
        return await self.transactions.get_history(
            account_id, limit=limit, offset=offset, type=type_value
        )

    async def verify_integrity(self, account_id: int) -> IntegrityReport:
        """
        Recompute each wallet from completed transaction deltas.

        Returns:
            Report comparing stored and recomputed balances
        """
        stored = await self.get_balance(account_id)
        sums = await self.transactions.get_wallet_sums(account_id)

        def computed(wallet: WalletType) -> Decimal:
            credits = sums.get((wallet.value, EntryDirection.CREDIT.value), ZERO)
            debits = sums.get((wallet.value, EntryDirection.DEBIT.value), ZERO)
            return credits - debits

        return IntegrityReport(
            account_id=account_id,
            stored=stored,
            computed=WalletBalance(
                upgrade=computed(WalletType.UPGRADE),
                withdrawal=computed(WalletType.WITHDRAWAL),
            ),
        )

    async def get_earnings_summary(self, account_id: int) -> EarningsSummary:
        """Lifetime totals, wallets and per-type completed amounts."""
        account = await self.accounts.get_by_id(account_id)
        if account is None:
            raise AccountNotFound(f"Account {account_id} not found")

        summary = EarningsSummary(
            account_id=account_id,
            balances=WalletBalance(
                upgrade=account.upgrade_balance,
                withdrawal=account.withdrawal_balance,
            ),
            total_earnings=account.total_earnings,
            total_withdrawals=account.total_withdrawals,
            investment_amount=account.investment_amount,
            gaming_earnings=account.gaming_earnings,
            games_played=account.games_played,
        )

        totals = await self.transactions.get_totals_by_type(account_id)
        for (tx_type, direction), (amount, count) in totals.items():
            bucket = (
                summary.credits_by_type
                if direction == EntryDirection.CREDIT.value
                else summary.debits_by_type
            )
            bucket[tx_type] = TypeTotal(amount=amount, count=count)

        return summary
