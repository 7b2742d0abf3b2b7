"""
Wallet ledger primitives.

Every balance change in the system goes through WalletLedger: one
conditional UPDATE on the account row plus one appended transaction.
Methods only flush; the calling operation owns commit and rollback, so
several primitives compose into one all-or-nothing unit.
"""

from datetime import datetime
from decimal import Decimal
from uuid import uuid4
from zoneinfo import ZoneInfo

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.models.account import Account
from rewardledger.models.enums import (
    EntryDirection,
    TransactionStatus,
    TransactionType,
    WalletType,
)
from rewardledger.models.transaction import Transaction
from rewardledger.repositories.account_repository import AccountRepository
from rewardledger.repositories.transaction_repository import (
    TransactionRepository,
)
from rewardledger.utils.datetime_utils import business_day, utc_now
from rewardledger.utils.exceptions import (
    AccountNotFound,
    InsufficientFunds,
    InvalidAmount,
    InvalidWallet,
    SameWallet,
)
from rewardledger.utils.money import to_decimal


def parse_amount(amount: Decimal | int | str) -> Decimal:
    """
    Validate a money amount.

    Raises:
        InvalidAmount: If amount is not a positive number
    """
    try:
        value = to_decimal(amount)
    except ValueError as e:
        raise InvalidAmount(str(e)) from e
    if not value.is_finite() or value <= 0:
        raise InvalidAmount(f"Amount must be greater than zero, got {amount}")
    return value


def parse_wallet(wallet: WalletType | str) -> WalletType:
    """
    Validate a wallet name.

    Raises:
        InvalidWallet: If wallet is not upgrade or withdrawal
    """
    try:
        return WalletType(wallet)
    except ValueError as e:
        raise InvalidWallet(f"Unknown wallet: {wallet}") from e


class WalletLedger:
    """Balance mutation primitives (flush only)."""

    def __init__(self, session: AsyncSession, timezone: ZoneInfo) -> None:
        self.session = session
        self.tz = timezone
        self.accounts = AccountRepository(session)
        self.transactions = TransactionRepository(session)

    async def get_account(self, account_id: int) -> Account:
        """
        Load account with its package tier.

        Raises:
            AccountNotFound: If account does not exist
        """
        account = await self.accounts.get_by_id(account_id)
        if account is None:
            raise AccountNotFound(f"Account {account_id} not found")
        return account

    async def credit(
        self,
        account_id: int,
        wallet: WalletType | str,
        amount: Decimal | int | str,
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
        Add amount to a wallet.

        With an idempotency key that was already used, the earlier
        transaction is returned and nothing changes.

        Args:
            account_id: Account ID
            wallet: Target wallet
            amount: Positive amount
            tx_type: Transaction type
            description: Human-readable description
            reference: Correlation reference
            idempotency_key: Unique key making the credit repeat-safe
            activity: Reward activity key
            count_as_earnings: Also add to total_earnings
            now: Moment of the credit

        Returns:
            Credit transaction

        Raises:
            InvalidAmount, InvalidWallet, AccountNotFound
        """
        value = parse_amount(amount)
        wallet = parse_wallet(wallet)

        if idempotency_key is not None:
            existing = await self.transactions.get_by_idempotency_key(
                idempotency_key
            )
            if existing is not None:
                logger.bind(
                    account_id=account_id,
                    transaction_id=existing.id,
                ).info(
                    f"Duplicate credit ignored: {idempotency_key}",
                )
                return existing

        applied = await self.accounts.apply_wallet_delta(
            account_id, wallet, value, count_as_earnings=count_as_earnings
        )
        if not applied:
            raise AccountNotFound(f"Account {account_id} not found")

        tx = await self._append(
            account_id,
            wallet,
            EntryDirection.CREDIT,
            value,
            tx_type,
            description,
            reference=reference,
            idempotency_key=idempotency_key,
            activity=activity,
            now=now,
        )
        logger.bind(
            account_id=account_id,
            wallet=wallet.value,
            amount=str(value),
            type=tx_type.value,
            transaction_id=tx.id,
        ).info(
            f"Credited {value} to {wallet.value} wallet of account {account_id}",
        )
        return tx

    async def debit(
        self,
        account_id: int,
        wallet: WalletType | str,
        amount: Decimal | int | str,
        tx_type: TransactionType,
        description: str,
        *,
        tax_amount: Decimal = Decimal("0"),
        reference: str | None = None,
        idempotency_key: str | None = None,
        now: datetime | None = None,
    ) -> Transaction:
        """
        Remove amount from a wallet; never clamps.

        Args:
            account_id: Account ID
            wallet: Source wallet
            amount: Positive gross amount
            tx_type: Transaction type
            description: Human-readable description
            tax_amount: Tax withheld (recorded, net = amount - tax)
            reference: Correlation reference
            idempotency_key: Unique key making the debit repeat-safe
            now: Moment of the debit

        Returns:
            Debit transaction

        Raises:
            InvalidAmount, InvalidWallet, AccountNotFound, InsufficientFunds
        """
        value = parse_amount(amount)
        wallet = parse_wallet(wallet)

        if idempotency_key is not None:
            existing = await self.transactions.get_by_idempotency_key(
                idempotency_key
            )
            if existing is not None:
                return existing

        applied = await self.accounts.apply_wallet_delta(account_id, wallet, -value)
        if not applied:
            account = await self.get_account(account_id)
            raise InsufficientFunds(
                f"Insufficient {wallet.value} balance: "
                f"{account.balance_of(wallet)} < {value}",
                available=account.balance_of(wallet),
                requested=value,
            )

        tx = await self._append(
            account_id,
            wallet,
            EntryDirection.DEBIT,
            value,
            tx_type,
            description,
            tax_amount=tax_amount,
            reference=reference,
            idempotency_key=idempotency_key,
            now=now,
        )
        logger.bind(
            account_id=account_id,
            wallet=wallet.value,
            amount=str(value),
            type=tx_type.value,
            transaction_id=tx.id,
        ).info(
            f"Debited {value} from {wallet.value} wallet of account {account_id}",
        )
        return tx

    async def transfer(
        self,
        account_id: int,
        from_wallet: WalletType | str,
        to_wallet: WalletType | str,
        amount: Decimal | int | str,
        now: datetime | None = None,
    ) -> tuple[Transaction, Transaction]:
        """
        Move amount between the two wallets of one account.

        Returns:
            Tuple of (debit transaction, credit transaction)

        Raises:
            SameWallet, InvalidAmount, InvalidWallet, AccountNotFound,
            InsufficientFunds
        """
        source = parse_wallet(from_wallet)
        target = parse_wallet(to_wallet)
        if source == target:
            raise SameWallet(f"Cannot transfer from {source.value} to itself")
        value = parse_amount(amount)

        reference = f"transfer:{uuid4().hex}"
        description = f"Transfer {source.value} -> {target.value}"
        debit = await self.debit(
            account_id,
            source,
            value,
            TransactionType.WALLET_TRANSFER,
            description,
            reference=reference,
            now=now,
        )
        credit = await self.credit(
            account_id,
            target,
            value,
            TransactionType.WALLET_TRANSFER,
            description,
            reference=reference,
            now=now,
        )
        return debit, credit

    async def _append(
        self,
        account_id: int,
        wallet: WalletType,
        direction: EntryDirection,
        amount: Decimal,
        tx_type: TransactionType,
        description: str,
        *,
        tax_amount: Decimal = Decimal("0"),
        reference: str | None = None,
        idempotency_key: str | None = None,
        activity: str | None = None,
        now: datetime | None = None,
    ) -> Transaction:
        moment = now or utc_now()
        return await self.transactions.create(
            account_id=account_id,
            wallet=wallet.value,
            direction=direction.value,
            type=tx_type.value,
            amount=amount,
            tax_amount=tax_amount,
            net_amount=amount - tax_amount,
            status=TransactionStatus.COMPLETED.value,
            description=description,
            activity=activity,
            reference=reference,
            idempotency_key=idempotency_key,
            business_day=business_day(moment, self.tz),
            created_at=moment,
        )
