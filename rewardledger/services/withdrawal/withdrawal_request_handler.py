"""
Withdrawal request handler.

Creates pending withdrawal requests, reserving the gross amount from the
withdrawal wallet in the same atomic unit.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.config.rules import WithdrawalRules
from rewardledger.models.enums import TransactionType, WalletType, WithdrawalStatus
from rewardledger.models.withdrawal_request import WithdrawalRequest
from rewardledger.repositories.withdrawal_request_repository import (
    WithdrawalRequestRepository,
)
from rewardledger.services.base_service import BaseService, atomic_operation
from rewardledger.services.ledger.wallet_ledger import WalletLedger, parse_amount
from rewardledger.services.withdrawal.tax import calculate_tds
from rewardledger.services.withdrawal.withdrawal_validator import (
    WithdrawalValidator,
    normalize_destination,
)
from rewardledger.utils.datetime_utils import business_day, utc_now
from rewardledger.utils.locks import AccountLockRegistry


class WithdrawalRequestHandler(BaseService):
    """Handles withdrawal request creation."""

    def __init__(
        self,
        session: AsyncSession,
        rules: WithdrawalRules,
        *,
        locks: AccountLockRegistry | None = None,
        timezone: ZoneInfo | None = None,
    ) -> None:
        """Initialize request handler."""
        super().__init__(session, locks=locks, timezone=timezone)
        self.rules = rules
        self.ledger = WalletLedger(session, self.tz)
        self.requests = WithdrawalRequestRepository(session)
        self.validator = WithdrawalValidator(session, rules)

    @atomic_operation(lock_on="account_id")
    async def submit(
        self,
        account_id: int,
        gross_amount: Decimal,
        destination: dict[str, Any],
        now: datetime | None = None,
    ) -> WithdrawalRequest:
        """
        Submit a withdrawal request.

        Args:
            account_id: Account ID
            gross_amount: Amount to withdraw before tax
            destination: Bank details
            now: Request moment

        Returns:
            ServiceResult with the pending WithdrawalRequest
        """
        gross = parse_amount(gross_amount)
        self.validator.check_limits(gross)
        bank_details = normalize_destination(destination)

        moment = now or utc_now()
        day = business_day(moment, self.tz)

        account = await self.ledger.get_account(account_id)
        self.validator.check_account(account, gross)
        await self.validator.check_daily_cap(account, gross, day)

        tds = calculate_tds(gross, self.rules.tds_percent)
        request = await self.requests.create(
            account_id=account_id,
            amount=gross,
            tax_amount=tds.tds_amount,
            net_amount=tds.net_amount,
            tds_percent=tds.tds_percent,
            destination=bank_details,
            status=WithdrawalStatus.PENDING.value,
            business_day=day,
            created_at=moment,
            updated_at=moment,
        )
        reserve = await self.ledger.debit(
            account_id,
            WalletType.WITHDRAWAL,
            gross,
            TransactionType.WITHDRAWAL,
            f"Withdrawal request {request.request_code}",
            tax_amount=tds.tds_amount,
            reference=f"withdrawal:{request.id}",
            now=moment,
        )
        request.reserve_transaction_id = reserve.id
        await self.session.flush()

        self.logger.bind(
            account_id=account_id,
            request_id=request.id,
            gross=str(gross),
            tds=str(tds.tds_amount),
            net=str(tds.net_amount),
            transaction_id=reserve.id,
        ).info(
            f"Withdrawal request {request.id} submitted",
        )
        return request
