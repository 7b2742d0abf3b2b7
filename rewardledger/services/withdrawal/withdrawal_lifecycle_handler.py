"""
Withdrawal lifecycle handler.

pending -> approved -> processed, or pending -> rejected. Status changes
are conditional updates on the current status, so two operators racing on
one request cannot both win.
"""

from datetime import datetime
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.models.enums import TransactionType, WalletType, WithdrawalStatus
from rewardledger.models.withdrawal_request import WithdrawalRequest
from rewardledger.repositories.account_repository import AccountRepository
from rewardledger.repositories.withdrawal_request_repository import (
    WithdrawalRequestRepository,
)
from rewardledger.services.base_service import (
    BaseService,
    ServiceResult,
    atomic_operation,
)
from rewardledger.services.ledger.wallet_ledger import WalletLedger
from rewardledger.utils.datetime_utils import utc_now
from rewardledger.utils.exceptions import (
    ConcurrencyError,
    InvalidState,
    ValidationError,
    WithdrawalRequestNotFound,
)
from rewardledger.utils.locks import AccountLockRegistry

MAX_NOTES_LENGTH = 500


class WithdrawalLifecycleHandler(BaseService):
    """Handles approval, rejection and processing."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        locks: AccountLockRegistry | None = None,
        timezone: ZoneInfo | None = None,
    ) -> None:
        """Initialize lifecycle handler."""
        super().__init__(session, locks=locks, timezone=timezone)
        self.ledger = WalletLedger(session, self.tz)
        self.accounts = AccountRepository(session)
        self.requests = WithdrawalRequestRepository(session)

    async def decide(
        self,
        request_id: int,
        approve: bool,
        operator_id: int,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> ServiceResult[WithdrawalRequest]:
        """
        Approve or reject a pending request.

        Repeating the decision a request already carries is a no-op
        success; any other transition fails with InvalidState. Rejection
        returns the gross amount to the withdrawal wallet exactly once.

        Args:
            request_id: Request ID
            approve: True to approve, False to reject
            operator_id: Deciding operator
            notes: Optional operator notes
            now: Decision moment

        Returns:
            ServiceResult with the updated request
        """
        account_id = await self._account_of(request_id)
        if account_id is None:
            return ServiceResult.fail(
                WithdrawalRequestNotFound(f"Withdrawal request {request_id} not found")
            )
        return await self._decide(
            account_id=account_id,
            request_id=request_id,
            approve=approve,
            operator_id=operator_id,
            notes=notes,
            now=now,
        )

    @atomic_operation(lock_on="account_id")
    async def _decide(
        self,
        account_id: int,
        request_id: int,
        approve: bool,
        operator_id: int,
        notes: str | None,
        now: datetime | None,
    ) -> WithdrawalRequest:
        request = await self._load(request_id, for_update=True)
        target = WithdrawalStatus.APPROVED if approve else WithdrawalStatus.REJECTED
        current = WithdrawalStatus(request.status)

        if current == target:
            self.logger.bind(request_id=request_id, operator_id=operator_id).info(
                f"Withdrawal {request_id} already {target.value}, nothing to do",
            )
            return request
        if current != WithdrawalStatus.PENDING:
            raise InvalidState(
                f"Cannot move withdrawal {request_id} from {current.value} "
                f"to {target.value}"
            )
        _check_notes(notes)

        moment = now or utc_now()
        moved = await self.requests.transition(
            request_id,
            WithdrawalStatus.PENDING,
            target,
            admin_notes=notes,
            decided_by=operator_id,
            decided_at=moment,
        )
        if not moved:
            raise ConcurrencyError(f"Withdrawal {request_id} changed concurrently")

        if not approve:
            refund = await self.ledger.credit(
                account_id,
                WalletType.WITHDRAWAL,
                request.amount,
                TransactionType.WITHDRAWAL_REFUND,
                f"Withdrawal {request.request_code} rejected",
                reference=f"withdrawal:{request_id}",
                idempotency_key=f"withdrawal_refund:{request_id}",
                now=moment,
            )
            request = await self._load(request_id)
            request.refund_transaction_id = refund.id
            await self.session.flush()
        else:
            request = await self._load(request_id)

        self.logger.bind(
            request_id=request_id,
            account_id=account_id,
            operator_id=operator_id,
            amount=str(request.amount),
        ).info(
            f"Withdrawal {request_id} {target.value}",
        )
        return request

    async def mark_processed(
        self,
        request_id: int,
        operator_id: int,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> ServiceResult[WithdrawalRequest]:
        """
        Mark an approved request as paid out.

        Returns:
            ServiceResult with the processed request
        """
        account_id = await self._account_of(request_id)
        if account_id is None:
            return ServiceResult.fail(
                WithdrawalRequestNotFound(f"Withdrawal request {request_id} not found")
            )
        return await self._mark_processed(
            account_id=account_id,
            request_id=request_id,
            operator_id=operator_id,
            notes=notes,
            now=now,
        )

    @atomic_operation(lock_on="account_id")
    async def _mark_processed(
        self,
        account_id: int,
        request_id: int,
        operator_id: int,
        notes: str | None,
        now: datetime | None,
    ) -> WithdrawalRequest:
        request = await self._load(request_id, for_update=True)
        if request.status != WithdrawalStatus.APPROVED.value:
            raise InvalidState(
                f"Only approved withdrawals can be processed "
                f"(request {request_id} is {request.status})"
            )
        _check_notes(notes)

        values = {"processed_by": operator_id, "processed_at": now or utc_now()}
        if notes is not None:
            values["admin_notes"] = notes
        moved = await self.requests.transition(
            request_id,
            WithdrawalStatus.APPROVED,
            WithdrawalStatus.PROCESSED,
            **values,
        )
        if not moved:
            raise ConcurrencyError(f"Withdrawal {request_id} changed concurrently")

        await self.accounts.increment(account_id, total_withdrawals=request.amount)

        self.logger.bind(
            request_id=request_id,
            account_id=account_id,
            operator_id=operator_id,
            net=str(request.net_amount),
        ).info(
            f"Withdrawal {request_id} processed",
        )
        return await self._load(request_id)

    async def _account_of(self, request_id: int) -> int | None:
        request = await self.requests.get_by_id(request_id)
        return request.account_id if request is not None else None

    async def _load(
        self, request_id: int, for_update: bool = False
    ) -> WithdrawalRequest:
        request = await self.requests.get_by_id(request_id, for_update=for_update)
        if request is None:
            raise WithdrawalRequestNotFound(
                f"Withdrawal request {request_id} not found"
            )
        return request


def _check_notes(notes: str | None) -> None:
    if notes is not None and len(notes) > MAX_NOTES_LENGTH:
        raise ValidationError(
            f"Admin notes cannot exceed {MAX_NOTES_LENGTH} characters"
        )
