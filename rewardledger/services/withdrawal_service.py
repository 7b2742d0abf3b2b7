"""
Withdrawal service - Main service facade.

Module structure:
- withdrawal/withdrawal_request_handler: request submission
- withdrawal/withdrawal_lifecycle_handler: approval, rejection, processing
- withdrawal/withdrawal_query_service: queries
- withdrawal/tax: TDS calculation
"""

from datetime import datetime
from decimal import Decimal
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.config.rules import CompensationRules
from rewardledger.models.enums import WithdrawalStatus
from rewardledger.models.withdrawal_request import WithdrawalRequest
from rewardledger.services.base_service import BaseService, ServiceResult
from rewardledger.services.withdrawal.tax import TdsBreakdown, calculate_tds
from rewardledger.services.withdrawal.withdrawal_lifecycle_handler import (
    WithdrawalLifecycleHandler,
)
from rewardledger.services.withdrawal.withdrawal_query_service import (
    WithdrawalQueryService,
)
from rewardledger.services.withdrawal.withdrawal_request_handler import (
    WithdrawalRequestHandler,
)
from rewardledger.utils.locks import AccountLockRegistry


class WithdrawalService(BaseService):
    """
    Withdrawal service for managing withdrawal requests.

    This is a facade that delegates to specialized handlers.
    """

    def __init__(
        self,
        session: AsyncSession,
        rules: CompensationRules,
        *,
        locks: AccountLockRegistry | None = None,
        timezone: ZoneInfo | None = None,
    ) -> None:
        """Initialize withdrawal service and all sub-components."""
        super().__init__(session, locks=locks, timezone=timezone)
        self.rules = rules.withdrawal

        options = {"locks": self.locks, "timezone": self.tz}
        self.request_handler = WithdrawalRequestHandler(
            session, self.rules, **options
        )
        self.lifecycle_handler = WithdrawalLifecycleHandler(session, **options)
        self.query_service = WithdrawalQueryService(session)

    # ========================================================================
    # REQUEST HANDLING (delegates to WithdrawalRequestHandler)
    # ========================================================================

    async def submit(
        self,
        account_id: int,
        gross_amount: Decimal,
        destination: dict[str, Any],
        now: datetime | None = None,
    ) -> ServiceResult[WithdrawalRequest]:
        """Submit a withdrawal request; reserves gross from the wallet."""
        return await self.request_handler.submit(
            account_id, gross_amount, destination, now=now
        )

    def calculate_tds(self, gross_amount: Decimal) -> TdsBreakdown:
        """TDS breakdown at the configured rate."""
        return calculate_tds(gross_amount, self.rules.tds_percent)

    # ========================================================================
    # LIFECYCLE MANAGEMENT (delegates to WithdrawalLifecycleHandler)
    # ========================================================================

    async def decide(
        self,
        request_id: int,
        approve: bool,
        operator_id: int,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> ServiceResult[WithdrawalRequest]:
        """Approve or reject a pending request."""
        return await self.lifecycle_handler.decide(
            request_id, approve, operator_id, notes=notes, now=now
        )

    async def mark_processed(
        self,
        request_id: int,
        operator_id: int,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> ServiceResult[WithdrawalRequest]:
        """Mark an approved request as paid out."""
        return await self.lifecycle_handler.mark_processed(
            request_id, operator_id, notes=notes, now=now
        )

    # ========================================================================
    # QUERIES (delegates to WithdrawalQueryService)
    # ========================================================================

    async def get_request(self, request_id: int) -> WithdrawalRequest:
        """Get request (raises WithdrawalRequestNotFound)."""
        return await self.query_service.get_request(request_id)

    async def list_requests(
        self,
        account_id: int,
        status: WithdrawalStatus | None = None,
        page: int = 1,
        per_page: int = 10,
    ) -> tuple[list[WithdrawalRequest], int]:
        """Account requests, newest first, with total count."""
        return await self.query_service.list_requests(
            account_id, status=status, page=page, per_page=per_page
        )

    async def list_pending(self, limit: int = 100) -> list[WithdrawalRequest]:
        """Pending requests awaiting a decision."""
        return await self.query_service.list_pending(limit)
