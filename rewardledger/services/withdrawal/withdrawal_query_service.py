"""
Withdrawal query service.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.models.enums import WithdrawalStatus
from rewardledger.models.withdrawal_request import WithdrawalRequest
from rewardledger.repositories.withdrawal_request_repository import (
    WithdrawalRequestRepository,
)
from rewardledger.utils.exceptions import WithdrawalRequestNotFound


class WithdrawalQueryService:
    """Read-only withdrawal queries."""

    def __init__(self, session: AsyncSession) -> None:
        self.requests = WithdrawalRequestRepository(session)

    async def get_request(self, request_id: int) -> WithdrawalRequest:
        """
        Get request by ID.

        Raises:
            WithdrawalRequestNotFound: If the request does not exist
        """
        request = await self.requests.get_by_id(request_id)
        if request is None:
            raise WithdrawalRequestNotFound(
                f"Withdrawal request {request_id} not found"
            )
        return request

    async def list_requests(
        self,
        account_id: int,
        status: WithdrawalStatus | None = None,
        page: int = 1,
        per_page: int = 10,
    ) -> tuple[list[WithdrawalRequest], int]:
        """
        Account requests, newest first.

        Returns:
            Tuple of (requests, total_count)
        """
        filters: dict[str, object] = {"account_id": account_id}
        if status is not None:
            filters["status"] = WithdrawalStatus(status).value
        return await self.requests.find_paginated(
            page=page,
            per_page=per_page,
            order_by=WithdrawalRequest.id.desc(),
            **filters,
        )

    async def list_pending(self, limit: int = 100) -> list[WithdrawalRequest]:
        """Pending requests across all accounts, oldest first."""
        return await self.requests.find_pending(limit)
