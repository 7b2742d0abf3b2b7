"""
Withdrawal validator.

Checks a withdrawal request before any money moves. Each check raises the
matching LedgerError.
"""

from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.config.rules import WithdrawalRules
from rewardledger.models.account import Account
from rewardledger.repositories.withdrawal_request_repository import (
    WithdrawalRequestRepository,
)
from rewardledger.utils.exceptions import (
    AboveMaximum,
    BelowMinimum,
    DailyCapExceeded,
    InsufficientFunds,
    InvalidDestination,
    NoActivePackage,
)
from rewardledger.utils.money import percent_of

REQUIRED_BANK_FIELDS = (
    "account_number",
    "ifsc_code",
    "bank_name",
    "account_holder_name",
)


def normalize_destination(destination: dict[str, Any] | None) -> dict[str, str]:
    """
    Validate and normalize bank details.

    Raises:
        InvalidDestination: If any required field is missing or blank
    """
    if not isinstance(destination, dict):
        raise InvalidDestination("Complete bank details are required")

    normalized = {}
    for name in REQUIRED_BANK_FIELDS:
        value = destination.get(name)
        if not isinstance(value, str) or not value.strip():
            raise InvalidDestination(f"Bank detail '{name}' is required")
        normalized[name] = value.strip()
    normalized["ifsc_code"] = normalized["ifsc_code"].upper()
    return normalized


class WithdrawalValidator:
    """Withdrawal eligibility checks."""

    def __init__(self, session: AsyncSession, rules: WithdrawalRules) -> None:
        self.rules = rules
        self.requests = WithdrawalRequestRepository(session)

    def check_limits(self, gross: Decimal) -> None:
        """Per-request minimum and maximum."""
        if gross < self.rules.min_amount:
            raise BelowMinimum(
                f"Minimum withdrawal amount is {self.rules.min_amount}"
            )
        if gross > self.rules.max_amount:
            raise AboveMaximum(
                f"Maximum withdrawal amount is {self.rules.max_amount}"
            )

    def check_account(self, account: Account, gross: Decimal) -> None:
        """Package and balance requirements."""
        if not account.has_package():
            raise NoActivePackage("Active package required for withdrawal")
        if account.withdrawal_balance < gross:
            raise InsufficientFunds(
                "Insufficient balance in withdrawal wallet",
                available=account.withdrawal_balance,
                requested=gross,
            )

    async def check_daily_cap(
        self, account: Account, gross: Decimal, day: date
    ) -> Decimal:
        """
        Daily cap: today's requests plus this one may not exceed a share
        of lifetime earnings.

        Returns:
            The daily limit that was applied
        """
        limit = percent_of(account.total_earnings, self.rules.daily_percent_of_earnings)
        used = await self.requests.sum_for_day(account.id, day)
        if used + gross > limit:
            raise DailyCapExceeded(
                f"Daily withdrawal limit exceeded. Limit: {limit}, Used: {used}",
                limit=limit,
                used=used,
            )
        return limit
