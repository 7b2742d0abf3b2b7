"""
Commission service.

Distributes level income up the sponsor chain for an investment event and
pays the one-time direct referral bonus. Every ancestor is paid in its own
atomic unit: a failure at one level is reported and logged, and never
undoes the levels already paid.
"""

from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.config.rules import CompensationRules
from rewardledger.models.enums import TransactionType, WalletType
from rewardledger.models.transaction import Transaction
from rewardledger.repositories.account_repository import AccountRepository
from rewardledger.repositories.commission_payout_repository import (
    CommissionPayoutRepository,
)
from rewardledger.repositories.package_tier_repository import (
    PackageTierRepository,
)
from rewardledger.services.base_service import (
    BaseService,
    ServiceResult,
    atomic_operation,
    log_operation,
)
from rewardledger.services.commission.calculator import (
    CommissionReport,
    LevelFailure,
    LevelPayout,
    LevelPlan,
    calculate_commission,
    resolve_level_percent,
)
from rewardledger.services.ledger.wallet_ledger import WalletLedger, parse_amount
from rewardledger.services.referral.graph import ReferralGraph
from rewardledger.utils.datetime_utils import utc_now
from rewardledger.utils.exceptions import (
    AccountNotFound,
    LedgerError,
    PackageNotFound,
)
from rewardledger.utils.locks import AccountLockRegistry


def level_income_key(event_id: str, sponsor_id: int, level: int) -> str:
    """Idempotency key of one level income credit."""
    return f"level_income:{event_id}:{sponsor_id}:{level}"


class CommissionService(BaseService):
    """Level income and direct referral bonus."""

    def __init__(
        self,
        session: AsyncSession,
        rules: CompensationRules,
        *,
        locks: AccountLockRegistry | None = None,
        timezone: ZoneInfo | None = None,
    ) -> None:
        """Initialize commission service."""
        super().__init__(session, locks=locks, timezone=timezone)
        self.rules = rules
        self.accounts = AccountRepository(session)
        self.packages = PackageTierRepository(session)
        self.payouts = CommissionPayoutRepository(session)
        self.graph = ReferralGraph(session)
        self.ledger = WalletLedger(session, self.tz)

    @log_operation
    async def on_investment(
        self,
        account_id: int,
        gross_amount: Decimal,
        package_tier_id: int | None,
        event_id: str,
        now: datetime | None = None,
    ) -> ServiceResult[CommissionReport]:
        """
        Pay level income for an investment event.

        Safe to call repeatedly with the same event_id: levels already paid
        are reported as duplicates and credit nothing.

        Args:
            account_id: Investing account
            gross_amount: Investment amount
            package_tier_id: Package bought (None = unknown)
            event_id: Unique investment event ID
            now: Moment of the payout

        Returns:
            ServiceResult with the CommissionReport (partial completion is
            a success carrying failures)
        """
        moment = now or utc_now()
        try:
            gross = parse_amount(gross_amount)
            plans = await self._plan(account_id, gross, package_tier_id, moment)
        except LedgerError as e:
            self.logger.bind(account_id=account_id, event_id=event_id).warning(
                f"Commission not distributed for event {event_id}: {e.code}",
            )
            return ServiceResult.fail(e)

        report = CommissionReport(
            event_id=event_id, investor_id=account_id, gross_amount=gross
        )
        for plan in plans:
            if plan.skip_reason is not None:
                report.skipped.append(plan)
                continue

            result = await self._pay_level(
                sponsor_id=plan.sponsor_id,
                investor_id=account_id,
                event_id=event_id,
                level=plan.level,
                percent=plan.percent,
                amount=plan.amount,
                now=moment,
            )
            if result.success:
                report.payouts.append(result.data)
            else:
                report.failures.append(
                    LevelFailure(
                        level=plan.level,
                        sponsor_id=plan.sponsor_id,
                        error_code=result.error_code,
                        error=result.error,
                    )
                )
                self.logger.bind(
                    event_id=event_id,
                    sponsor_id=plan.sponsor_id,
                    level=plan.level,
                    error_code=result.error_code,
                ).warning(
                    f"Level {plan.level} payout failed for event {event_id}",
                )

        if not report.is_complete:
            self.logger.bind(
                event_id=event_id,
                paid_levels=[p.level for p in report.payouts],
                failed_levels=[f.level for f in report.failures],
            ).warning(
                f"Commission for event {event_id} partially completed",
            )
        return ServiceResult.ok(report)

    async def _plan(
        self,
        account_id: int,
        gross: Decimal,
        package_tier_id: int | None,
        now: datetime,
    ) -> list[LevelPlan]:
        """Resolve every ancestor's percentage before paying anyone."""
        investing_package = None
        if package_tier_id is not None:
            investing_package = await self.packages.get_by_id(package_tier_id)
            if investing_package is None:
                raise PackageNotFound(f"Package {package_tier_id} not found")

        commission = self.rules.commission
        plans = []
        async for level, sponsor in self.graph.sponsor_chain(
            account_id, commission.max_levels
        ):
            if not sponsor.has_active_package(
                now, require_unexpired=commission.require_unexpired_package
            ):
                plans.append(
                    LevelPlan(level, sponsor.id, Decimal("0"), Decimal("0"),
                              skip_reason="no_active_package")
                )
                continue

            percent = resolve_level_percent(
                level,
                sponsor.package_tier,
                investing_package,
                commission.default_level_percents,
            )
            amount = calculate_commission(gross, percent)
            skip_reason = None if amount > 0 else "zero_amount"
            plans.append(
                LevelPlan(level, sponsor.id, percent, amount, skip_reason)
            )
        return plans

    @atomic_operation(lock_on="sponsor_id")
    async def _pay_level(
        self,
        sponsor_id: int,
        investor_id: int,
        event_id: str,
        level: int,
        percent: Decimal,
        amount: Decimal,
        now: datetime,
    ) -> LevelPayout:
        existing = await self.payouts.get_for_level(event_id, sponsor_id, level)
        if existing is not None:
            return LevelPayout(
                level=level,
                sponsor_id=sponsor_id,
                percent=existing.percent,
                amount=existing.amount,
                transaction_id=existing.transaction_id,
                duplicate=True,
            )

        tx = await self.ledger.credit(
            sponsor_id,
            WalletType.UPGRADE,
            amount,
            TransactionType.LEVEL_INCOME,
            f"Level {level} income from account {investor_id}",
            reference=f"investment:{event_id}",
            idempotency_key=level_income_key(event_id, sponsor_id, level),
            count_as_earnings=True,
            now=now,
        )
        await self.payouts.create(
            investment_event_id=event_id,
            sponsor_id=sponsor_id,
            investor_id=investor_id,
            level=level,
            percent=percent,
            amount=amount,
            transaction_id=tx.id,
            created_at=now,
        )
        return LevelPayout(
            level=level,
            sponsor_id=sponsor_id,
            percent=percent,
            amount=amount,
            transaction_id=tx.id,
        )

    async def direct_referral_bonus(
        self, account_id: int, now: datetime | None = None
    ) -> ServiceResult[Transaction | None]:
        """
        Pay the one-time bonus to the account's direct sponsor.

        Returns:
            ServiceResult with the bonus transaction, or None when there is
            no sponsor or the bonus was already paid
        """
        exists, sponsor_id = await self.accounts.get_sponsor_id(account_id)
        if not exists:
            return ServiceResult.fail(
                AccountNotFound(f"Account {account_id} not found")
            )
        if sponsor_id is None:
            return ServiceResult.ok(None)
        return await self._pay_referral_bonus(
            sponsor_id=sponsor_id, account_id=account_id, now=now or utc_now()
        )

    @atomic_operation(lock_on="sponsor_id")
    async def _pay_referral_bonus(
        self, sponsor_id: int, account_id: int, now: datetime
    ) -> Transaction | None:
        bonus = self.rules.commission.direct_referral_bonus
        if bonus <= 0:
            return None
        if not await self.accounts.claim_flag(account_id, "referral_bonus_paid"):
            return None

        return await self.ledger.credit(
            sponsor_id,
            WalletType.UPGRADE,
            bonus,
            TransactionType.REFERRAL_BONUS,
            f"Direct referral bonus for account {account_id}",
            reference=f"referral:{account_id}",
            idempotency_key=f"referral_bonus:{account_id}",
            count_as_earnings=True,
            now=now,
        )
