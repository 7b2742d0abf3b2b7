"""
Investment service.

Package purchases paid from the upgrade wallet or through a (simulated)
payment gateway. A completed purchase activates the package, then pays the
direct referral bonus and level income; commission problems are logged
and never undo the purchase.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import uuid4
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.config.rules import CompensationRules
from rewardledger.models.enums import (
    InvestmentStatus,
    PaymentMethod,
    TransactionType,
    WalletType,
)
from rewardledger.models.investment import Investment
from rewardledger.models.transaction import Transaction
from rewardledger.repositories.investment_repository import InvestmentRepository
from rewardledger.services.base_service import (
    BaseService,
    ServiceResult,
    atomic_operation,
    log_operation,
)
from rewardledger.services.commission.calculator import CommissionReport
from rewardledger.services.commission_service import CommissionService
from rewardledger.services.investment.package_activator import PackageActivator
from rewardledger.services.ledger.wallet_ledger import WalletLedger
from rewardledger.utils.datetime_utils import utc_now
from rewardledger.utils.exceptions import (
    ConcurrencyError,
    InvalidState,
    InvestmentNotFound,
    ValidationError,
)
from rewardledger.utils.locks import AccountLockRegistry


@dataclass
class PurchaseOutcome:
    """Result of a purchase or payment confirmation."""

    investment: Investment
    commission: CommissionReport | None = None
    referral_bonus: Transaction | None = None
    already_completed: bool = False


def new_investment_id() -> str:
    """Unique investment (and commission event) ID."""
    return f"inv_{uuid4().hex}"


class InvestmentService(BaseService):
    """Package purchases."""

    def __init__(
        self,
        session: AsyncSession,
        rules: CompensationRules,
        *,
        locks: AccountLockRegistry | None = None,
        timezone: ZoneInfo | None = None,
    ) -> None:
        """Initialize investment service."""
        super().__init__(session, locks=locks, timezone=timezone)
        self.rules = rules
        self.investments = InvestmentRepository(session)
        self.activator = PackageActivator(session)
        self.ledger = WalletLedger(session, self.tz)
        self.commission = CommissionService(
            session, rules, locks=self.locks, timezone=self.tz
        )

    @log_operation
    async def purchase_package(
        self,
        account_id: int,
        package_tier_id: int,
        payment_method: PaymentMethod | str = PaymentMethod.WALLET,
        now: datetime | None = None,
    ) -> ServiceResult[PurchaseOutcome]:
        """
        Buy a package.

        Args:
            account_id: Buyer
            package_tier_id: Package tier to buy
            payment_method: wallet (upgrade wallet) or gateway (pending)
            now: Purchase moment

        Returns:
            ServiceResult with the PurchaseOutcome
        """
        try:
            method = PaymentMethod(payment_method)
        except ValueError:
            return ServiceResult.fail(
                ValidationError(f"Unknown payment method: {payment_method}")
            )
        moment = now or utc_now()

        if method == PaymentMethod.GATEWAY:
            result = await self._record_pending(
                account_id=account_id, package_tier_id=package_tier_id, now=moment
            )
            if not result.success:
                return result
            return ServiceResult.ok(PurchaseOutcome(investment=result.data))

        result = await self._purchase_with_wallet(
            account_id=account_id, package_tier_id=package_tier_id, now=moment
        )
        if not result.success:
            return result
        return ServiceResult.ok(await self._distribute(result.data.id, moment))

    @log_operation
    async def confirm_payment(
        self,
        investment_id: str,
        gateway_reference: str,
        now: datetime | None = None,
    ) -> ServiceResult[PurchaseOutcome]:
        """
        Complete a pending gateway purchase.

        Confirming an already completed investment does not activate it
        again, but re-runs the referral bonus and level income so payouts
        interrupted after completion are finished. Both are keyed by the
        investment, so nothing already paid is paid twice.

        Args:
            investment_id: Investment ID
            gateway_reference: Payment reference from the gateway
            now: Confirmation moment

        Returns:
            ServiceResult with the PurchaseOutcome
        """
        investment = await self.investments.get_by_id(investment_id)
        if investment is None:
            return ServiceResult.fail(
                InvestmentNotFound(f"Investment {investment_id} not found")
            )

        moment = now or utc_now()
        already_completed = investment.status == InvestmentStatus.COMPLETED.value
        if not already_completed:
            result = await self._complete_gateway(
                account_id=investment.account_id,
                investment_id=investment_id,
                gateway_reference=gateway_reference,
                now=moment,
            )
            if not result.success:
                return result
            already_completed = not result.data

        outcome = await self._distribute(investment_id, moment)
        outcome.already_completed = already_completed
        return ServiceResult.ok(outcome)

    @atomic_operation(lock_on="account_id")
    async def _purchase_with_wallet(
        self, account_id: int, package_tier_id: int, now: datetime
    ) -> Investment:
        package = await self.activator.get_purchasable(package_tier_id)
        investment_id = new_investment_id()

        await self.ledger.debit(
            account_id,
            WalletType.UPGRADE,
            package.price,
            TransactionType.PURCHASE,
            f"Package purchase: {package.name}",
            reference=f"investment:{investment_id}",
            now=now,
        )
        investment = await self.investments.create(
            id=investment_id,
            account_id=account_id,
            package_tier_id=package.id,
            amount=package.price,
            payment_method=PaymentMethod.WALLET.value,
            status=InvestmentStatus.COMPLETED.value,
            created_at=now,
            completed_at=now,
        )
        await self.activator.activate(investment, now)
        return investment

    @atomic_operation(lock_on="account_id")
    async def _record_pending(
        self, account_id: int, package_tier_id: int, now: datetime
    ) -> Investment:
        package = await self.activator.get_purchasable(package_tier_id)
        await self.ledger.get_account(account_id)
        investment = await self.investments.create(
            id=new_investment_id(),
            account_id=account_id,
            package_tier_id=package.id,
            amount=package.price,
            payment_method=PaymentMethod.GATEWAY.value,
            status=InvestmentStatus.PENDING.value,
            created_at=now,
        )
        self.logger.bind(account_id=account_id, amount=str(package.price)).info(
            f"Gateway payment pending for investment {investment.id}",
        )
        return investment

    @atomic_operation(lock_on="account_id")
    async def _complete_gateway(
        self,
        account_id: int,
        investment_id: str,
        gateway_reference: str,
        now: datetime,
    ) -> bool:
        investment = await self.investments.get_by_id(investment_id, for_update=True)
        if investment.status == InvestmentStatus.COMPLETED.value:
            return False
        if investment.status != InvestmentStatus.PENDING.value:
            raise InvalidState(
                f"Investment {investment_id} is {investment.status}"
            )

        moved = await self.investments.transition(
            investment_id,
            InvestmentStatus.PENDING,
            InvestmentStatus.COMPLETED,
            gateway_reference=gateway_reference,
            completed_at=now,
        )
        if not moved:
            raise ConcurrencyError(f"Investment {investment_id} changed concurrently")
        await self.activator.activate(investment, now)
        return True

    async def _distribute(self, investment_id: str, now: datetime) -> PurchaseOutcome:
        """Referral bonus and level income for a completed investment."""
        investment = await self.investments.get_by_id(investment_id)
        account_id = investment.account_id
        amount = investment.amount
        package_tier_id = investment.package_tier_id

        bonus = await self.commission.direct_referral_bonus(account_id, now=now)
        if not bonus.success:
            self.logger.bind(
                account_id=account_id, error_code=bonus.error_code
            ).warning(
                f"Referral bonus failed for investment {investment_id}",
            )

        commission = await self.commission.on_investment(
            account_id, amount, package_tier_id, investment_id, now=now
        )
        if not commission.success:
            self.logger.bind(
                account_id=account_id, error_code=commission.error_code
            ).warning(
                f"Level income failed for investment {investment_id}",
            )

        return PurchaseOutcome(
            investment=await self.investments.get_by_id(investment_id),
            commission=commission.data,
            referral_bonus=bonus.data,
        )
