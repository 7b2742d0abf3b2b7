"""Integration tests for package purchases."""

from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio

from rewardledger.models import InvestmentStatus, PaymentMethod, WalletType
from rewardledger.repositories.account_repository import AccountRepository
from rewardledger.repositories.investment_repository import InvestmentRepository
from rewardledger.services.base_service import ServiceResult
from rewardledger.services.investment_service import (
    InvestmentService,
    new_investment_id,
)
from rewardledger.services.ledger_service import LedgerService
from rewardledger.utils.exceptions import ConcurrencyError

UTC_ZONE = ZoneInfo("UTC")

pytestmark = pytest.mark.integration


@pytest.fixture
def investments(session, rules, locks):
    return InvestmentService(session, rules, locks=locks, timezone=UTC_ZONE)


@pytest_asyncio.fixture
async def buyer(make_package, make_account, fund):
    """
    sponsor (Starter) <- buyer (no package, 1000 in the upgrade wallet).
    """
    package = await make_package()
    sponsor = await make_account("sponsor", package_id=package)
    buyer = await make_account("buyer", sponsor_id=sponsor)
    await fund(buyer, WalletType.UPGRADE, "1000")
    return {"package": package, "sponsor": sponsor, "buyer": buyer}


class TestWalletPurchase:
    """Test purchases paid from the upgrade wallet."""

    @pytest.mark.asyncio
    async def test_purchase_activates_and_pays_upline(
        self, session, investments, buyer, balance_of, now
    ):
        result = await investments.purchase_package(
            buyer["buyer"], buyer["package"], now=now
        )

        assert result.success is True
        outcome = result.data
        assert outcome.investment.status == InvestmentStatus.COMPLETED
        assert outcome.investment.amount == Decimal("500")
        assert outcome.investment.id.startswith("inv_")
        assert outcome.referral_bonus.amount == Decimal("100")
        assert outcome.commission.total_paid == Decimal("50.00")
        assert outcome.already_completed is False

        assert (await balance_of(buyer["buyer"])).upgrade == Decimal("500")
        assert (await balance_of(buyer["sponsor"])).upgrade == Decimal("150")

        account = await AccountRepository(session).get_by_id(buyer["buyer"])
        assert account.package_tier_id == buyer["package"]
        assert account.package_activated_at is not None
        assert account.investment_amount == Decimal("500")

    @pytest.mark.asyncio
    async def test_second_purchase_pays_no_new_bonus(
        self, investments, buyer, balance_of, now
    ):
        await investments.purchase_package(buyer["buyer"], buyer["package"], now=now)

        again = await investments.purchase_package(
            buyer["buyer"], buyer["package"], now=now
        )

        assert again.success is True
        assert again.data.referral_bonus is None
        assert (await balance_of(buyer["buyer"])).upgrade == Decimal("0")
        assert (await balance_of(buyer["sponsor"])).upgrade == Decimal("200")

    @pytest.mark.asyncio
    async def test_insufficient_funds(
        self, session, investments, make_package, buyer, balance_of, now
    ):
        premium = await make_package("Premium", price="5000", daily_income="300")

        result = await investments.purchase_package(buyer["buyer"], premium, now=now)

        assert result.success is False
        assert result.error_code == "insufficient_funds"
        assert (await balance_of(buyer["buyer"])).upgrade == Decimal("1000")
        assert await InvestmentRepository(session).count(
            account_id=buyer["buyer"]
        ) == 0

    @pytest.mark.asyncio
    async def test_inactive_package(self, investments, make_package, buyer, now):
        retired = await make_package("Legacy", is_active=False)

        result = await investments.purchase_package(buyer["buyer"], retired, now=now)

        assert result.success is False
        assert result.error_code == "package_not_found"

    @pytest.mark.asyncio
    async def test_unknown_package(self, investments, buyer, now):
        result = await investments.purchase_package(buyer["buyer"], 999, now=now)

        assert result.error_code == "package_not_found"

    @pytest.mark.asyncio
    async def test_unknown_payment_method(self, investments, buyer, now):
        result = await investments.purchase_package(
            buyer["buyer"], buyer["package"], payment_method="crypto", now=now
        )

        assert result.success is False
        assert result.error_code == "validation_error"


class TestGatewayPurchase:
    """Test pending gateway purchases and confirmation."""

    @pytest.mark.asyncio
    async def test_pending_until_confirmed(
        self, session, investments, buyer, balance_of, now
    ):
        pending = await investments.purchase_package(
            buyer["buyer"], buyer["package"], PaymentMethod.GATEWAY, now=now
        )

        assert pending.success is True
        investment_id = pending.data.investment.id
        assert pending.data.investment.status == InvestmentStatus.PENDING
        assert pending.data.commission is None
        assert (await balance_of(buyer["buyer"])).upgrade == Decimal("1000")
        assert (await balance_of(buyer["sponsor"])).upgrade == Decimal("0")

        confirmed = await investments.confirm_payment(
            investment_id, "GW-123", now=now
        )

        assert confirmed.success is True
        assert confirmed.data.already_completed is False
        assert confirmed.data.investment.status == InvestmentStatus.COMPLETED
        assert confirmed.data.investment.gateway_reference == "GW-123"
        assert (await balance_of(buyer["buyer"])).upgrade == Decimal("1000")
        assert (await balance_of(buyer["sponsor"])).upgrade == Decimal("150")

        summary = await LedgerService(session, timezone=UTC_ZONE).get_earnings_summary(
            buyer["buyer"]
        )
        assert summary.investment_amount == Decimal("500")

    @pytest.mark.asyncio
    async def test_confirm_twice_is_noop(self, investments, buyer, balance_of, now):
        pending = await investments.purchase_package(
            buyer["buyer"], buyer["package"], "gateway", now=now
        )
        investment_id = pending.data.investment.id
        await investments.confirm_payment(investment_id, "GW-1", now=now)

        again = await investments.confirm_payment(investment_id, "GW-1", now=now)

        assert again.success is True
        assert again.data.already_completed is True
        assert (await balance_of(buyer["sponsor"])).upgrade == Decimal("150")

    @pytest.mark.asyncio
    async def test_repeat_confirm_finishes_interrupted_payout(
        self, investments, buyer, balance_of, now
    ):
        pending = await investments.purchase_package(
            buyer["buyer"], buyer["package"], "gateway", now=now
        )
        investment_id = pending.data.investment.id
        on_investment = investments.commission.on_investment

        async def interrupted(*args, **kwargs):
            return ServiceResult.fail(ConcurrencyError("Interrupted"))

        investments.commission.on_investment = interrupted
        first = await investments.confirm_payment(investment_id, "GW-7", now=now)

        assert first.success is True
        assert first.data.investment.status == InvestmentStatus.COMPLETED
        assert first.data.commission is None
        assert (await balance_of(buyer["sponsor"])).upgrade == Decimal("100")

        investments.commission.on_investment = on_investment
        again = await investments.confirm_payment(investment_id, "GW-7", now=now)

        assert again.success is True
        assert again.data.already_completed is True
        assert again.data.referral_bonus is None
        assert again.data.commission.total_paid == Decimal("50.00")
        assert (await balance_of(buyer["sponsor"])).upgrade == Decimal("150")

        third = await investments.confirm_payment(investment_id, "GW-7", now=now)

        assert third.data.commission.total_paid == Decimal("0")
        assert (await balance_of(buyer["sponsor"])).upgrade == Decimal("150")

    @pytest.mark.asyncio
    async def test_unknown_investment(self, investments, now):
        result = await investments.confirm_payment(new_investment_id(), "GW", now=now)

        assert result.success is False
        assert result.error_code == "investment_not_found"


def test_investment_ids_are_unique():
    assert new_investment_id() != new_investment_id()
