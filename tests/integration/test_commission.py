"""Integration tests for level income and the direct referral bonus."""

from datetime import timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio

from rewardledger.config.rules import CommissionRules, CompensationRules
from rewardledger.repositories.commission_payout_repository import (
    CommissionPayoutRepository,
)
from rewardledger.services.base_service import ServiceResult
from rewardledger.services.commission_service import CommissionService
from rewardledger.services.ledger_service import LedgerService
from rewardledger.utils.exceptions import ConcurrencyError

UTC_ZONE = ZoneInfo("UTC")

pytestmark = pytest.mark.integration


@pytest.fixture
def commissions(session, rules, locks):
    return CommissionService(session, rules, locks=locks, timezone=UTC_ZONE)


@pytest_asyncio.fixture
async def tree(make_package, make_account):
    """
    Chain root <- mid <- investor.

    root and mid hold the Starter package (10/5/3/2/1).
    """
    package = await make_package()
    root = await make_account("root", package_id=package)
    mid = await make_account("mid", sponsor_id=root, package_id=package)
    investor = await make_account("investor", sponsor_id=mid, package_id=package)
    return {"package": package, "root": root, "mid": mid, "investor": investor}


class TestOnInvestment:
    """Test level income distribution."""

    @pytest.mark.asyncio
    async def test_pays_each_level(self, commissions, tree, balance_of, now):
        result = await commissions.on_investment(
            tree["investor"], Decimal("1000"), tree["package"], "inv_1", now=now
        )

        assert result.success is True
        report = result.data
        assert [(p.level, p.amount) for p in report.payouts] == [
            (1, Decimal("100.00")),
            (2, Decimal("50.00")),
        ]
        assert report.total_paid == Decimal("150.00")
        assert report.is_complete is True
        assert (await balance_of(tree["mid"])).upgrade == Decimal("100")
        assert (await balance_of(tree["root"])).upgrade == Decimal("50")

    @pytest.mark.asyncio
    async def test_same_event_pays_once(
        self, commissions, session, tree, balance_of, now
    ):
        await commissions.on_investment(
            tree["investor"], Decimal("1000"), tree["package"], "inv_2", now=now
        )

        again = await commissions.on_investment(
            tree["investor"], Decimal("1000"), tree["package"], "inv_2", now=now
        )

        assert again.success is True
        assert all(p.duplicate for p in again.data.payouts)
        assert again.data.total_paid == Decimal("0")
        assert (await balance_of(tree["mid"])).upgrade == Decimal("100")
        payouts = await CommissionPayoutRepository(session).find_by_event("inv_2")
        assert len(payouts) == 2

    @pytest.mark.asyncio
    async def test_skips_ancestor_without_package(
        self, commissions, make_package, make_account, balance_of, now
    ):
        package = await make_package()
        root = await make_account("root", package_id=package)
        mid = await make_account("mid", sponsor_id=root)
        investor = await make_account("investor", sponsor_id=mid)

        result = await commissions.on_investment(
            investor, Decimal("1000"), package, "inv_3", now=now
        )

        report = result.data
        assert [s.sponsor_id for s in report.skipped] == [mid]
        assert report.skipped[0].skip_reason == "no_active_package"
        assert [(p.level, p.sponsor_id) for p in report.payouts] == [(2, root)]
        assert (await balance_of(mid)).upgrade == Decimal("0")
        assert (await balance_of(root)).upgrade == Decimal("50")

    @pytest.mark.asyncio
    async def test_root_investor_pays_nothing(
        self, commissions, tree, now
    ):
        result = await commissions.on_investment(
            tree["root"], Decimal("1000"), tree["package"], "inv_4", now=now
        )

        assert result.success is True
        assert result.data.payouts == []
        assert result.data.total_paid == 0

    @pytest.mark.asyncio
    async def test_counts_as_earnings(self, session, commissions, tree, now):
        await commissions.on_investment(
            tree["investor"], Decimal("1000"), tree["package"], "inv_5", now=now
        )

        summary = await LedgerService(session, timezone=UTC_ZONE).get_earnings_summary(
            tree["mid"]
        )
        assert summary.total_earnings == Decimal("100")
        assert summary.level_income == Decimal("100")

    @pytest.mark.asyncio
    async def test_unknown_package(self, commissions, tree, now):
        result = await commissions.on_investment(
            tree["investor"], Decimal("1000"), 999, "inv_6", now=now
        )

        assert result.success is False
        assert result.error_code == "package_not_found"

    @pytest.mark.asyncio
    async def test_invalid_amount(self, commissions, tree, now):
        result = await commissions.on_investment(
            tree["investor"], Decimal("0"), tree["package"], "inv_7", now=now
        )

        assert result.success is False
        assert result.error_code == "invalid_amount"


class TestDistributionRules:
    """Test partial completion, eligibility, depth and percent lookup."""

    @pytest.mark.asyncio
    async def test_failed_level_keeps_earlier_payouts(
        self, commissions, make_package, make_account, balance_of, now
    ):
        package = await make_package()
        top = await make_account("top", package_id=package)
        root = await make_account("root", sponsor_id=top, package_id=package)
        mid = await make_account("mid", sponsor_id=root, package_id=package)
        investor = await make_account("investor", sponsor_id=mid)

        pay_level = commissions._pay_level

        async def pay_level_failing_at_two(**kwargs):
            if kwargs["level"] == 2:
                return ServiceResult.fail(ConcurrencyError("Level 2 unavailable"))
            return await pay_level(**kwargs)

        commissions._pay_level = pay_level_failing_at_two

        result = await commissions.on_investment(
            investor, Decimal("1000"), package, "inv_partial", now=now
        )

        assert result.success is True
        report = result.data
        assert report.is_complete is False
        assert [(p.level, p.sponsor_id) for p in report.payouts] == [
            (1, mid),
            (3, top),
        ]
        assert [(f.level, f.sponsor_id) for f in report.failures] == [(2, root)]
        assert report.failures[0].error_code == "concurrency_conflict"
        assert (await balance_of(mid)).upgrade == Decimal("100")
        assert (await balance_of(root)).upgrade == Decimal("0")
        assert (await balance_of(top)).upgrade == Decimal("30")

        commissions._pay_level = pay_level
        retry = await commissions.on_investment(
            investor, Decimal("1000"), package, "inv_partial", now=now
        )

        assert retry.data.is_complete is True
        assert retry.data.total_paid == Decimal("50.00")
        assert (await balance_of(root)).upgrade == Decimal("50")
        assert (await balance_of(mid)).upgrade == Decimal("100")

    @pytest.mark.asyncio
    async def test_expired_ancestor_skipped_when_required(
        self, session, locks, make_package, make_account, balance_of, now
    ):
        package = await make_package(validity_days=30)
        root = await make_account("root", package_id=package)
        mid = await make_account(
            "mid",
            sponsor_id=root,
            package_id=package,
            activated_at=now - timedelta(days=31),
        )
        investor = await make_account("investor", sponsor_id=mid)
        rules = CompensationRules(
            commission=CommissionRules(require_unexpired_package=True)
        )
        commissions = CommissionService(
            session, rules, locks=locks, timezone=UTC_ZONE
        )

        result = await commissions.on_investment(
            investor, Decimal("1000"), package, "inv_expired", now=now
        )

        report = result.data
        assert [s.sponsor_id for s in report.skipped] == [mid]
        assert report.skipped[0].skip_reason == "no_active_package"
        assert [(p.level, p.sponsor_id) for p in report.payouts] == [(2, root)]
        assert (await balance_of(mid)).upgrade == Decimal("0")

    @pytest.mark.asyncio
    async def test_expired_ancestor_paid_by_default(
        self, commissions, make_package, make_account, balance_of, now
    ):
        package = await make_package(validity_days=30)
        mid = await make_account(
            "mid", package_id=package, activated_at=now - timedelta(days=31)
        )
        investor = await make_account("investor", sponsor_id=mid)

        result = await commissions.on_investment(
            investor, Decimal("1000"), package, "inv_lapsed", now=now
        )

        assert [p.sponsor_id for p in result.data.payouts] == [mid]
        assert (await balance_of(mid)).upgrade == Decimal("100")

    @pytest.mark.asyncio
    async def test_stops_after_ten_levels(
        self, commissions, make_package, make_account, balance_of, now
    ):
        package = await make_package(percents=["1"] * 12)
        ancestors = []
        sponsor_id = None
        for n in range(12):
            sponsor_id = await make_account(
                f"anc{n}", sponsor_id=sponsor_id, package_id=package
            )
            ancestors.append(sponsor_id)
        investor = await make_account("investor", sponsor_id=sponsor_id)

        result = await commissions.on_investment(
            investor, Decimal("1000"), package, "inv_deep", now=now
        )

        report = result.data
        assert [p.level for p in report.payouts] == list(range(1, 11))
        assert report.total_paid == Decimal("100.00")
        # ancestors[0] is level 12, ancestors[1] level 11
        assert (await balance_of(ancestors[0])).upgrade == Decimal("0")
        assert (await balance_of(ancestors[1])).upgrade == Decimal("0")
        assert (await balance_of(ancestors[2])).upgrade == Decimal("10")

    @pytest.mark.asyncio
    async def test_percent_lookup_falls_through(
        self, commissions, make_package, make_account, now
    ):
        own_table = await make_package("Gold", percents=["1", "1", "4"])
        empty_table = await make_package("Basic", percents=["0"])
        bought = await make_package("Silver", percents=["0", "7"])
        top = await make_account("top", package_id=own_table)
        root = await make_account("root", sponsor_id=top, package_id=empty_table)
        mid = await make_account("mid", sponsor_id=root, package_id=empty_table)
        investor = await make_account("investor", sponsor_id=mid)

        result = await commissions.on_investment(
            investor, Decimal("1000"), bought, "inv_lookup", now=now
        )

        # level 1: default table (10), level 2: bought package (7),
        # level 3: the ancestor's own package (4)
        assert [(p.level, p.percent, p.amount) for p in result.data.payouts] == [
            (1, Decimal("10"), Decimal("100.00")),
            (2, Decimal("7"), Decimal("70.00")),
            (3, Decimal("4"), Decimal("40.00")),
        ]


class TestDirectReferralBonus:
    """Test the one-time sponsor bonus."""

    @pytest.mark.asyncio
    async def test_paid_once(self, commissions, tree, balance_of, now):
        first = await commissions.direct_referral_bonus(tree["investor"], now=now)
        second = await commissions.direct_referral_bonus(tree["investor"], now=now)

        assert first.success is True
        assert first.data.amount == Decimal("100")
        assert second.success is True
        assert second.data is None
        balance = await balance_of(tree["mid"])
        assert balance.upgrade == Decimal("100")
        assert balance.withdrawal == Decimal("0")

    @pytest.mark.asyncio
    async def test_root_has_no_sponsor(self, commissions, tree, now):
        result = await commissions.direct_referral_bonus(tree["root"], now=now)

        assert result.success is True
        assert result.data is None

    @pytest.mark.asyncio
    async def test_unknown_account(self, commissions, now):
        result = await commissions.direct_referral_bonus(12345, now=now)

        assert result.success is False
        assert result.error_code == "account_not_found"
