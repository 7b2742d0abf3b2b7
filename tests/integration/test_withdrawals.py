"""Integration tests for the withdrawal lifecycle."""

from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio

from rewardledger.models import WalletType, WithdrawalStatus
from rewardledger.services.ledger_service import LedgerService
from rewardledger.services.withdrawal_service import WithdrawalService
from rewardledger.utils.exceptions import WithdrawalRequestNotFound

UTC_ZONE = ZoneInfo("UTC")

pytestmark = pytest.mark.integration

OPERATOR_ID = 7

BANK = {
    "account_number": "001122334455",
    "ifsc_code": "sbin0001234",
    "bank_name": "State Bank",
    "account_holder_name": "Alice Doe",
}


@pytest.fixture
def withdrawals(session, rules, locks):
    return WithdrawalService(session, rules, locks=locks, timezone=UTC_ZONE)


@pytest_asyncio.fixture
async def earner(make_package, make_account, fund):
    """Account with a package and 20000 earned (daily cap 2000)."""
    package = await make_package()
    account_id = await make_account("earner", package_id=package)
    await fund(account_id, WalletType.WITHDRAWAL, "20000", count_as_earnings=True)
    return account_id


class TestSubmit:
    """Test request submission."""

    @pytest.mark.asyncio
    async def test_submit_reserves_gross(self, withdrawals, earner, balance_of, now):
        result = await withdrawals.submit(earner, Decimal("1000"), BANK, now=now)

        assert result.success is True
        request = result.data
        assert request.amount == Decimal("1000")
        assert request.tax_amount == Decimal("100")
        assert request.net_amount == Decimal("900")
        assert request.status == WithdrawalStatus.PENDING
        assert request.request_code == f"WR{request.id:08d}"
        assert request.destination["ifsc_code"] == "SBIN0001234"
        assert request.reserve_transaction_id is not None
        assert (await balance_of(earner)).withdrawal == Decimal("19000")

    @pytest.mark.asyncio
    async def test_below_minimum(self, withdrawals, earner, now):
        result = await withdrawals.submit(earner, Decimal("50"), BANK, now=now)

        assert result.success is False
        assert result.error_code == "below_minimum"

    @pytest.mark.asyncio
    async def test_above_maximum(self, withdrawals, earner, now):
        result = await withdrawals.submit(earner, Decimal("200000"), BANK, now=now)

        assert result.error_code == "above_maximum"

    @pytest.mark.asyncio
    async def test_daily_cap(self, withdrawals, earner, balance_of, now):
        first = await withdrawals.submit(earner, Decimal("1500"), BANK, now=now)
        assert first.success is True

        second = await withdrawals.submit(earner, Decimal("600"), BANK, now=now)

        assert second.success is False
        assert second.error_code == "daily_cap_exceeded"
        assert (await balance_of(earner)).withdrawal == Decimal("18500")

    @pytest.mark.asyncio
    async def test_rejected_requests_free_the_daily_cap(
        self, withdrawals, earner, now
    ):
        first = await withdrawals.submit(earner, Decimal("1500"), BANK, now=now)
        await withdrawals.decide(first.data.id, False, OPERATOR_ID, now=now)

        second = await withdrawals.submit(earner, Decimal("600"), BANK, now=now)

        assert second.success is True

    @pytest.mark.asyncio
    async def test_insufficient_funds(
        self, withdrawals, make_package, make_account, fund, now
    ):
        package = await make_package()
        account_id = await make_account("saver", package_id=package)
        await fund(account_id, WalletType.UPGRADE, "20000", count_as_earnings=True)
        await fund(account_id, WalletType.WITHDRAWAL, "50")

        result = await withdrawals.submit(account_id, Decimal("100"), BANK, now=now)

        assert result.success is False
        assert result.error_code == "insufficient_funds"

    @pytest.mark.asyncio
    async def test_requires_package(self, withdrawals, make_account, fund, now):
        account_id = await make_account("nopkg")
        await fund(account_id, WalletType.WITHDRAWAL, "5000", count_as_earnings=True)

        result = await withdrawals.submit(account_id, Decimal("100"), BANK, now=now)

        assert result.error_code == "no_active_package"

    @pytest.mark.asyncio
    async def test_invalid_destination(self, withdrawals, earner, balance_of, now):
        details = {**BANK, "ifsc_code": "  "}

        result = await withdrawals.submit(earner, Decimal("100"), details, now=now)

        assert result.success is False
        assert result.error_code == "invalid_destination"
        assert (await balance_of(earner)).withdrawal == Decimal("20000")

    @pytest.mark.asyncio
    async def test_calculate_tds(self, withdrawals):
        tds = withdrawals.calculate_tds(Decimal("250"))

        assert tds.tds_amount == Decimal("25.00")
        assert tds.net_amount == Decimal("225.00")


class TestLifecycle:
    """Test approval, rejection and processing."""

    @pytest.mark.asyncio
    async def test_reject_refunds_once(self, withdrawals, earner, balance_of, now):
        request_id = (
            await withdrawals.submit(earner, Decimal("1000"), BANK, now=now)
        ).data.id

        rejected = await withdrawals.decide(
            request_id, False, OPERATOR_ID, notes="Wrong account", now=now
        )
        assert rejected.success is True
        assert rejected.data.status == WithdrawalStatus.REJECTED
        assert rejected.data.refund_transaction_id is not None
        assert rejected.data.admin_notes == "Wrong account"

        again = await withdrawals.decide(request_id, False, OPERATOR_ID, now=now)
        assert again.success is True
        assert (await balance_of(earner)).withdrawal == Decimal("20000")

        approve = await withdrawals.decide(request_id, True, OPERATOR_ID, now=now)
        assert approve.success is False
        assert approve.error_code == "invalid_state"

    @pytest.mark.asyncio
    async def test_approve_then_process(
        self, session, withdrawals, earner, balance_of, now
    ):
        request_id = (
            await withdrawals.submit(earner, Decimal("1000"), BANK, now=now)
        ).data.id

        approved = await withdrawals.decide(request_id, True, OPERATOR_ID, now=now)
        assert approved.data.status == WithdrawalStatus.APPROVED
        assert approved.data.decided_by == OPERATOR_ID

        processed = await withdrawals.mark_processed(request_id, OPERATOR_ID, now=now)
        assert processed.success is True
        assert processed.data.status == WithdrawalStatus.PROCESSED
        assert processed.data.processed_by == OPERATOR_ID

        summary = await LedgerService(session, timezone=UTC_ZONE).get_earnings_summary(
            earner
        )
        assert summary.total_withdrawals == Decimal("1000")
        assert (await balance_of(earner)).withdrawal == Decimal("19000")

    @pytest.mark.asyncio
    async def test_repeated_approval_is_noop(self, withdrawals, earner, now):
        request_id = (
            await withdrawals.submit(earner, Decimal("1000"), BANK, now=now)
        ).data.id
        await withdrawals.decide(request_id, True, OPERATOR_ID, now=now)

        again = await withdrawals.decide(request_id, True, OPERATOR_ID, now=now)
        reject = await withdrawals.decide(request_id, False, OPERATOR_ID, now=now)

        assert again.success is True
        assert reject.error_code == "invalid_state"

    @pytest.mark.asyncio
    async def test_process_requires_approval(self, withdrawals, earner, now):
        request_id = (
            await withdrawals.submit(earner, Decimal("1000"), BANK, now=now)
        ).data.id

        result = await withdrawals.mark_processed(request_id, OPERATOR_ID, now=now)

        assert result.success is False
        assert result.error_code == "invalid_state"

    @pytest.mark.asyncio
    async def test_notes_too_long(self, withdrawals, earner, now):
        request_id = (
            await withdrawals.submit(earner, Decimal("1000"), BANK, now=now)
        ).data.id

        result = await withdrawals.decide(
            request_id, True, OPERATOR_ID, notes="x" * 501, now=now
        )

        assert result.error_code == "validation_error"

    @pytest.mark.asyncio
    async def test_unknown_request(self, withdrawals, now):
        decided = await withdrawals.decide(404, True, OPERATOR_ID, now=now)
        processed = await withdrawals.mark_processed(404, OPERATOR_ID, now=now)

        assert decided.error_code == "withdrawal_request_not_found"
        assert processed.error_code == "withdrawal_request_not_found"

    @pytest.mark.asyncio
    async def test_transitions_read_the_row_for_update(
        self, withdrawals, earner, now
    ):
        request_id = (
            await withdrawals.submit(earner, Decimal("1000"), BANK, now=now)
        ).data.id
        requests = withdrawals.lifecycle_handler.requests
        get_by_id = requests.get_by_id
        locking_reads = []

        async def recording_get_by_id(id, for_update=False):
            if for_update:
                locking_reads.append(id)
            return await get_by_id(id, for_update=for_update)

        requests.get_by_id = recording_get_by_id
        await withdrawals.decide(request_id, True, OPERATOR_ID, now=now)
        await withdrawals.mark_processed(request_id, OPERATOR_ID, now=now)

        assert locking_reads == [request_id, request_id]


class TestQueries:
    """Test request queries."""

    @pytest.mark.asyncio
    async def test_get_request_not_found(self, withdrawals):
        with pytest.raises(WithdrawalRequestNotFound):
            await withdrawals.get_request(404)

    @pytest.mark.asyncio
    async def test_list_requests(self, withdrawals, earner, now):
        first_id = (
            await withdrawals.submit(earner, Decimal("500"), BANK, now=now)
        ).data.id
        second_id = (
            await withdrawals.submit(earner, Decimal("600"), BANK, now=now)
        ).data.id
        await withdrawals.decide(first_id, True, OPERATOR_ID, now=now)

        requests, total = await withdrawals.list_requests(earner)
        pending, pending_total = await withdrawals.list_requests(
            earner, status=WithdrawalStatus.PENDING
        )
        queue = await withdrawals.list_pending()

        assert total == 2
        assert [r.id for r in requests] == [second_id, first_id]
        assert pending_total == 1
        assert [r.id for r in pending] == [second_id]
        assert [r.id for r in queue] == [second_id]

        fetched = await withdrawals.get_request(first_id)
        assert fetched.status == WithdrawalStatus.APPROVED
