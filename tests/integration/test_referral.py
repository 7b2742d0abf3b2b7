"""Integration tests for registration and the referral tree."""

import random
from datetime import timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from rewardledger.services.referral_service import ReferralService

UTC_ZONE = ZoneInfo("UTC")

pytestmark = pytest.mark.integration


@pytest.fixture
def referrals(session, locks):
    return ReferralService(
        session, locks=locks, timezone=UTC_ZONE, rng=random.Random(42)
    )


class TestRegister:
    """Test account registration."""

    @pytest.mark.asyncio
    async def test_register_root(self, referrals, now):
        result = await referrals.register("alice", now=now)

        assert result.success is True
        account = result.data
        assert account.sponsor_id is None
        assert account.depth == 0
        assert account.referral_code.startswith("ALIC")
        assert len(account.referral_code) == 8

    @pytest.mark.asyncio
    async def test_register_under_sponsor(self, referrals, now):
        sponsor = (await referrals.register("alice", now=now)).data
        sponsor_id, code = sponsor.id, sponsor.referral_code

        result = await referrals.register("bob", code.lower(), now=now)

        assert result.success is True
        assert result.data.sponsor_id == sponsor_id
        assert result.data.depth == 1

    @pytest.mark.asyncio
    async def test_unknown_referral_code(self, referrals, now):
        result = await referrals.register("bob", "NOPE0000", now=now)

        assert result.success is False
        assert result.error_code == "unknown_referral_code"

    @pytest.mark.asyncio
    async def test_duplicate_username(self, referrals, now):
        await referrals.register("alice", now=now)

        result = await referrals.register("alice", now=now)

        assert result.success is False
        assert result.error_code == "invalid_state"

    @pytest.mark.asyncio
    async def test_blank_username(self, referrals, now):
        result = await referrals.register("   ", now=now)

        assert result.success is False
        assert result.error_kind == "validation"


    @pytest.mark.asyncio
    async def test_username_with_braces(self, referrals, now):
        result = await referrals.register("bob{x}", now=now)

        assert result.success is True
        assert result.data.username == "bob{x}"
        assert result.data.referral_code.startswith("BOBX")


class TestTraversal:
    """Test sponsor chain and subtree."""

    @pytest.mark.asyncio
    async def test_sponsor_chain_nearest_first(self, session, locks, make_account):
        root = await make_account("root")
        mid = await make_account("mid", sponsor_id=root)
        leaf = await make_account("leaf", sponsor_id=mid)
        service = ReferralService(session, locks=locks, timezone=UTC_ZONE)

        result = await service.sponsor_chain(leaf)

        assert result.success is True
        chain = [(level, account.id) async for level, account in result.data]
        assert chain == [(1, mid), (2, root)]

    @pytest.mark.asyncio
    async def test_sponsor_chain_respects_depth(
        self, session, locks, make_account
    ):
        ids = [await make_account("n0")]
        for i in range(1, 6):
            ids.append(await make_account(f"n{i}", sponsor_id=ids[-1]))
        service = ReferralService(session, locks=locks, timezone=UTC_ZONE)

        result = await service.sponsor_chain(ids[-1], max_depth=3)

        assert [lvl async for lvl, _ in result.data] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_sponsor_chain_of_root_is_empty(
        self, session, locks, make_account
    ):
        root = await make_account("root")
        service = ReferralService(session, locks=locks, timezone=UTC_ZONE)

        result = await service.sponsor_chain(root)

        assert result.success is True
        assert [lvl async for lvl, _ in result.data] == []

    @pytest.mark.asyncio
    async def test_unknown_account(self, session, locks):
        service = ReferralService(session, locks=locks, timezone=UTC_ZONE)

        chain = await service.sponsor_chain(404)
        tree = await service.subtree(404)

        assert chain.success is False
        assert chain.error_code == "account_not_found"
        assert tree.success is False
        assert tree.error_code == "account_not_found"

    @pytest.mark.asyncio
    async def test_subtree(self, session, locks, make_account):
        root = await make_account("root")
        a = await make_account("a", sponsor_id=root)
        b = await make_account("b", sponsor_id=root)
        a1 = await make_account("a1", sponsor_id=a)
        service = ReferralService(session, locks=locks, timezone=UTC_ZONE)

        tree = (await service.subtree(root)).data

        assert tree.size == 3
        assert [child.account_id for child in tree.children] == [a, b]
        assert tree.children[0].children[0].account_id == a1
        assert tree.children[0].children[0].level == 2

        shallow = (await service.subtree(root, max_depth=1)).data
        assert shallow.size == 2


class TestTeamStats:
    """Test team statistics."""

    @pytest.mark.asyncio
    async def test_team_stats(
        self, session, locks, make_account, make_package, fund, now
    ):
        package = await make_package()
        root = await make_account("root")
        a = await make_account("a", sponsor_id=root, package_id=package)
        await make_account("b", sponsor_id=root)
        await make_account(
            "a1", sponsor_id=a, created_at=now - timedelta(days=40)
        )
        await fund(a, "upgrade", "25", count_as_earnings=True)
        service = ReferralService(session, locks=locks, timezone=UTC_ZONE)

        result = await service.team_stats(root, now=now)

        assert result.success is True
        stats = result.data
        assert stats.total_members == 3
        assert stats.direct_referrals == 2
        assert stats.active_members == 1
        assert stats.level_counts == {1: 2, 2: 1}
        assert stats.team_earnings == Decimal("25")
        assert stats.joined_this_month == 2

    @pytest.mark.asyncio
    async def test_team_stats_unknown_account(self, session, locks, now):
        service = ReferralService(session, locks=locks, timezone=UTC_ZONE)

        result = await service.team_stats(404, now=now)

        assert result.success is False
        assert result.error_code == "account_not_found"
