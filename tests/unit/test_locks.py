"""Tests for per-account locks."""

import asyncio

import pytest

from rewardledger.utils.exceptions import ConcurrencyError
from rewardledger.utils.locks import AccountLockRegistry, account_lock_key


class TestAccountLockRegistry:
    """Test keyed lock registry."""

    @pytest.mark.asyncio
    async def test_serializes_same_key(self):
        """Holders of one key never overlap."""
        registry = AccountLockRegistry()
        active = 0
        peak = 0

        async def worker():
            nonlocal active, peak
            async with registry.lock("account:1"):
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1

        await asyncio.gather(*(worker() for _ in range(5)))
        assert peak == 1

    @pytest.mark.asyncio
    async def test_different_keys_do_not_block(self):
        registry = AccountLockRegistry()
        async with registry.lock("account:1"):
            async with registry.lock("account:2", timeout=0.1):
                assert registry.is_locked("account:1")
                assert registry.is_locked("account:2")

    @pytest.mark.asyncio
    async def test_timeout_raises_concurrency_error(self):
        registry = AccountLockRegistry()
        async with registry.lock("account:1"):
            with pytest.raises(ConcurrencyError):
                async with registry.lock("account:1", timeout=0.05):
                    pass

    @pytest.mark.asyncio
    async def test_released_locks_are_cleaned_up(self):
        registry = AccountLockRegistry()
        async with registry.lock("account:1"):
            assert len(registry) == 1
        assert len(registry) == 0
        assert registry.is_locked("account:1") is False

    @pytest.mark.asyncio
    async def test_released_on_error(self):
        registry = AccountLockRegistry()
        with pytest.raises(RuntimeError):
            async with registry.lock("account:1"):
                raise RuntimeError("boom")
        assert len(registry) == 0

    def test_lock_key(self):
        assert account_lock_key(42) == "account:42"
