"""
Per-account locks.

Keyed asyncio locks that serialize balance mutations of one account inside
this process. Cross-process safety comes from the conditional UPDATEs in the
ledger; these locks keep same-process writers from contending on the store.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger

from rewardledger.utils.exceptions import ConcurrencyError


class AccountLockRegistry:
    """
    Registry of named asyncio locks with reference-counted cleanup.

    Example:
        async with account_locks.lock("account:42", timeout=5):
            ...
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._refs: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def is_locked(self, key: str) -> bool:
        """Check if key is currently held."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def lock(
        self, key: str, timeout: float | None = None
    ) -> AsyncIterator[None]:
        """
        Hold the lock for key.

        Args:
            key: Lock name, e.g. ``account:42``
            timeout: Max seconds to wait; None waits forever

        Raises:
            ConcurrencyError: If the lock is not acquired in time
        """
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._refs[key] = self._refs.get(key, 0) + 1
        try:
            try:
                async with asyncio.timeout(timeout):
                    await lock.acquire()
            except TimeoutError as e:
                logger.bind(lock_key=key, timeout=timeout).warning(
                    f"Lock wait timed out for {key}",
                )
                raise ConcurrencyError(
                    f"Could not acquire lock {key} within {timeout}s"
                ) from e

            try:
                yield
            finally:
                lock.release()
        finally:
            self._refs[key] -= 1
            if self._refs[key] == 0:
                del self._refs[key]
                del self._locks[key]


def account_lock_key(account_id: int) -> str:
    """Lock name for an account."""
    return f"account:{account_id}"


# Process-wide default registry
account_locks = AccountLockRegistry()
