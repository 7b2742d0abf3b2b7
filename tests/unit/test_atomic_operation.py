"""
Tests for the atomic operation decorator.

Uses a mocked session: commit/rollback calls and retries are asserted
without a database.
"""

import pytest
from loguru import logger
from sqlalchemy.exc import IntegrityError, OperationalError

from rewardledger.services.base_service import (
    BaseService,
    ServiceResult,
    atomic_operation,
    read_operation,
)
from rewardledger.utils.exceptions import AccountNotFound, InsufficientFunds


class FlakyService(BaseService):
    """Service whose operation fails a configurable number of times."""

    def __init__(self, session, locks, failures=(), result="done"):
        super().__init__(session, locks=locks)
        self.failures = list(failures)
        self.result = result
        self.calls = 0
        self.retry_delay = 0
        self.max_retries = 3

    @atomic_operation(lock_on="account_id")
    async def operate(self, account_id: int) -> str:
        self.calls += 1
        assert self.locks.is_locked(f"account:{account_id}")
        if self.failures:
            raise self.failures.pop(0)
        return self.result

    @atomic_operation()
    async def unlocked(self) -> str:
        return "free"

    @read_operation
    async def lookup(self, account_id: int) -> str:
        if account_id != 7:
            raise AccountNotFound(f"Account {account_id} not found")
        return "found"


def locked_error():
    return OperationalError("UPDATE", {}, Exception("database is locked"))


class TestAtomicOperation:
    """Test commit, rollback and retry behaviour."""

    @pytest.mark.asyncio
    async def test_success_commits(self, mock_session, locks):
        service = FlakyService(mock_session, locks)

        result = await service.operate(7)

        assert isinstance(result, ServiceResult)
        assert result.success is True
        assert result.data == "done"
        mock_session.commit.assert_awaited_once()
        mock_session.rollback.assert_not_awaited()
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_business_error_rolls_back(self, mock_session, locks):
        service = FlakyService(
            mock_session, locks, failures=[InsufficientFunds("no money")]
        )

        result = await service.operate(7)

        assert result.success is False
        assert result.error_code == "insufficient_funds"
        assert service.calls == 1
        mock_session.rollback.assert_awaited_once()
        mock_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_conflict_is_retried(self, mock_session, locks):
        service = FlakyService(
            mock_session, locks, failures=[locked_error(), locked_error()]
        )

        result = await service.operate(7)

        assert result.success is True
        assert service.calls == 3
        assert mock_session.rollback.await_count == 2

    @pytest.mark.asyncio
    async def test_duplicate_key_is_retried(self, mock_session, locks):
        service = FlakyService(
            mock_session,
            locks,
            failures=[IntegrityError("INSERT", {}, Exception("UNIQUE"))],
        )

        result = await service.operate(7)

        assert result.success is True
        assert service.calls == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, mock_session, locks):
        service = FlakyService(
            mock_session, locks, failures=[locked_error() for _ in range(10)]
        )

        result = await service.operate(7)

        assert result.success is False
        assert result.error_code == "concurrency_conflict"
        assert service.calls == 4

    @pytest.mark.asyncio
    async def test_unexpected_error_propagates(self, mock_session, locks):
        service = FlakyService(
            mock_session,
            locks,
            failures=[OperationalError("SELECT", {}, Exception("server gone"))],
        )

        with pytest.raises(OperationalError):
            await service.operate(7)

        assert service.calls == 1
        mock_session.rollback.assert_awaited_once()
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_without_lock(self, mock_session, locks):
        service = FlakyService(mock_session, locks)

        result = await service.unlocked()

        assert result.data == "free"
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_store_unavailable_is_logged(self, mock_session, locks):
        service = FlakyService(
            mock_session,
            locks,
            failures=[OperationalError("SELECT", {}, Exception("server gone"))],
        )
        messages = []
        sink_id = logger.add(messages.append, level="ERROR")
        try:
            with pytest.raises(OperationalError):
                await service.operate(7)
        finally:
            logger.remove(sink_id)

        assert any("Store unavailable in operate" in m for m in messages)


class TestReadOperation:
    """Test query result wrapping."""

    @pytest.mark.asyncio
    async def test_value_is_wrapped(self, mock_session, locks):
        service = FlakyService(mock_session, locks)

        result = await service.lookup(7)

        assert result.success is True
        assert result.data == "found"
        mock_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_business_error_is_returned(self, mock_session, locks):
        service = FlakyService(mock_session, locks)

        result = await service.lookup(8)

        assert result.success is False
        assert result.error_code == "account_not_found"
        assert result.error_kind == "not_found"
        mock_session.rollback.assert_not_awaited()
