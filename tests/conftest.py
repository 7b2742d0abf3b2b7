"""Pytest configuration and shared fixtures for all tests."""

import os

# Minimal environment for Settings (must be set before rewardledger imports)
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("BUSINESS_TIMEZONE", "UTC")
os.environ.setdefault("CONFLICT_RETRY_DELAY", "0.01")

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio

from rewardledger.config.database import (
    create_engine,
    create_session_maker,
    init_models,
)
from rewardledger.config.rules import default_rules
from rewardledger.models import Account, PackageTier, WalletType
from rewardledger.models.enums import TransactionType
from rewardledger.services.ledger_service import LedgerService
from rewardledger.utils.locks import AccountLockRegistry

UTC_ZONE = ZoneInfo("UTC")

# Fixed moment used by most tests
NOW = datetime(2026, 3, 15, 10, 0, tzinfo=UTC)


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def rules():
    """Built-in compensation rules."""
    return default_rules()


@pytest.fixture
def locks():
    """Fresh lock registry per test."""
    return AccountLockRegistry()


@pytest.fixture
def now():
    """Fixed UTC moment."""
    return NOW


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite engine with all tables created."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    """Session factory bound to the test engine."""
    return create_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker):
    """Database session for the test body."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_package(session_maker):
    """
    Factory creating a package tier in its own session.

    Returns:
        async callable returning the new package id
    """
    async def _make(
        name: str = "Starter",
        price: str = "500",
        daily_income: str = "25",
        percents: list[str] | None = None,
        validity_days: int = 30,
        **extra,
    ) -> int:
        async with session_maker() as s:
            package = PackageTier(
                name=name,
                price=Decimal(price),
                daily_income=Decimal(daily_income),
                validity_days=validity_days,
                level_commission_percents=(
                    percents if percents is not None
                    else ["10", "5", "3", "2", "1"]
                ),
                is_active=extra.pop("is_active", True),
                **extra,
            )
            s.add(package)
            await s.commit()
            return package.id

    return _make


@pytest.fixture
def make_account(session_maker):
    """
    Factory creating an account in its own session.

    Returns:
        async callable returning the new account id
    """
    async def _make(
        username: str,
        sponsor_id: int | None = None,
        package_id: int | None = None,
        activated_at: datetime | None = NOW,
        welcome_video_claimed: bool = False,
        created_at: datetime = NOW,
    ) -> int:
        async with session_maker() as s:
            depth = 0
            if sponsor_id is not None:
                sponsor = await s.get(Account, sponsor_id)
                depth = sponsor.depth + 1
            account = Account(
                username=username,
                referral_code=username.upper()[:12] + "01",
                sponsor_id=sponsor_id,
                depth=depth,
                package_tier_id=package_id,
                package_activated_at=activated_at if package_id else None,
                welcome_video_claimed=welcome_video_claimed,
                created_at=created_at,
                updated_at=created_at,
            )
            s.add(account)
            await s.commit()
            return account.id

    return _make


@pytest.fixture
def fund(session_maker, locks):
    """
    Credit a wallet through the ledger so balances stay reconcilable.

    Returns:
        async callable (account_id, wallet, amount, count_as_earnings)
    """
    async def _fund(
        account_id: int,
        wallet: WalletType,
        amount: str,
        count_as_earnings: bool = False,
    ) -> None:
        async with session_maker() as s:
            ledger = LedgerService(s, locks=locks, timezone=UTC_ZONE)
            result = await ledger.credit(
                account_id,
                wallet,
                Decimal(amount),
                TransactionType.ADJUSTMENT,
                "Test funding",
                count_as_earnings=count_as_earnings,
                now=NOW,
            )
            assert result.success, result.error

    return _fund


@pytest.fixture
def balance_of(session_maker):
    """Read current balances in a fresh session."""
    async def _balance(account_id: int):
        async with session_maker() as s:
            result = await LedgerService(s, timezone=UTC_ZONE).get_balance(
                account_id
            )
            assert result.success, result.error
            return result.data

    return _balance
