"""
Base service class.

Provides common functionality for all service classes including session
management, logging, the ServiceResult container and the atomic operation
decorator that every balance-changing operation goes through.
"""

import asyncio
import contextlib
import functools
import inspect
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar
from zoneinfo import ZoneInfo

from loguru import logger
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.config.settings import settings
from rewardledger.utils.exceptions import (
    ConcurrencyError,
    LedgerError,
    is_conflict_error,
    is_constraint_violation,
    is_store_unavailable,
)
from rewardledger.utils.locks import (
    AccountLockRegistry,
    account_lock_key,
    account_locks,
)

# Type variable for generic decorator return types
T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard service result container.

    Business failures are returned, not raised: ``success`` is False and
    ``error``/``error_code``/``error_kind`` describe the LedgerError.
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    error_kind: str | None = None

    @classmethod
    def ok(cls, data: T | None = None) -> "ServiceResult[T]":
        """Successful result."""
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, exc: LedgerError) -> "ServiceResult[T]":
        """Failed result from a business error."""
        return cls(
            success=False,
            error=exc.message,
            error_code=exc.code,
            error_kind=exc.kind,
        )


class BaseService:
    """
    Base service class.

    Provides common functionality for all service classes:
    - Session management
    - Logging with bound service context
    - Per-account locking and conflict retry settings

    One service instance works on one session; concurrent callers use
    separate sessions (and therefore separate service instances).
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        locks: AccountLockRegistry | None = None,
        timezone: ZoneInfo | None = None,
    ) -> None:
        """
        Initialize base service.

        Args:
            session: Async database session
            locks: Lock registry (process-wide default when None)
            timezone: Business time zone (from settings when None)
        """
        self.session = session
        self.locks = locks or account_locks
        self.tz = timezone or settings.tz
        self.lock_timeout = settings.lock_timeout_seconds
        self.max_retries = settings.conflict_max_retries
        self.retry_delay = settings.conflict_retry_delay
        self.logger = logger.bind(service=self.__class__.__name__)

    async def commit(self) -> None:
        """Commit current transaction."""
        await self.session.commit()

    async def rollback(self) -> None:
        """Rollback current transaction."""
        await self.session.rollback()

    @contextlib.asynccontextmanager
    async def hold_lock(self, key: str | None) -> AsyncIterator[None]:
        """Hold a named lock for the block; no-op when key is None."""
        if key is None:
            yield
            return
        async with self.locks.lock(key, timeout=self.lock_timeout):
            yield


def atomic_operation(
    lock_on: str | None = None,
) -> Callable[
    [Callable[..., Awaitable[T]]], Callable[..., Awaitable[ServiceResult[T]]]
]:
    """
    Run a service method as one all-or-nothing unit.

    The wrapped method:
    1. runs under the per-account lock named by the ``lock_on`` argument
    2. commits when the body returns (the return value becomes ``data``)
    3. rolls back and returns a failed result on LedgerError
    4. rolls back and retries with exponential backoff on write conflicts
       and duplicate-key races, then returns a ConcurrencyError result
    5. rolls back and re-raises anything else (store unavailable, bugs)

    Usage:
        @atomic_operation(lock_on="account_id")
        async def credit(self, account_id: int, ...) -> Transaction:
            ...

    Args:
        lock_on: Name of the account id argument to lock on

    Returns:
        Decorator producing an async method returning ServiceResult
    """
    def decorator(
        func: Callable[..., Awaitable[T]],
    ) -> Callable[..., Awaitable[ServiceResult[T]]]:
        signature = inspect.signature(func)

        @functools.wraps(func)
        async def wrapper(
            self: BaseService, *args: Any, **kwargs: Any
        ) -> ServiceResult[T]:
            lock_key = None
            if lock_on is not None:
                bound = signature.bind(self, *args, **kwargs)
                bound.apply_defaults()
                lock_key = account_lock_key(bound.arguments[lock_on])

            attempts = self.max_retries + 1
            last_error: BaseException | None = None

            for attempt in range(1, attempts + 1):
                try:
                    async with self.hold_lock(lock_key):
                        try:
                            data = await func(self, *args, **kwargs)
                            await self.session.commit()
                            return ServiceResult.ok(data)
                        except ConcurrencyError:
                            await self.session.rollback()
                            raise
                        except LedgerError as e:
                            await self.session.rollback()
                            self.logger.bind(
                                function=func.__name__,
                                error_code=e.code,
                                error=e.message,
                            ).warning(
                                f"{func.__name__} rejected: {e.code}",
                            )
                            return ServiceResult.fail(e)
                        except Exception:
                            await self.session.rollback()
                            raise
                except ConcurrencyError as e:
                    last_error = e
                except DBAPIError as e:
                    if is_store_unavailable(e):
                        self.logger.bind(function=func.__name__).error(
                            f"Store unavailable in {func.__name__}"
                        )
                        raise
                    if not (is_conflict_error(e) or is_constraint_violation(e)):
                        raise
                    last_error = e

                self.logger.bind(
                    function=func.__name__,
                    lock_key=lock_key,
                    error=str(last_error),
                ).warning(
                    f"Conflict in {func.__name__} "
                    f"(attempt {attempt}/{attempts})",
                )
                if attempt < attempts:
                    await asyncio.sleep(self.retry_delay * (2 ** (attempt - 1)))

            self.logger.bind(function=func.__name__, lock_key=lock_key).error(
                f"{func.__name__} gave up after {attempts} attempts",
            )
            return ServiceResult.fail(
                ConcurrencyError(
                    f"Concurrent modification in {func.__name__}, retry later"
                )
            )

        return wrapper

    return decorator


def read_operation(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[ServiceResult[T]]]:
    """
    Run a read-only service method and wrap its value in a ServiceResult.

    LedgerError (unknown account and the like) becomes a failed result;
    nothing is locked or committed.

    Usage:
        @read_operation
        async def get_balance(self, account_id: int) -> WalletBalance:
            ...
    """
    @functools.wraps(func)
    async def wrapper(
        self: BaseService, *args: Any, **kwargs: Any
    ) -> ServiceResult[T]:
        try:
            return ServiceResult.ok(await func(self, *args, **kwargs))
        except LedgerError as e:
            self.logger.bind(function=func.__name__, error_code=e.code).debug(
                f"{func.__name__} failed: {e.code}"
            )
            return ServiceResult.fail(e)

    return wrapper


def log_operation(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """
    Decorator to log method entry/exit with timing.

    Usage:
        @log_operation
        async def on_investment(self, account_id: int, ...):
            ...
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> T:
        start_time = time.monotonic()

        self.logger.bind(
            function=func.__name__,
            args_count=len(args),
            kwargs_keys=list(kwargs.keys()),
        ).debug(f"Starting {func.__name__}")

        try:
            result = await func(self, *args, **kwargs)
        except Exception as e:
            self.logger.bind(
                function=func.__name__,
                duration_seconds=round(time.monotonic() - start_time, 3),
                error=str(e),
            ).opt(exception=True).error(f"Failed {func.__name__}")
            raise

        self.logger.bind(
            function=func.__name__,
            duration_seconds=round(time.monotonic() - start_time, 3),
            success=getattr(result, "success", True),
        ).info(f"Completed {func.__name__}")
        return result

    return wrapper
