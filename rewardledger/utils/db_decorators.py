"""
Database decorators for automatic commit and rollback.

Used by scripts and maintenance helpers that are not service operations
(service operations go through ``atomic_operation``).
"""

from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


def _find_session(args: tuple[Any, ...], kwargs: dict[str, Any]) -> AsyncSession:
    session = kwargs.get("session")
    if session is None and args:
        first = args[0]
        if isinstance(first, AsyncSession):
            session = first
        else:
            session = getattr(first, "session", None)
    if not isinstance(session, AsyncSession):
        raise TypeError("No AsyncSession argument found")
    return session


def with_auto_commit(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """
    Commit the session on success and roll back on error.

    The session is taken from a ``session`` keyword, the first positional
    argument, or ``self.session``.

    Example:
        @with_auto_commit
        async def seed(session: AsyncSession) -> int:
            session.add(PackageTier(...))
            return 1
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        session = _find_session(args, kwargs)
        try:
            result = await func(*args, **kwargs)
            await session.commit()
            logger.debug(f"Auto-commit performed in {func.__name__}")
            return result
        except Exception as e:
            await session.rollback()
            logger.info(
                f"Rollback performed in {func.__name__} due to error: "
                f"{type(e).__name__}"
            )
            raise

    return wrapper
