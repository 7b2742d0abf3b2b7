"""
Database engine and session factories.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from rewardledger.models import Base


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create async engine.

    SQLite connections get a busy timeout so concurrent writers wait for
    the file lock instead of failing immediately.

    Args:
        database_url: SQLAlchemy async URL
        echo: Echo SQL statements

    Returns:
        Async engine
    """
    connect_args: dict = {}
    if database_url.startswith("sqlite"):
        connect_args["timeout"] = 30

    return create_async_engine(
        database_url,
        echo=echo,
        connect_args=connect_args,
    )


def create_session_maker(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Create session maker bound to engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create all tables (checkfirst)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)
