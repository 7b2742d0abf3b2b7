"""
Base repository.

Generic data access operations for all repositories.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from rewardledger.models.base import Base

# Generic type for model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with generic operations.

    Type Parameters:
        ModelType: SQLAlchemy model class

    Example:
        class AccountRepository(BaseRepository[Account]):
            def __init__(self, session: AsyncSession):
                super().__init__(Account, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def get_by_id(
        self, id: int | str, for_update: bool = False
    ) -> ModelType | None:
        """
        Get entity by ID, always re-read from the database.

        Args:
            id: Entity ID
            for_update: Use SELECT FOR UPDATE where the dialect supports it

        Returns:
            Entity or None if not found
        """
        stmt = (
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.unique().scalar_one_or_none()

    async def get_by(self, **filters: Any) -> ModelType | None:
        """
        Get single entity by filters.

        Args:
            **filters: Column filters

        Returns:
            First matching entity or None
        """
        stmt = (
            select(self.model)
            .filter_by(**filters)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.unique().scalars().first()

    async def find_by(
        self,
        order_by: ColumnElement[Any] | None = None,
        limit: int | None = None,
        offset: int | None = None,
        **filters: Any,
    ) -> list[ModelType]:
        """
        Find entities by filters.

        Args:
            order_by: Ordering clause (primary key when None)
            limit: Max number of results
            offset: Number of results to skip
            **filters: Column filters

        Returns:
            List of matching entities
        """
        stmt = (
            select(self.model)
            .filter_by(**filters)
            .execution_options(populate_existing=True)
        )
        stmt = stmt.order_by(order_by if order_by is not None else self.model.id)

        if offset:
            stmt = stmt.offset(offset)
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.unique().scalars().all())

    async def create(self, **data: Any) -> ModelType:
        """
        Create new entity.

        Args:
            **data: Entity data

        Returns:
            Created entity (flushed, not committed)
        """
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def count(self, **filters: Any) -> int:
        """
        Count entities matching filters.

        Args:
            **filters: Column filters

        Returns:
            Count of matching entities
        """
        stmt = select(func.count()).select_from(self.model)

        if filters:
            stmt = stmt.filter_by(**filters)

        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def exists(self, **filters: Any) -> bool:
        """Check if a matching entity exists."""
        return await self.count(**filters) > 0

    async def find_paginated(
        self,
        page: int = 1,
        per_page: int = 50,
        order_by: ColumnElement[Any] | None = None,
        **filters: Any,
    ) -> tuple[list[ModelType], int]:
        """
        Find entities with pagination.

        Args:
            page: Page number (1-indexed)
            per_page: Items per page
            order_by: Ordering clause
            **filters: Column filters

        Returns:
            Tuple of (items, total_count)
        """
        total = await self.count(**filters)
        page = max(page, 1)
        items = await self.find_by(
            order_by=order_by,
            limit=per_page,
            offset=(page - 1) * per_page,
            **filters,
        )
        return items, total
