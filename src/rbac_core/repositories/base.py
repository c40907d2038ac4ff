"""Base repository with common database operations."""

from typing import Any, Generic, TypeVar
from uuid import UUID, uuid4

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_core.models.orm.base import Base

T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """Base repository with common CRUD operations.

    Repositories only flush. Committing or rolling back the unit of work is
    the calling service's job.
    """

    model: type[T]

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session."""
        self.session = session

    async def get(self, id: UUID) -> T | None:
        """Get a record by ID.

        Args:
            id: Record UUID

        Returns:
            Record or None if not found
        """
        result = await self.session.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def get_many(self, ids: list[UUID]) -> list[T]:
        """Get all records whose ID is in ``ids``. Unknown IDs are skipped."""
        if not ids:
            return []
        result = await self.session.execute(select(self.model).where(self.model.id.in_(ids)))
        return list(result.scalars().all())

    async def exists(self, id: UUID) -> bool:
        """Check whether a record with this ID exists."""
        result = await self.session.execute(
            select(func.count()).select_from(self.model).where(self.model.id == id)
        )
        return result.scalar_one() > 0

    async def count(self) -> int:
        """Count total records."""
        result = await self.session.execute(select(func.count()).select_from(self.model))
        return result.scalar_one()

    async def create(self, **kwargs: Any) -> T:
        """Create a new record.

        Args:
            **kwargs: Field values

        Returns:
            Created record with server defaults loaded
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def update(self, instance: T, **kwargs: Any) -> T:
        """Apply field changes to a loaded record.

        Args:
            instance: Record to modify
            **kwargs: Fields to update

        Returns:
            Updated record
        """
        for key, value in kwargs.items():
            setattr(instance, key, value)

        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def delete(self, id: UUID) -> int:
        """Delete a record by ID.

        Returns:
            Number of rows deleted (0 or 1)
        """
        result = await self.session.execute(delete(self.model).where(self.model.id == id))
        return result.rowcount

    async def insert_ignore(self, rows: list[dict[str, Any]], conflict_columns: list[str]) -> int:
        """Insert rows, silently skipping any that hit a unique conflict.

        Args:
            rows: Column values per row; an ``id`` is generated when missing
            conflict_columns: Columns of the unique constraint that arbitrates

        Returns:
            Number of rows actually inserted
        """
        if not rows:
            return 0

        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = postgresql.insert(self.model)
        elif dialect == "sqlite":
            stmt = sqlite.insert(self.model)
        else:
            raise NotImplementedError(f"insert_ignore is not supported on {dialect}")

        values = [{"id": uuid4(), **row} for row in rows]
        stmt = stmt.values(values).on_conflict_do_nothing(index_elements=conflict_columns)
        result = await self.session.execute(stmt)
        return result.rowcount
