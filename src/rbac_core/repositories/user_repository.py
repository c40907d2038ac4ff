"""User repository. Users are owned by the identity system and only read here."""

from sqlalchemy import func, select

from rbac_core.models.orm.user import UserORM
from rbac_core.repositories.base import BaseRepository
from rbac_core.utils.validation import escape_like_wildcards


class UserRepository(BaseRepository[UserORM]):
    """Repository for user lookups."""

    model = UserORM

    async def get_by_email(self, email: str) -> UserORM | None:
        """Get user by email (case-insensitive)."""
        result = await self.session.execute(
            select(UserORM).where(func.lower(UserORM.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def search(
        self,
        search: str | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[UserORM], int]:
        """Get users, newest first, optionally filtered by name or email.

        Args:
            search: Case-insensitive substring of the name or email
            offset: Pagination offset
            limit: Pagination limit

        Returns:
            Tuple of (users, total_count)
        """
        filters = []
        if search:
            pattern = f"%{escape_like_wildcards(search)}%"
            filters.append(
                UserORM.name.ilike(pattern, escape="\\") | UserORM.email.ilike(pattern, escape="\\")
            )

        result = await self.session.execute(
            select(UserORM)
            .where(*filters)
            .order_by(UserORM.created_at.desc(), UserORM.id)
            .offset(offset)
            .limit(limit)
        )
        users = list(result.scalars().all())

        count_result = await self.session.execute(
            select(func.count()).select_from(UserORM).where(*filters)
        )
        return users, count_result.scalar_one()
