"""Role repository."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, distinct, func, select

from rbac_core.models.orm.permission import PermissionORM
from rbac_core.models.orm.resource import ResourceORM
from rbac_core.models.orm.resource_permission import ResourcePermissionORM
from rbac_core.models.orm.role import RoleORM
from rbac_core.models.orm.role_permission import RolePermissionORM
from rbac_core.models.orm.user import UserORM
from rbac_core.models.orm.user_role import UserRoleORM
from rbac_core.repositories.base import BaseRepository
from rbac_core.utils.validation import escape_like_wildcards


class RoleRepository(BaseRepository[RoleORM]):
    """Repository for role operations."""

    model = RoleORM

    async def get_by_name(self, name: str, exclude_id: UUID | None = None) -> RoleORM | None:
        """Get role by exact (case-sensitive) name.

        Args:
            name: Role name
            exclude_id: Role to ignore, used when renaming

        Returns:
            RoleORM or None if not found
        """
        stmt = select(RoleORM).where(RoleORM.name == name)
        if exclude_id is not None:
            stmt = stmt.where(RoleORM.id != exclude_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def search_with_counts(
        self,
        now: datetime,
        search: str | None = None,
        priority_min: int | None = None,
        priority_max: int | None = None,
        has_users: bool | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[tuple[RoleORM, int, int, int]], int]:
        """Get roles with active user, permission and resource counts.

        Args:
            now: Instant at which assignments are evaluated
            search: Case-insensitive substring of the role name
            priority_min: Lowest priority value to include
            priority_max: Highest priority value to include
            has_users: Keep only roles with (True) or without (False) active users
            offset: Pagination offset
            limit: Pagination limit

        Returns:
            Tuple of ((role, user_count, permission_count, resource_count)
            rows ordered by priority then name, total matching roles)
        """
        active_users = (
            select(func.count(UserRoleORM.id))
            .where(UserRoleORM.role_id == RoleORM.id, UserRoleORM.active_at(now))
            .correlate(RoleORM)
            .scalar_subquery()
        )
        granted = (
            select(
                RolePermissionORM.role_id,
                ResourcePermissionORM.permission_id,
                ResourcePermissionORM.resource_id,
            )
            .join(
                ResourcePermissionORM,
                ResourcePermissionORM.id == RolePermissionORM.resource_permission_id,
            )
            .subquery()
        )
        permission_count = (
            select(func.count(distinct(granted.c.permission_id)))
            .where(granted.c.role_id == RoleORM.id)
            .correlate(RoleORM)
            .scalar_subquery()
        )
        resource_count = (
            select(func.count(distinct(granted.c.resource_id)))
            .where(granted.c.role_id == RoleORM.id)
            .correlate(RoleORM)
            .scalar_subquery()
        )

        filters = []
        if search:
            filters.append(RoleORM.name.ilike(f"%{escape_like_wildcards(search)}%", escape="\\"))
        if priority_min is not None:
            filters.append(RoleORM.priority >= priority_min)
        if priority_max is not None:
            filters.append(RoleORM.priority <= priority_max)
        if has_users is not None:
            holders = (
                select(UserRoleORM.id)
                .where(UserRoleORM.role_id == RoleORM.id, UserRoleORM.active_at(now))
                .exists()
            )
            filters.append(holders if has_users else ~holders)

        query = (
            select(RoleORM, active_users, permission_count, resource_count)
            .where(*filters)
            .order_by(RoleORM.priority.asc(), RoleORM.name.asc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(query)
        rows = [tuple(row) for row in result.all()]

        count_result = await self.session.execute(
            select(func.count()).select_from(RoleORM).where(*filters)
        )
        return rows, count_result.scalar_one()

    async def count_active_users(self, role_id: UUID, now: datetime) -> int:
        """Count users holding the role at ``now``."""
        result = await self.session.execute(
            select(func.count())
            .select_from(UserRoleORM)
            .where(UserRoleORM.role_id == role_id, UserRoleORM.active_at(now))
        )
        return result.scalar_one()

    async def get_active_members(self, role_id: UUID, now: datetime) -> list[dict[str, Any]]:
        """Get users holding the role at ``now``, most recently assigned first."""
        result = await self.session.execute(
            select(
                UserORM.id.label("user_id"),
                UserORM.name,
                UserORM.email,
                UserRoleORM.assigned_by,
                UserRoleORM.expires_at,
                UserRoleORM.created_at.label("assigned_at"),
            )
            .join(UserRoleORM, UserRoleORM.user_id == UserORM.id)
            .where(UserRoleORM.role_id == role_id, UserRoleORM.active_at(now))
            .order_by(UserRoleORM.created_at.desc())
        )
        return [dict(row._mapping) for row in result.all()]

    async def get_grants(self, role_id: UUID) -> list[tuple[UUID, str, str]]:
        """Get the role's grants.

        Returns:
            (permission_id, permission_name, resource_name) ordered by
            permission name, then resource name
        """
        result = await self.session.execute(
            select(PermissionORM.id, PermissionORM.name, ResourceORM.name)
            .select_from(RolePermissionORM)
            .join(
                ResourcePermissionORM,
                ResourcePermissionORM.id == RolePermissionORM.resource_permission_id,
            )
            .join(PermissionORM, PermissionORM.id == ResourcePermissionORM.permission_id)
            .join(ResourceORM, ResourceORM.id == ResourcePermissionORM.resource_id)
            .where(RolePermissionORM.role_id == role_id)
            .order_by(PermissionORM.name, ResourceORM.name)
        )
        return [tuple(row) for row in result.all()]

    async def delete_expired_assignments(self, role_id: UUID, now: datetime) -> int:
        """Delete the role's lapsed assignments.

        Returns:
            Number of rows deleted
        """
        result = await self.session.execute(
            delete(UserRoleORM).where(
                UserRoleORM.role_id == role_id,
                UserRoleORM.expires_at.is_not(None),
                UserRoleORM.expires_at <= now,
            )
        )
        return result.rowcount
