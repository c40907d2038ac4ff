"""User-role assignment repository."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select

from rbac_core.models.orm.role import RoleORM
from rbac_core.models.orm.user_role import UserRoleORM
from rbac_core.repositories.base import BaseRepository


class UserRoleRepository(BaseRepository[UserRoleORM]):
    """Repository for user-role assignments."""

    model = UserRoleORM

    async def get_pair(self, user_id: UUID, role_id: UUID) -> UserRoleORM | None:
        """Get the stored assignment of a role to a user, active or not."""
        result = await self.session.execute(
            select(UserRoleORM).where(UserRoleORM.user_id == user_id, UserRoleORM.role_id == role_id)
        )
        return result.scalar_one_or_none()

    async def delete_pair(self, user_id: UUID, role_id: UUID) -> int:
        """Delete the assignment of a role to a user.

        Returns:
            Number of rows deleted
        """
        result = await self.session.execute(
            delete(UserRoleORM).where(UserRoleORM.user_id == user_id, UserRoleORM.role_id == role_id)
        )
        return result.rowcount

    async def get_min_active_priority(self, user_id: UUID, now: datetime) -> int | None:
        """Get the lowest priority value among the user's active roles.

        Returns:
            Priority or None when the user holds no active role
        """
        result = await self.session.execute(
            select(func.min(RoleORM.priority))
            .join(UserRoleORM, UserRoleORM.role_id == RoleORM.id)
            .where(UserRoleORM.user_id == user_id, UserRoleORM.active_at(now))
        )
        return result.scalar_one_or_none()

    async def get_active_roles(self, user_id: UUID, now: datetime) -> list[dict[str, Any]]:
        """Get the user's active roles ordered by priority, then name."""
        result = await self.session.execute(
            select(
                RoleORM.id.label("role_id"),
                RoleORM.name.label("role_name"),
                RoleORM.priority,
                UserRoleORM.assigned_by,
                UserRoleORM.expires_at,
                UserRoleORM.created_at.label("assigned_at"),
            )
            .join(UserRoleORM, UserRoleORM.role_id == RoleORM.id)
            .where(UserRoleORM.user_id == user_id, UserRoleORM.active_at(now))
            .order_by(RoleORM.priority.asc(), RoleORM.name.asc())
        )
        return [dict(row._mapping) for row in result.all()]

    async def get_active_roles_for_users(
        self, user_ids: list[UUID], now: datetime
    ) -> dict[UUID, list[dict[str, Any]]]:
        """Get the active roles of several users at once.

        Returns:
            Mapping of user ID to role rows ordered by priority, then name.
            Users without an active role are absent.
        """
        if not user_ids:
            return {}
        result = await self.session.execute(
            select(
                UserRoleORM.user_id,
                RoleORM.id.label("role_id"),
                RoleORM.name.label("role_name"),
                RoleORM.priority,
                UserRoleORM.assigned_by,
                UserRoleORM.expires_at,
                UserRoleORM.created_at.label("assigned_at"),
            )
            .join(UserRoleORM, UserRoleORM.role_id == RoleORM.id)
            .where(UserRoleORM.user_id.in_(user_ids), UserRoleORM.active_at(now))
            .order_by(RoleORM.priority.asc(), RoleORM.name.asc())
        )
        grouped: dict[UUID, list[dict[str, Any]]] = {}
        for row in result.all():
            role = dict(row._mapping)
            grouped.setdefault(role.pop("user_id"), []).append(role)
        return grouped
