"""Role grant repository and the permission resolution queries built on it."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, delete, func, select

from rbac_core.models.orm.permission import PermissionORM
from rbac_core.models.orm.resource import ResourceORM
from rbac_core.models.orm.resource_permission import ResourcePermissionORM
from rbac_core.models.orm.role_permission import RolePermissionORM
from rbac_core.models.orm.user_role import UserRoleORM
from rbac_core.repositories.base import BaseRepository


class RolePermissionRepository(BaseRepository[RolePermissionORM]):
    """Repository for role grants (role to resource-permission pair)."""

    model = RolePermissionORM

    def _user_grants(self, user_id: UUID, now: datetime) -> Select:
        """Role -> RolePermission -> ResourcePermission -> Permission/Resource for active roles."""
        return (
            select(PermissionORM.name, ResourceORM.name)
            .select_from(UserRoleORM)
            .join(RolePermissionORM, RolePermissionORM.role_id == UserRoleORM.role_id)
            .join(
                ResourcePermissionORM,
                ResourcePermissionORM.id == RolePermissionORM.resource_permission_id,
            )
            .join(PermissionORM, PermissionORM.id == ResourcePermissionORM.permission_id)
            .join(ResourceORM, ResourceORM.id == ResourcePermissionORM.resource_id)
            .where(UserRoleORM.user_id == user_id, UserRoleORM.active_at(now))
        )

    async def get_granted_actions(
        self,
        user_id: UUID,
        actions: list[str],
        resource_name: str,
        now: datetime,
    ) -> set[str]:
        """Find which of ``actions`` the user holds on a resource.

        Action names match exactly, resource names ignore case.

        Returns:
            Subset of ``actions`` that are granted
        """
        result = await self.session.execute(
            self._user_grants(user_id, now)
            .where(
                PermissionORM.name.in_(actions),
                func.lower(ResourceORM.name) == resource_name.lower(),
            )
            .distinct()
        )
        return {action for action, _ in result.all()}

    async def get_user_grants(self, user_id: UUID, now: datetime) -> set[tuple[str, str]]:
        """Get every (action, resource) pair the user holds through active roles."""
        result = await self.session.execute(self._user_grants(user_id, now).distinct())
        return {(action, resource) for action, resource in result.all()}

    async def get_pair_ids_for_role(self, role_id: UUID) -> set[UUID]:
        """Get the resource-permission pairs already granted to a role."""
        result = await self.session.execute(
            select(RolePermissionORM.resource_permission_id).where(RolePermissionORM.role_id == role_id)
        )
        return set(result.scalars().all())

    async def grant(self, role_id: UUID, pair_ids: list[UUID], created_by: UUID | None = None) -> int:
        """Grant pairs to a role, skipping grants that already exist.

        Returns:
            Number of grants inserted
        """
        rows = [
            {"role_id": role_id, "resource_permission_id": pair_id, "created_by": created_by}
            for pair_id in pair_ids
        ]
        return await self.insert_ignore(rows, ["role_id", "resource_permission_id"])

    async def delete_for_pairs(self, pair_ids: list[UUID]) -> int:
        """Delete every role grant of the given pairs."""
        if not pair_ids:
            return 0
        result = await self.session.execute(
            delete(RolePermissionORM).where(RolePermissionORM.resource_permission_id.in_(pair_ids))
        )
        return result.rowcount

    async def delete_for_permission(self, permission_id: UUID) -> int:
        """Delete every role grant that depends on a pair of the permission."""
        pair_ids = select(ResourcePermissionORM.id).where(
            ResourcePermissionORM.permission_id == permission_id
        )
        result = await self.session.execute(
            delete(RolePermissionORM).where(RolePermissionORM.resource_permission_id.in_(pair_ids))
        )
        return result.rowcount

    async def delete_for_role(self, role_id: UUID) -> int:
        """Delete every grant of a role."""
        result = await self.session.execute(
            delete(RolePermissionORM).where(RolePermissionORM.role_id == role_id)
        )
        return result.rowcount
