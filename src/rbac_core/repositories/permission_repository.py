"""Permission repository."""

from typing import Any
from uuid import UUID

from sqlalchemy import func, select

from rbac_core.models.orm.permission import PermissionORM
from rbac_core.models.orm.resource import ResourceORM
from rbac_core.models.orm.resource_permission import ResourcePermissionORM
from rbac_core.models.orm.role import RoleORM
from rbac_core.models.orm.role_permission import RolePermissionORM
from rbac_core.repositories.base import BaseRepository
from rbac_core.utils.validation import escape_like_wildcards


class PermissionRepository(BaseRepository[PermissionORM]):
    """Repository for permission operations."""

    model = PermissionORM

    async def get_by_name(self, name: str, exclude_id: UUID | None = None) -> PermissionORM | None:
        """Get permission by exact (case-sensitive) name.

        Args:
            name: Permission name
            exclude_id: Permission to ignore, used when renaming

        Returns:
            PermissionORM or None if not found
        """
        stmt = select(PermissionORM).where(PermissionORM.name == name)
        if exclude_id is not None:
            stmt = stmt.where(PermissionORM.id != exclude_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def search(
        self,
        search: str | None = None,
        resource_id: UUID | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[PermissionORM], int]:
        """Get permissions ordered by name with optional filters.

        Args:
            search: Case-insensitive substring of the permission name
            resource_id: Keep only permissions that apply to this resource
            offset: Pagination offset
            limit: Pagination limit

        Returns:
            Tuple of (permissions, total_count)
        """
        filters = []
        if search:
            filters.append(
                PermissionORM.name.ilike(f"%{escape_like_wildcards(search)}%", escape="\\")
            )
        if resource_id is not None:
            filters.append(
                select(ResourcePermissionORM.id)
                .where(
                    ResourcePermissionORM.permission_id == PermissionORM.id,
                    ResourcePermissionORM.resource_id == resource_id,
                )
                .exists()
            )

        result = await self.session.execute(
            select(PermissionORM)
            .where(*filters)
            .order_by(PermissionORM.name)
            .offset(offset)
            .limit(limit)
        )
        permissions = list(result.scalars().all())

        count_result = await self.session.execute(
            select(func.count()).select_from(PermissionORM).where(*filters)
        )
        return permissions, count_result.scalar_one()

    async def get_resources_for(self, permission_ids: list[UUID]) -> dict[UUID, list[tuple[UUID, str]]]:
        """Get the resources attached to the given permissions.

        Returns:
            Mapping of permission ID to (resource_id, resource_name) pairs
            ordered by resource name
        """
        if not permission_ids:
            return {}
        result = await self.session.execute(
            select(ResourcePermissionORM.permission_id, ResourceORM.id, ResourceORM.name)
            .join(ResourceORM, ResourceORM.id == ResourcePermissionORM.resource_id)
            .where(ResourcePermissionORM.permission_id.in_(permission_ids))
            .order_by(ResourceORM.name)
        )
        grouped: dict[UUID, list[tuple[UUID, str]]] = {}
        for permission_id, resource_id, resource_name in result.all():
            grouped.setdefault(permission_id, []).append((resource_id, resource_name))
        return grouped

    async def get_roles_for(self, permission_ids: list[UUID]) -> dict[UUID, list[tuple[UUID, str, int]]]:
        """Get the roles granted the given permissions on any resource.

        Returns:
            Mapping of permission ID to distinct (role_id, role_name, priority)
            ordered by priority, then name
        """
        if not permission_ids:
            return {}
        result = await self.session.execute(
            select(ResourcePermissionORM.permission_id, RoleORM.id, RoleORM.name, RoleORM.priority)
            .distinct()
            .select_from(RolePermissionORM)
            .join(
                ResourcePermissionORM,
                ResourcePermissionORM.id == RolePermissionORM.resource_permission_id,
            )
            .join(RoleORM, RoleORM.id == RolePermissionORM.role_id)
            .where(ResourcePermissionORM.permission_id.in_(permission_ids))
            .order_by(RoleORM.priority, RoleORM.name)
        )
        grouped: dict[UUID, list[tuple[UUID, str, int]]] = {}
        for permission_id, role_id, role_name, priority in result.all():
            grouped.setdefault(permission_id, []).append((role_id, role_name, priority))
        return grouped

    async def get_resource_links(self, permission_id: UUID) -> list[dict[str, Any]]:
        """Get the pairs linking a permission to its resources, by resource name."""
        result = await self.session.execute(
            select(
                ResourcePermissionORM.id.label("resource_permission_id"),
                ResourceORM.id.label("resource_id"),
                ResourceORM.name.label("resource_name"),
                ResourcePermissionORM.created_at.label("assigned_at"),
            )
            .join(ResourceORM, ResourceORM.id == ResourcePermissionORM.resource_id)
            .where(ResourcePermissionORM.permission_id == permission_id)
            .order_by(ResourceORM.name)
        )
        return [dict(row._mapping) for row in result.all()]
