"""Resource-permission pair repository."""

from uuid import UUID

from sqlalchemy import delete, func, select

from rbac_core.models.orm.resource_permission import ResourcePermissionORM
from rbac_core.repositories.base import BaseRepository


class ResourcePermissionRepository(BaseRepository[ResourcePermissionORM]):
    """Repository for the pairs that make a permission apply to a resource."""

    model = ResourcePermissionORM

    async def get_for_permission(self, permission_id: UUID) -> list[ResourcePermissionORM]:
        """Get every pair of a permission."""
        result = await self.session.execute(
            select(ResourcePermissionORM).where(ResourcePermissionORM.permission_id == permission_id)
        )
        return list(result.scalars().all())

    async def get_for_permissions(
        self,
        permission_ids: list[UUID],
        resource_ids: list[UUID] | None = None,
    ) -> list[ResourcePermissionORM]:
        """Get the pairs of several permissions, optionally limited to some resources."""
        stmt = select(ResourcePermissionORM).where(
            ResourcePermissionORM.permission_id.in_(permission_ids)
        )
        if resource_ids is not None:
            stmt = stmt.where(ResourcePermissionORM.resource_id.in_(resource_ids))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_for_resource(self, resource_id: UUID) -> int:
        """Count the permissions attached to a resource."""
        result = await self.session.execute(
            select(func.count())
            .select_from(ResourcePermissionORM)
            .where(ResourcePermissionORM.resource_id == resource_id)
        )
        return result.scalar_one()

    async def add_pairs(
        self,
        pairs: list[tuple[UUID, UUID]],
        created_by: UUID | None = None,
    ) -> int:
        """Attach permissions to resources, skipping pairs that already exist.

        Args:
            pairs: (resource_id, permission_id) tuples
            created_by: Acting user

        Returns:
            Number of pairs inserted
        """
        rows = [
            {"resource_id": resource_id, "permission_id": permission_id, "created_by": created_by}
            for resource_id, permission_id in pairs
        ]
        return await self.insert_ignore(rows, ["resource_id", "permission_id"])

    async def delete_by_ids(self, pair_ids: list[UUID]) -> int:
        """Delete pairs by ID. Dependent role grants must be removed first."""
        if not pair_ids:
            return 0
        result = await self.session.execute(
            delete(ResourcePermissionORM).where(ResourcePermissionORM.id.in_(pair_ids))
        )
        return result.rowcount

    async def delete_for_permission(self, permission_id: UUID) -> int:
        """Delete every pair of a permission. Dependent role grants must be removed first."""
        result = await self.session.execute(
            delete(ResourcePermissionORM).where(ResourcePermissionORM.permission_id == permission_id)
        )
        return result.rowcount
