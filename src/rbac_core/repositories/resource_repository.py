"""Resource repository."""

from uuid import UUID

from sqlalchemy import func, select

from rbac_core.models.orm.resource import ResourceORM
from rbac_core.models.orm.resource_permission import ResourcePermissionORM
from rbac_core.repositories.base import BaseRepository


class ResourceRepository(BaseRepository[ResourceORM]):
    """Repository for resource operations."""

    model = ResourceORM

    async def get_by_name(self, name: str, exclude_id: UUID | None = None) -> ResourceORM | None:
        """Get resource by name, ignoring case.

        Args:
            name: Resource name
            exclude_id: Resource to ignore, used when renaming

        Returns:
            ResourceORM or None if not found
        """
        stmt = select(ResourceORM).where(func.lower(ResourceORM.name) == name.lower())
        if exclude_id is not None:
            stmt = stmt.where(ResourceORM.id != exclude_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_with_permission_counts(self) -> list[tuple[ResourceORM, int]]:
        """Get all resources with the number of permissions attached to each.

        Returns:
            (resource, permission_count) pairs ordered by name
        """
        permission_count = func.count(ResourcePermissionORM.id)
        result = await self.session.execute(
            select(ResourceORM, permission_count)
            .outerjoin(ResourcePermissionORM, ResourcePermissionORM.resource_id == ResourceORM.id)
            .group_by(ResourceORM.id)
            .order_by(ResourceORM.name)
        )
        return [(resource, count) for resource, count in result.all()]
