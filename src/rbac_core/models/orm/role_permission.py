"""Role-Permission junction table ORM model."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from rbac_core.models.orm.base import Base, UUIDMixin


class RolePermissionORM(Base, UUIDMixin):
    """Grants a resource-scoped permission to a role."""

    __tablename__ = "role_permissions"
    __table_args__ = (
        UniqueConstraint("role_id", "resource_permission_id", name="uq_role_permissions_pair"),
    )

    role_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("roles.id"), nullable=False, index=True
    )
    resource_permission_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("resource_permissions.id"), nullable=False, index=True
    )
    created_by: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
