"""Resource-Permission junction table ORM model."""

from uuid import UUID

from sqlalchemy import ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from rbac_core.models.orm.base import Base, TimestampMixin, UUIDMixin


class ResourcePermissionORM(Base, UUIDMixin, TimestampMixin):
    """Permission X applies to resource Y.

    Foreign keys deliberately carry no ON DELETE CASCADE: resources are
    protected and permission deletion cascades explicitly in the service.
    """

    __tablename__ = "resource_permissions"
    __table_args__ = (
        UniqueConstraint("resource_id", "permission_id", name="uq_resource_permissions_pair"),
    )

    resource_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("resources.id"), nullable=False, index=True
    )
    permission_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("permissions.id"), nullable=False, index=True
    )
    created_by: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
