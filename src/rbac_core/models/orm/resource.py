"""Resource ORM model."""

from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from rbac_core.models.orm.base import Base, TimestampMixin, UUIDMixin


class ResourceORM(Base, UUIDMixin, TimestampMixin):
    """Resource database model (a protectable entity category such as "brands")."""

    __tablename__ = "resources"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_by: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    updated_by: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )


# Resource names are unique regardless of case
Index("uq_resources_name_lower", func.lower(ResourceORM.name), unique=True)
