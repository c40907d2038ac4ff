"""Role ORM model."""

from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from rbac_core.models.orm.base import Base, TimestampMixin, UUIDMixin


class RoleORM(Base, UUIDMixin, TimestampMixin):
    """Role database model. Lower priority means more privilege."""

    __tablename__ = "roles"
    __table_args__ = (CheckConstraint("priority > 0", name="ck_roles_priority_positive"),)

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    created_by: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    updated_by: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
