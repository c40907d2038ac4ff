"""User-Role assignment ORM model."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ColumnElement, DateTime, ForeignKey, UniqueConstraint, Uuid, func, or_
from sqlalchemy.orm import Mapped, mapped_column

from rbac_core.models.orm.base import Base, UUIDMixin


class UserRoleORM(Base, UUIDMixin):
    """Time-bounded assignment of a role to a user.

    An assignment is active while expires_at is NULL or in the future; the
    row itself is never updated when it lapses.
    """

    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role_id", name="uq_user_roles_pair"),)

    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("roles.id"), nullable=False, index=True
    )
    assigned_by: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    @classmethod
    def active_at(cls, now: datetime) -> ColumnElement[bool]:
        """SQL condition selecting assignments active at ``now``."""
        return or_(cls.expires_at.is_(None), cls.expires_at > now)
