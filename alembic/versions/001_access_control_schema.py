"""Access-control schema: users, roles, permissions, resources and their joins.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union
from uuid import uuid4

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SUPER_ADMIN_ROLE = "super_admin"

# Entity categories of the administrative system and the actions on them
SEED_RESOURCES = ["types", "brands", "designs", "sizes", "roles", "permissions", "resources", "users"]
SEED_PERMISSIONS = ["create", "read", "update", "delete"]


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _user_ref(name: str) -> sa.Column:
    return sa.Column(name, sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False, index=True),
        sa.Column("email_verified", sa.Boolean, nullable=False, server_default=sa.false()),
        *_timestamps(),
    )

    op.create_table(
        "roles",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(100), unique=True, nullable=False, index=True),
        sa.Column("priority", sa.Integer, nullable=False, index=True),
        _user_ref("created_by"),
        _user_ref("updated_by"),
        *_timestamps(),
        sa.CheckConstraint("priority > 0", name="ck_roles_priority_positive"),
    )

    op.create_table(
        "permissions",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(100), unique=True, nullable=False, index=True),
        _user_ref("created_by"),
        _user_ref("updated_by"),
        *_timestamps(),
    )

    op.create_table(
        "resources",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        _user_ref("created_by"),
        _user_ref("updated_by"),
        *_timestamps(),
    )
    op.create_index("uq_resources_name_lower", "resources", [sa.text("lower(name)")], unique=True)

    # No ON DELETE CASCADE: permission deletes cascade in the service, resources are protected
    op.create_table(
        "resource_permissions",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("resource_id", sa.Uuid, sa.ForeignKey("resources.id"), nullable=False, index=True),
        sa.Column("permission_id", sa.Uuid, sa.ForeignKey("permissions.id"), nullable=False, index=True),
        _user_ref("created_by"),
        *_timestamps(),
        sa.UniqueConstraint("resource_id", "permission_id", name="uq_resource_permissions_pair"),
    )

    op.create_table(
        "role_permissions",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("role_id", sa.Uuid, sa.ForeignKey("roles.id"), nullable=False, index=True),
        sa.Column(
            "resource_permission_id",
            sa.Uuid,
            sa.ForeignKey("resource_permissions.id"),
            nullable=False,
            index=True,
        ),
        _user_ref("created_by"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("role_id", "resource_permission_id", name="uq_role_permissions_pair"),
    )

    op.create_table(
        "user_roles",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("user_id", sa.Uuid, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("role_id", sa.Uuid, sa.ForeignKey("roles.id"), nullable=False, index=True),
        _user_ref("assigned_by"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", "role_id", name="uq_user_roles_pair"),
    )

    _seed()


def _seed() -> None:
    """Seed the super administrator role with every action on every resource."""
    roles = sa.table("roles", sa.column("id", sa.Uuid), sa.column("name"), sa.column("priority"))
    resources = sa.table("resources", sa.column("id", sa.Uuid), sa.column("name"))
    permissions = sa.table("permissions", sa.column("id", sa.Uuid), sa.column("name"))
    pairs = sa.table(
        "resource_permissions",
        sa.column("id", sa.Uuid),
        sa.column("resource_id", sa.Uuid),
        sa.column("permission_id", sa.Uuid),
    )
    grants = sa.table(
        "role_permissions",
        sa.column("id", sa.Uuid),
        sa.column("role_id", sa.Uuid),
        sa.column("resource_permission_id", sa.Uuid),
    )

    role_id = uuid4()
    resource_ids = {name: uuid4() for name in SEED_RESOURCES}
    permission_ids = {name: uuid4() for name in SEED_PERMISSIONS}
    pair_rows = [
        {"id": uuid4(), "resource_id": resource_id, "permission_id": permission_id}
        for resource_id in resource_ids.values()
        for permission_id in permission_ids.values()
    ]

    op.bulk_insert(roles, [{"id": role_id, "name": SUPER_ADMIN_ROLE, "priority": 1}])
    op.bulk_insert(resources, [{"id": rid, "name": name} for name, rid in resource_ids.items()])
    op.bulk_insert(permissions, [{"id": pid, "name": name} for name, pid in permission_ids.items()])
    op.bulk_insert(pairs, pair_rows)
    op.bulk_insert(
        grants,
        [{"id": uuid4(), "role_id": role_id, "resource_permission_id": row["id"]} for row in pair_rows],
    )


def downgrade() -> None:
    op.drop_table("user_roles")
    op.drop_table("role_permissions")
    op.drop_table("resource_permissions")
    op.drop_index("uq_resources_name_lower", table_name="resources")
    op.drop_table("resources")
    op.drop_table("permissions")
    op.drop_table("roles")
    op.drop_table("users")
