"""Assignment service tests."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from rbac_core.exceptions import (
    DuplicateAssignmentError,
    InsufficientPrivilegeError,
    RoleNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from rbac_core.models.orm import UserRoleORM
from rbac_core.services.assignment_service import AssignmentService, assignment_tags
from rbac_core.services.priority_resolver import PriorityResolver
from rbac_core.utils.clock import utc_now


@pytest.fixture
def service(session) -> AssignmentService:
    return AssignmentService(session)


class TestAssign:
    """Assigning roles to users."""

    async def test_trusted_assignment(self, service, seed) -> None:
        user = await seed.user()
        role = await seed.role("editor", 50)

        assignment = await service.assign(user.id, role.id)

        assert assignment.user_id == user.id
        assert assignment.role_id == role.id
        assert assignment.assigned_by is None
        assert assignment.expires_at is None
        assert await seed.count(UserRoleORM, UserRoleORM.user_id == user.id) == 1

    async def test_outranking_assigner(self, service, seed) -> None:
        manager = await seed.actor(30)
        user = await seed.user()
        role = await seed.role("editor", 50)

        assignment = await service.assign(user.id, role.id, assigned_by=manager.id)

        assert assignment.assigned_by == manager.id

    async def test_equal_priority_assigner_is_rejected(self, service, seed) -> None:
        """Actor at 40 cannot hand out a role at 40."""
        actor = await seed.actor(40)
        user = await seed.user()
        moderator = await seed.role("moderator", 40)

        with pytest.raises(InsufficientPrivilegeError) as exc_info:
            await service.assign(user.id, moderator.id, assigned_by=actor.id)

        assert exc_info.value.actor_priority == 40
        assert exc_info.value.target_priority == 40
        assert await seed.count(UserRoleORM, UserRoleORM.user_id == user.id) == 0

    async def test_role_less_assigner_is_rejected(self, service, seed) -> None:
        nobody = await seed.user()
        user = await seed.user()
        role = await seed.role("viewer", 998)

        with pytest.raises(InsufficientPrivilegeError):
            await service.assign(user.id, role.id, assigned_by=nobody.id)

    async def test_unknown_user(self, service, seed) -> None:
        role = await seed.role("editor", 50)

        with pytest.raises(UserNotFoundError):
            await service.assign(uuid4(), role.id)

    async def test_unknown_role(self, service, seed) -> None:
        user = await seed.user()

        with pytest.raises(RoleNotFoundError):
            await service.assign(user.id, uuid4())

    async def test_user_is_checked_before_role(self, service) -> None:
        with pytest.raises(UserNotFoundError):
            await service.assign(uuid4(), uuid4())

    async def test_duplicate_is_checked_before_privilege(self, service, seed) -> None:
        actor = await seed.actor(60)
        user = await seed.user()
        role = await seed.role("editor", 50)
        await seed.assign(user, role)

        with pytest.raises(DuplicateAssignmentError):
            await service.assign(user.id, role.id, assigned_by=actor.id)

    async def test_active_duplicate_is_rejected(self, service, seed) -> None:
        user = await seed.user()
        role = await seed.role("editor", 50)
        await seed.assign(user, role, expires_at=utc_now() + timedelta(days=3))

        with pytest.raises(DuplicateAssignmentError) as exc_info:
            await service.assign(user.id, role.id)

        assert exc_info.value.reason == "duplicate"

    async def test_expired_assignment_is_replaced(self, service, seed, session) -> None:
        user = await seed.user()
        role = await seed.role("contributor", 60)
        old = await seed.assign(user, role, expires_at=utc_now() - timedelta(hours=1))

        assignment = await service.assign(user.id, role.id)

        assert assignment.id != old.id
        assert assignment.expires_at is None
        assert await seed.count(UserRoleORM, UserRoleORM.user_id == user.id) == 1
        assert await PriorityResolver(session).effective_priority(user.id) == 60

    async def test_naive_expiry_is_read_as_utc(self, service, seed) -> None:
        user = await seed.user()
        role = await seed.role("temp", 70)
        naive = datetime(2099, 1, 1, 12, 0, 0)

        assignment = await service.assign(user.id, role.id, expires_at=naive)

        assert assignment.expires_at.replace(tzinfo=timezone.utc) == naive.replace(tzinfo=timezone.utc)

    async def test_past_expiry_is_stored_but_inert(self, service, seed, session) -> None:
        user = await seed.user()
        role = await seed.role("temp", 70)

        await service.assign(user.id, role.id, expires_at=utc_now() - timedelta(seconds=1))

        assert await seed.count(UserRoleORM, UserRoleORM.user_id == user.id) == 1
        assert await PriorityResolver(session).effective_priority(user.id) == 999

    async def test_concurrent_insert_maps_to_duplicate(self, service, seed, monkeypatch) -> None:
        """The unique constraint arbitrates when the pre-check misses a row."""
        user = await seed.user()
        role = await seed.role("editor", 50)
        await seed.assign(user, role)

        async def no_pair(user_id, role_id):
            return None

        monkeypatch.setattr(service.user_role_repo, "get_pair", no_pair)

        with pytest.raises(DuplicateAssignmentError):
            await service.assign(user.id, role.id)

        assert await seed.count(UserRoleORM, UserRoleORM.user_id == user.id) == 1

    @pytest.mark.parametrize("bad_id", ["", "not-a-uuid", None])
    async def test_malformed_ids(self, service, bad_id) -> None:
        with pytest.raises(ValidationError):
            await service.assign(bad_id, uuid4())


class TestRevoke:
    """Removing roles from users."""

    async def test_removes_active_assignment(self, service, seed) -> None:
        user = await seed.user()
        role = await seed.role("editor", 50)
        await seed.assign(user, role)

        assert await service.revoke(user.id, role.id) == 1
        assert await seed.count(UserRoleORM, UserRoleORM.user_id == user.id) == 0

    async def test_removes_expired_assignment(self, service, seed) -> None:
        user = await seed.user()
        role = await seed.role("editor", 50)
        await seed.assign(user, role, expires_at=utc_now() - timedelta(days=2))

        assert await service.revoke(user.id, role.id) == 1

    async def test_nothing_to_remove(self, service, seed) -> None:
        user = await seed.user()
        role = await seed.role("editor", 50)

        assert await service.revoke(user.id, role.id) == 0


def test_assignment_tags() -> None:
    user_id, role_id = uuid4(), uuid4()

    assert assignment_tags(user_id, role_id) == ["users", f"user:{user_id}", "roles", f"role:{role_id}"]
