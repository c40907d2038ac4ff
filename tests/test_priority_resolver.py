"""Priority resolver tests."""

from datetime import timedelta
from uuid import uuid4

import pytest

from rbac_core.exceptions import ValidationError
from rbac_core.services.priority_resolver import PriorityResolver
from rbac_core.utils.clock import utc_now

NO_ROLE_PRIORITY = 999


class TestEffectivePriority:
    """Minimum priority across active assignments."""

    async def test_user_without_roles_gets_sentinel(self, session, seed) -> None:
        user = await seed.user()

        assert await PriorityResolver(session).effective_priority(user.id) == NO_ROLE_PRIORITY

    async def test_unknown_and_missing_user_get_sentinel(self, session) -> None:
        resolver = PriorityResolver(session)

        assert await resolver.effective_priority(uuid4()) == NO_ROLE_PRIORITY
        assert await resolver.effective_priority(None) == NO_ROLE_PRIORITY

    async def test_lowest_active_priority_wins(self, session, seed) -> None:
        user = await seed.user()
        await seed.assign(user, await seed.role("viewer", 80))
        await seed.assign(user, await seed.role("editor", 50))
        await seed.assign(user, await seed.role("manager", 30))

        assert await PriorityResolver(session).effective_priority(user.id) == 30

    async def test_expired_assignment_is_ignored(self, session, seed) -> None:
        """A lapsed row stays in storage but grants nothing."""
        user = await seed.user()
        contributor = await seed.role("contributor", 60)
        await seed.assign(user, contributor, expires_at=utc_now() - timedelta(hours=1))

        assert await PriorityResolver(session).effective_priority(user.id) == NO_ROLE_PRIORITY

    async def test_expired_higher_role_does_not_mask_active_one(self, session, seed) -> None:
        user = await seed.user()
        await seed.assign(user, await seed.role("admin", 5), expires_at=utc_now() - timedelta(minutes=1))
        await seed.assign(user, await seed.role("editor", 50))

        assert await PriorityResolver(session).effective_priority(user.id) == 50

    async def test_future_expiry_is_active(self, session, seed) -> None:
        user = await seed.user()
        await seed.assign(user, await seed.role("temp", 20), expires_at=utc_now() + timedelta(days=1))

        assert await PriorityResolver(session).effective_priority(user.id) == 20


class TestActiveRoles:
    """The user's current roles."""

    async def test_ordered_by_priority_then_name(self, session, seed) -> None:
        user = await seed.user()
        await seed.assign(user, await seed.role("zeta", 50))
        await seed.assign(user, await seed.role("alpha", 50))
        await seed.assign(user, await seed.role("boss", 10))
        await seed.assign(user, await seed.role("gone", 1), expires_at=utc_now() - timedelta(seconds=5))

        roles = await PriorityResolver(session).active_roles(user.id)

        assert [role.role_name for role in roles] == ["boss", "alpha", "zeta"]
        assert roles[0].priority == 10

    async def test_string_user_id_is_accepted(self, session, seed) -> None:
        user = await seed.user()
        await seed.assign(user, await seed.role("editor", 50))

        roles = await PriorityResolver(session).active_roles(str(user.id))

        assert [role.role_name for role in roles] == ["editor"]


class TestIdentifierCoercion:
    """User IDs given as strings."""

    async def test_string_user_id_resolves_priority(self, session, seed) -> None:
        user = await seed.user()
        await seed.assign(user, await seed.role("manager", 30))

        assert await PriorityResolver(session).effective_priority(str(user.id)) == 30

    async def test_malformed_user_id_is_rejected(self, session) -> None:
        resolver = PriorityResolver(session)

        with pytest.raises(ValidationError):
            await resolver.effective_priority("user-1")
        with pytest.raises(ValidationError):
            await resolver.active_roles(None)
