"""User listing tests."""

from datetime import timedelta

import pytest

from rbac_core.exceptions import ValidationError
from rbac_core.services.user_service import UserService
from rbac_core.utils.clock import utc_now

NO_ROLE_PRIORITY = 999


@pytest.fixture
def service(session) -> UserService:
    return UserService(session)


class TestListUsersWithRoles:
    """Users with the roles they hold right now."""

    async def test_newest_first_with_active_roles(self, service, seed) -> None:
        now = utc_now()
        older = await seed.user(email="older@example.com", created_at=now - timedelta(days=2))
        newer = await seed.user(email="newer@example.com", created_at=now - timedelta(days=1))
        await seed.assign(older, await seed.role("viewer", 80))
        await seed.assign(older, await seed.role("editor", 50))
        await seed.assign(older, await seed.role("auditor", 20), expires_at=now - timedelta(hours=1))

        listing = await service.list_users_with_roles()

        assert [user.id for user in listing.items] == [newer.id, older.id]
        assert listing.items[0].roles == []
        assert listing.items[0].effective_priority == NO_ROLE_PRIORITY
        assert [role.role_name for role in listing.items[1].roles] == ["editor", "viewer"]
        assert listing.items[1].effective_priority == 50
        assert listing.pagination.total == 2

    async def test_search_matches_name_or_email(self, service, seed) -> None:
        await seed.user(email="ada@example.com", name="Ada Lovelace")
        await seed.user(email="grace@navy.example", name="Grace Hopper")
        await seed.user(email="linus@example.com", name="Linus")

        by_name = await service.list_users_with_roles(search="hopper")
        by_email = await service.list_users_with_roles(search="EXAMPLE.COM")

        assert [user.email for user in by_name.items] == ["grace@navy.example"]
        assert by_email.pagination.total == 2

    async def test_pages(self, service, seed) -> None:
        now = utc_now()
        for days in range(3):
            await seed.user(email=f"user{days}@example.com", created_at=now - timedelta(days=days))

        listing = await service.list_users_with_roles(page=2, page_size=2)

        assert [user.email for user in listing.items] == ["user2@example.com"]
        assert listing.pagination.total_pages == 2

    async def test_empty_store(self, service) -> None:
        listing = await service.list_users_with_roles()

        assert listing.items == []
        assert listing.pagination.total_pages == 0

    @pytest.mark.parametrize("kwargs", [{"page": -1}, {"page_size": True}, {"search": 42}])
    async def test_invalid_arguments(self, service, kwargs) -> None:
        with pytest.raises(ValidationError):
            await service.list_users_with_roles(**kwargs)
