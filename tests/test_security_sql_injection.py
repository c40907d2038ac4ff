"""SQL injection prevention tests.

Names and identifiers reach the store only as bound parameters. These tests
feed classic payloads through every input vector of the access-control
operations and check they are stored or compared literally, or rejected
before any query runs.

Security Model:
1. PRIMARY: SQLAlchemy parameterizes ALL queries (no raw SQL)
2. SECONDARY: Identifiers are parsed as UUIDs before any store I/O
3. TERTIARY: Permission checks fail closed on unknown names
"""

from uuid import uuid4

import pytest

from rbac_core.exceptions import ValidationError
from rbac_core.models.orm import ResourceORM, RoleORM, UserORM
from rbac_core.services.permission_resolver import PermissionResolver
from rbac_core.services.rbac_service import RbacService
from rbac_core.utils.validation import escape_like_wildcards, require_id

# SQL Injection payloads to test
SQL_INJECTION_PAYLOADS = [
    # Classic SQL injection
    "'; DROP TABLE users; --",
    "1' OR '1'='1",
    "1; DELETE FROM roles WHERE '1'='1",
    "' UNION SELECT * FROM users --",
    "1' AND 1=1 --",
    # Boolean-based blind injection
    "1' AND (SELECT COUNT(*) FROM user_roles) > 0 --",
    # Time-based blind injection
    "1'; SELECT pg_sleep(5) --",
    "1' AND SLEEP(5) --",
    # UNION-based injection
    "' UNION SELECT NULL, NULL, NULL --",
    # Stacked queries
    "1'; INSERT INTO user_roles (user_id, role_id) VALUES ('x', 'y'); --",
    "1'; UPDATE roles SET priority = 1; --",
    # Encoding variations
    "%27%20OR%201%3D1%20--",
    # Unicode bypass attempts
    "ʼ OR 1=1 --",
    # Comment variations
    "1'/**/OR/**/1=1--",
    "1'--",
    "1'#",
    # PostgreSQL specific
    "$$; DROP TABLE users; $$",
    # Scientific notation
    "1e1' OR '1'='1",
]


class TestNamesAreStoredLiterally:
    """Payloads used as entity names are data, never SQL."""

    @pytest.mark.parametrize("payload", SQL_INJECTION_PAYLOADS)
    async def test_role_name(self, session, seed, payload: str) -> None:
        await seed.role("editor", 50)

        result = await RbacService(session).create_role(payload, 60)

        assert result.success is True
        assert result.data.name == payload.strip()
        assert await seed.count(RoleORM) == 2
        assert await seed.count(RoleORM, RoleORM.priority == 50) == 1

    @pytest.mark.parametrize("payload", SQL_INJECTION_PAYLOADS)
    async def test_resource_name(self, session, seed, payload: str) -> None:
        await seed.user()

        result = await RbacService(session).create_resource(payload)

        assert result.success is True
        assert await seed.count(ResourceORM, ResourceORM.name == payload.strip()) == 1
        assert await seed.count(UserORM) == 1


class TestChecksFailClosed:
    """Payloads in permission checks match nothing."""

    @pytest.mark.parametrize("payload", SQL_INJECTION_PAYLOADS)
    async def test_action_and_resource(self, session, seed, payload: str) -> None:
        user = await seed.user()
        role = await seed.role("editor", 50)
        await seed.grant_action(role, "read", "brands")
        await seed.assign(user, role)
        resolver = PermissionResolver(session)

        assert await resolver.has_permission(user.id, payload, "brands") is False
        assert await resolver.has_permission(user.id, "read", payload) is False
        assert await resolver.has_permissions(user.id, [payload], None) is False
        assert await resolver.has_role(user.id, [payload]) is False

    @pytest.mark.parametrize("payload", SQL_INJECTION_PAYLOADS)
    async def test_legacy_name(self, session, seed, payload: str) -> None:
        user = await seed.user()

        assert await PermissionResolver(session).has_legacy_permission(user.id, f"brands.{payload}") is False


class TestIdentifiersAreParsed:
    """Identifiers must be UUIDs before they reach a query."""

    @pytest.mark.parametrize("payload", SQL_INJECTION_PAYLOADS)
    def test_require_id_rejects_payload(self, payload: str) -> None:
        with pytest.raises(ValidationError):
            require_id(payload, "role_id")

    @pytest.mark.parametrize("payload", SQL_INJECTION_PAYLOADS)
    async def test_mutation_rejects_payload_id(self, session, payload: str) -> None:
        result = await RbacService(session).assign_role_to_user(payload, uuid4())

        assert result.reason == "validation"

    @pytest.mark.parametrize("payload", SQL_INJECTION_PAYLOADS)
    async def test_check_rejects_payload_actor_id(self, session, payload: str) -> None:
        with pytest.raises(ValidationError):
            await PermissionResolver(session).has_permission(payload, "read", "brands")


class TestSearchTermsAreBound:
    """Payloads in listing searches are substrings, never SQL."""

    @pytest.mark.parametrize("payload", SQL_INJECTION_PAYLOADS)
    async def test_role_and_user_search(self, session, seed, payload: str) -> None:
        await seed.role("editor", 50)
        await seed.user(email="member@example.com")
        rbac = RbacService(session)

        assert (await rbac.list_roles(search=payload)).items == []
        assert (await rbac.list_users_with_roles(search=payload)).items == []
        assert await seed.count(RoleORM) == 1

    async def test_stored_payload_is_found_literally(self, session, seed) -> None:
        await seed.role("1' OR '1'='1", 50)
        await seed.role("editor", 60)

        listing = await RbacService(session).list_roles(search="' OR '")

        assert [role.name for role in listing.items] == ["1' OR '1'='1"]

    @pytest.mark.parametrize(
        ("raw", "escaped"),
        [("50%", "50\\%"), ("a_b", "a\\_b"), ("c:\\d", "c:\\\\d"), ("plain", "plain")],
    )
    def test_like_wildcards_are_escaped(self, raw: str, escaped: str) -> None:
        assert escape_like_wildcards(raw) == escaped
