"""FastAPI request gate tests."""

from collections.abc import AsyncGenerator
from uuid import UUID, uuid4

import httpx
import pytest
from fastapi import Depends, FastAPI
from jose import jwt
from sqlalchemy.exc import OperationalError

from rbac_core.config import get_settings
from rbac_core.database import get_db
from rbac_core.dependencies import get_rbac_service
from rbac_core.security.auth import require_permission
from rbac_core.services.cache_service import get_cache_service
from rbac_core.services.permission_resolver import PermissionResolver
from rbac_core.services.rbac_service import RbacService


def make_token(subject: str, secret: str | None = None) -> str:
    settings = get_settings()
    return jwt.encode(
        {"sub": subject},
        secret or settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def auth_header(subject: str, secret: str | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(subject, secret)}"}


class RecordingSink:
    def __init__(self) -> None:
        self.tags: list[str] = []

    async def invalidate(self, tag: str) -> None:
        self.tags.append(tag)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def app(session, sink) -> FastAPI:
    app = FastAPI()

    @app.post("/brands")
    async def create_brand(actor_id: UUID = Depends(require_permission("create", "brands"))) -> dict:
        return {"actor_id": str(actor_id)}

    @app.post("/roles")
    async def create_role(name: str, rbac: RbacService = Depends(get_rbac_service)) -> dict:
        result = await rbac.create_role(name, 50)
        return {"success": result.success, "tags": result.tags}

    async def override_get_db() -> AsyncGenerator:
        yield session

    async def override_get_cache_service() -> RecordingSink:
        return sink

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache_service] = override_get_cache_service
    return app


@pytest.fixture
async def client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class TestRequirePermission:
    """Admission by (action, resource) grant."""

    async def test_missing_token(self, client) -> None:
        response = await client.post("/brands")

        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication required"

    async def test_invalid_token(self, client) -> None:
        response = await client.post("/brands", headers=auth_header(str(uuid4()), "x" * 40))

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    async def test_subject_must_be_a_user_id(self, client) -> None:
        response = await client.post("/brands", headers=auth_header("not-a-uuid"))

        assert response.status_code == 401

    async def test_caller_without_grant(self, client, seed) -> None:
        user = await seed.user()
        viewer = await seed.role("viewer", 80)
        await seed.grant_action(viewer, "read", "brands")
        await seed.assign(user, viewer)

        response = await client.post("/brands", headers=auth_header(str(user.id)))

        assert response.status_code == 403
        assert response.json()["detail"] == "Insufficient permissions"

    async def test_caller_with_grant(self, client, seed) -> None:
        user = await seed.user()
        editor = await seed.role("editor", 50)
        await seed.grant_action(editor, "create", "Brands")
        await seed.assign(user, editor)

        response = await client.post("/brands", headers=auth_header(str(user.id)))

        assert response.status_code == 200
        assert response.json() == {"actor_id": str(user.id)}

    async def test_failing_lookup_is_unavailable_not_allowed(self, client, monkeypatch) -> None:
        async def broken(self, actor_id, action, resource_name):
            raise OperationalError("SELECT 1", {}, Exception("server closed the connection"))

        monkeypatch.setattr(PermissionResolver, "has_permission", broken)

        response = await client.post("/brands", headers=auth_header(str(uuid4())))

        assert response.status_code == 503


class TestRbacServiceDependency:
    """The façade dependency is wired to the invalidation sink."""

    async def test_mutation_through_dependency(self, client, sink) -> None:
        response = await client.post("/roles", params={"name": "editor"})

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert sink.tags == body["tags"]
        assert body["tags"][0] == "roles"
