"""Cache invalidation sink tests."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import redis.asyncio as redis

from rbac_core.services.cache_service import CacheService, CacheTags


class FakeRedis:
    """In-memory stand-in for the subset of the Redis client the sink uses."""

    def __init__(self, keys: list[str]) -> None:
        self.keys = set(keys)

    async def delete(self, *keys: str) -> int:
        removed = self.keys.intersection(keys)
        self.keys -= removed
        return len(removed)

    async def scan_iter(self, match: str):
        prefix = match.rstrip("*")
        for key in sorted(self.keys):
            if key.startswith(prefix):
                yield key


class TestCacheTags:
    """Tag naming."""

    def test_entity_tags(self) -> None:
        entity_id = uuid4()

        assert CacheTags.role(entity_id) == f"role:{entity_id}"
        assert CacheTags.permission(entity_id) == f"permission:{entity_id}"
        assert CacheTags.resource(entity_id) == f"resource:{entity_id}"
        assert CacheTags.user(entity_id) == f"user:{entity_id}"


class TestInvalidate:
    """Deleting a tag and the keys stored below it."""

    async def test_removes_tag_and_children_only(self) -> None:
        client = FakeRedis(["roles", "roles:list", "roles:list:page:2", "role:1", "permissions"])
        cache = CacheService(client=client)

        await cache.invalidate("roles")

        assert client.keys == {"role:1", "permissions"}

    async def test_invalidate_tags_once_each(self) -> None:
        client = FakeRedis(["roles", "users", "user:7:roles"])
        cache = CacheService(client=client)
        cache.invalidate = AsyncMock(wraps=cache.invalidate)

        await cache.invalidate_tags(["roles", "users", "roles", "user:7"])

        assert [call.args[0] for call in cache.invalidate.await_args_list] == ["roles", "users", "user:7"]
        assert client.keys == set()

    async def test_not_connected_is_a_no_op(self) -> None:
        cache = CacheService()

        assert cache.is_connected is False
        await cache.invalidate("roles")
        assert await cache.delete("roles") == 0
        assert await cache.delete_pattern("roles:*") == 0

    async def test_redis_errors_are_swallowed(self) -> None:
        client = AsyncMock()
        client.delete.side_effect = redis.ConnectionError("connection refused")
        client.scan_iter = MagicMock(side_effect=redis.ConnectionError("connection refused"))
        cache = CacheService(client=client)

        assert await cache.delete("roles") == 0
        await cache.invalidate("roles")


class TestConnect:
    """Connecting to Redis."""

    async def test_unreachable_redis_disables_sink(self, monkeypatch: pytest.MonkeyPatch) -> None:
        client = AsyncMock()
        client.ping.side_effect = redis.ConnectionError("connection refused")
        monkeypatch.setattr(redis, "from_url", lambda *args, **kwargs: client)
        cache = CacheService()

        await cache._connect()

        assert cache.is_connected is False

    async def test_reachable_redis(self, monkeypatch: pytest.MonkeyPatch) -> None:
        client = AsyncMock()
        monkeypatch.setattr(redis, "from_url", lambda *args, **kwargs: client)
        cache = CacheService()

        await cache._connect()

        assert cache.is_connected is True
        client.ping.assert_awaited_once()
