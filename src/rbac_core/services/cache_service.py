"""Cache invalidation: tag naming and the Redis-backed default sink."""

import logging
from collections.abc import Iterable
from typing import Protocol
from uuid import UUID

import redis.asyncio as redis

from rbac_core.config import get_settings

logger = logging.getLogger(__name__)


class CacheTags:
    """Deterministic cache tags emitted by access-control mutations."""

    ROLES = "roles"
    PERMISSIONS = "permissions"
    RESOURCES = "resources"
    USERS = "users"

    @staticmethod
    def role(role_id: UUID | str) -> str:
        """Tag of a single role."""
        return f"role:{role_id}"

    @staticmethod
    def permission(permission_id: UUID | str) -> str:
        """Tag of a single permission."""
        return f"permission:{permission_id}"

    @staticmethod
    def resource(resource_id: UUID | str) -> str:
        """Tag of a single resource."""
        return f"resource:{resource_id}"

    @staticmethod
    def user(user_id: UUID | str) -> str:
        """Tag of a single user."""
        return f"user:{user_id}"


class InvalidationSink(Protocol):
    """Anything that can be told a cache tag is stale."""

    async def invalidate(self, tag: str) -> None: ...


class CacheService:
    """Redis-backed invalidation sink.

    Cached entries are stored by the cache layer under the tag itself or under
    ``<tag>:<suffix>`` keys. Invalidating a tag deletes both. Redis being
    unavailable never fails a mutation: the error is logged and stale entries
    expire on their own TTL.
    """

    _instance: "CacheService | None" = None

    def __init__(self, client: redis.Redis | None = None) -> None:
        """Initialize cache service, optionally with an existing client."""
        self._client = client
        self._connected = client is not None

    @classmethod
    async def get_instance(cls) -> "CacheService":
        """Get or create the shared cache service.

        Returns:
            CacheService singleton instance
        """
        if cls._instance is None:
            cls._instance = CacheService()
            await cls._instance._connect()
        return cls._instance

    async def _connect(self) -> None:
        """Connect to Redis server."""
        settings = get_settings()

        if not settings.redis_url:
            logger.warning("REDIS_URL not configured - cache invalidation disabled")
            return

        try:
            self._client = redis.from_url(
                str(settings.redis_url),
                encoding="utf-8",
                decode_responses=True,
            )
            await self._client.ping()
            self._connected = True
            logger.info("Redis cache connected successfully")
        except redis.RedisError as e:
            logger.warning("Failed to connect to Redis for cache invalidation: %s", e)
            self._client = None
            self._connected = False

    @property
    def is_connected(self) -> bool:
        """Check if cache is connected."""
        return self._connected and self._client is not None

    async def delete(self, *keys: str) -> int:
        """Delete keys from cache.

        Returns:
            Number of keys deleted
        """
        if not self.is_connected or not keys:
            return 0

        try:
            return await self._client.delete(*keys)
        except redis.RedisError as e:
            logger.error("Cache delete error: %s", e)
            return 0

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching a pattern.

        Args:
            pattern: Key pattern (e.g., "role:*")

        Returns:
            Number of keys deleted
        """
        if not self.is_connected:
            return 0

        try:
            keys = [key async for key in self._client.scan_iter(match=pattern)]
            if keys:
                return await self._client.delete(*keys)
            return 0
        except redis.RedisError as e:
            logger.error("Cache delete pattern error: %s", e)
            return 0

    async def invalidate(self, tag: str) -> None:
        """Mark a tag stale by deleting its key and every key below it."""
        if not self.is_connected:
            logger.debug("Cache not connected, skipping invalidation of %s", tag)
            return

        deleted = await self.delete(tag)
        deleted += await self.delete_pattern(f"{tag}:*")
        logger.debug("Invalidated cache tag %s (%d keys)", tag, deleted)

    async def invalidate_tags(self, tags: Iterable[str]) -> None:
        """Invalidate several tags, each once."""
        for tag in dict.fromkeys(tags):
            await self.invalidate(tag)


_cache_instance: CacheService | None = None


async def get_cache_service() -> CacheService:
    """Get the cache service instance.

    Returns:
        CacheService singleton instance
    """
    global _cache_instance
    if _cache_instance is None:
        _cache_instance = await CacheService.get_instance()
    return _cache_instance
