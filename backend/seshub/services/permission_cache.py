"""
Redis cache for resolved user roles and permissions.

Every operation degrades to a cache miss or a no-op when caching is disabled
or Redis is unavailable; callers always fall back to the database.
"""

from __future__ import annotations

import uuid

from seshub.adapters.redis import RedisAdapter
from seshub.core.config import settings
from seshub.core.logger import LoggerMixin


class PermissionCache(LoggerMixin):
    """JSON cache keyed ``{prefix}user:{id}`` and ``{prefix}roles:{id}``."""

    def __init__(
        self,
        redis_adapter: RedisAdapter | None = None,
        ttl: int | None = None,
        prefix: str | None = None,
        enabled: bool | None = None,
    ) -> None:
        self.enabled = settings.PERMISSION_CACHE_ENABLED if enabled is None else enabled
        self.ttl = ttl or settings.PERMISSION_CACHE_TTL
        self.prefix = prefix or settings.PERMISSION_CACHE_PREFIX
        self.redis: RedisAdapter | None = None
        if self.enabled:
            self.redis = redis_adapter or RedisAdapter()

    def _permissions_key(self, user_id: uuid.UUID | str) -> str:
        return f"{self.prefix}user:{user_id}"

    def _roles_key(self, user_id: uuid.UUID | str) -> str:
        return f"{self.prefix}roles:{user_id}"

    async def _get_list(self, key: str) -> list[str] | None:
        if not self.redis:
            return None
        value = await self.redis.get_json(key)
        if isinstance(value, list):
            self.logger.debug("Permission cache hit", key=key)
            return [str(item) for item in value]
        return None

    async def _set_list(self, key: str, values: list[str]) -> None:
        if not self.redis:
            return
        if not await self.redis.set_json(key, list(values), ex=self.ttl):
            self.logger.warning("Permission cache write failed", key=key)

    async def get_user_permissions(self, user_id: uuid.UUID | str) -> list[str] | None:
        return await self._get_list(self._permissions_key(user_id))

    async def set_user_permissions(
        self, user_id: uuid.UUID | str, permissions: list[str]
    ) -> None:
        await self._set_list(self._permissions_key(user_id), permissions)

    async def get_user_roles(self, user_id: uuid.UUID | str) -> list[str] | None:
        return await self._get_list(self._roles_key(user_id))

    async def set_user_roles(self, user_id: uuid.UUID | str, roles: list[str]) -> None:
        await self._set_list(self._roles_key(user_id), roles)

    async def clear_user_cache(self, user_id: uuid.UUID | str) -> None:
        if not self.redis:
            return
        await self.redis.delete(self._permissions_key(user_id), self._roles_key(user_id))
        self.logger.info("Permission cache cleared", user_id=str(user_id))

    async def clear_all(self) -> int:
        if not self.redis:
            return 0
        deleted = await self.redis.delete_by_prefix(self.prefix)
        self.logger.info("Permission cache flushed", deleted=deleted)
        return deleted
