"""
Redis adapter for the permission cache and the token blacklist.
"""

import json
from typing import Any, TypeAlias, cast

import redis.asyncio as redis
from redis.exceptions import RedisError

from seshub.core.config import settings
from seshub.core.logger import LoggerMixin, get_logger

logger = get_logger(__name__)


JSONScalar: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONScalar | dict[str, "JSONValue"] | list["JSONValue"]


def create_redis_client() -> redis.Redis:
    """Build a client from settings. No connection is made until first use."""
    redis_settings = settings.get_redis_settings()
    return redis.Redis(
        host=redis_settings["host"],
        port=redis_settings["port"],
        password=redis_settings.get("password"),
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry_on_timeout=True,
    )


class RedisAdapter(LoggerMixin):
    """Redis adapter whose operations degrade to None/False on Redis errors."""

    def __init__(self, client: redis.Redis | None = None) -> None:
        super().__init__()
        self.client: redis.Redis = client or create_redis_client()

    async def health_check(self) -> dict[str, Any]:
        """Check Redis service health"""
        try:
            if not await self.client.ping():
                return {
                    "status": "unhealthy",
                    "message": "Redis ping failed",
                    "details": {},
                }
            info = cast(dict[str, Any], await self.client.info("server"))
            return {
                "status": "healthy",
                "message": "Redis connection successful",
                "details": {
                    "redis_version": info.get("redis_version", "unknown"),
                    "uptime": info.get("uptime_in_seconds", 0),
                },
            }
        except (RedisError, OSError) as exc:
            logger.error("Redis health check failed", error=str(exc))
            return {
                "status": "unhealthy",
                "message": f"Redis connection failed: {exc!s}",
                "details": {"error": str(exc)},
            }

    async def get(self, key: str) -> str | None:
        try:
            return cast(str | None, await self.client.get(key))
        except RedisError as e:
            logger.error("Redis GET failed", key=key, error=str(e))
            return None

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        try:
            return bool(await self.client.set(key, value, ex=ex))
        except RedisError as e:
            logger.error("Redis SET failed", key=key, error=str(e))
            return False

    async def delete(self, *keys: str) -> int:
        """Delete keys, returning how many existed."""
        if not keys:
            return 0
        try:
            return int(await self.client.delete(*keys))
        except RedisError as e:
            logger.error("Redis DELETE failed", keys=keys, error=str(e))
            return 0

    async def exists(self, key: str) -> bool:
        try:
            return int(await self.client.exists(key)) > 0
        except RedisError as e:
            logger.error("Redis EXISTS failed", key=key, error=str(e))
            return False

    async def get_json(self, key: str) -> JSONValue | None:
        """Get JSON value from Redis"""
        try:
            value = cast(str | None, await self.client.get(key))
            return json.loads(value) if value else None
        except (RedisError, json.JSONDecodeError) as e:
            logger.error("Redis GET JSON failed", key=key, error=str(e))
            return None

    async def set_json(self, key: str, value: JSONValue, ex: int | None = None) -> bool:
        """Set JSON value in Redis"""
        try:
            return bool(
                await self.client.set(key, json.dumps(value, ensure_ascii=False), ex=ex)
            )
        except (RedisError, TypeError) as e:
            logger.error("Redis SET JSON failed", key=key, error=str(e))
            return False

    async def delete_by_prefix(self, prefix: str) -> int:
        """Delete every key starting with ``prefix`` using SCAN."""
        deleted = 0
        try:
            batch: list[str] = []
            async for key in self.client.scan_iter(match=f"{prefix}*", count=500):
                batch.append(str(key))
                if len(batch) >= 500:
                    deleted += int(await self.client.delete(*batch))
                    batch = []
            if batch:
                deleted += int(await self.client.delete(*batch))
        except RedisError as e:
            logger.error("Redis prefix delete failed", prefix=prefix, error=str(e))
        return deleted

    async def close(self) -> None:
        await self.client.aclose()
        logger.info("Redis connection closed")
