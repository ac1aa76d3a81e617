"""
Rate limiting middleware with Redis backend for API endpoint protection.
"""

import contextlib
import hashlib
import secrets
import time

import redis.asyncio as redis
from fastapi import Request, status
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.config import get_settings
from ..core.logger import get_logger
from .tenant import TenantContextManager

logger = get_logger(__name__)

settings = get_settings()

# Path prefix -> (requests, window seconds); first match wins
ENDPOINT_LIMITS: dict[str, tuple[int, int]] = {
    "/api/v1/auth/login": (5, 300),
    "/api/v1/client/auth/login": (10, 300),
    "/api/v1/auth/register": (3, 3600),
    "/api/v1/client/engineers": (120, 60),
}


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window rate limiting. Skipped entirely without Redis."""

    def __init__(
        self,
        app,
        redis_client: redis.Redis | None = None,
        default_requests: int | None = None,
        default_window: int | None = None,
    ) -> None:
        super().__init__(app)
        self.redis_client = redis_client
        self.default_requests = default_requests or settings.RATE_LIMIT_REQUESTS
        self.default_window = default_window or settings.RATE_LIMIT_WINDOW
        self.excluded_paths = [
            "/docs",
            "/redoc",
            "/openapi.json",
            "/health",
            "/api/v1/health",
        ]

    async def dispatch(self, request: Request, call_next):
        if any(request.url.path.startswith(path) for path in self.excluded_paths):
            return await call_next(request)

        redis_client = self.redis_client or getattr(
            request.app.state, "redis_client", None
        )
        if not redis_client:
            return await call_next(request)

        try:
            is_allowed, headers = await self._check_rate_limit(request, redis_client)
        except RedisError as exc:
            logger.warning("Rate limit check skipped", error=str(exc))
            return await call_next(request)

        if not is_allowed:
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"error": "Rate limit exceeded"},
                headers={key: str(value) for key, value in headers.items()},
            )

        response = await call_next(request)
        for header, value in headers.items():
            response.headers[header] = str(value)
        return response

    def limit_for(self, path: str) -> tuple[int, int]:
        """Requests allowed and window length for ``path``."""
        for prefix, limits in ENDPOINT_LIMITS.items():
            if path.startswith(prefix):
                return limits
        return self.default_requests, self.default_window

    async def _check_rate_limit(
        self, request: Request, redis_client: redis.Redis
    ) -> tuple[bool, dict[str, int]]:
        requests_limit, time_window = self.limit_for(request.url.path)
        key = self._rate_limit_key(request)

        current_time = int(time.time())
        window_start = current_time - time_window

        unique_member = f"{current_time}-{secrets.token_hex(8)}"
        pipe = redis_client.pipeline()
        pipe.zremrangebyscore(key, 0, window_start)
        pipe.zadd(key, {unique_member: current_time})
        pipe.zcard(key)
        pipe.expire(key, time_window)
        results = await pipe.execute()

        current_requests = 0
        if isinstance(results, list | tuple) and len(results) > 2 and results[2]:
            current_requests = int(results[2])

        is_allowed = current_requests <= requests_limit
        if not is_allowed:
            with contextlib.suppress(RedisError):
                await redis_client.zrem(key, unique_member)

        remaining = max(0, requests_limit - current_requests)
        headers = {
            "X-RateLimit-Limit": requests_limit,
            "X-RateLimit-Remaining": remaining,
            "X-RateLimit-Reset": current_time + time_window,
            "X-RateLimit-Window": time_window,
        }
        return is_allowed, headers

    def _rate_limit_key(self, request: Request) -> str:
        company_id = TenantContextManager.get_company_id(request)
        client_id = (
            f"company:{company_id}" if company_id else f"ip:{self._get_client_ip(request)}"
        )
        key_data = f"rate_limit:{client_id}:{request.url.path}"
        return f"rl:{hashlib.md5(key_data.encode()).hexdigest()}"

    @staticmethod
    def _get_client_ip(request: Request) -> str:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        return request.client.host if request.client else "unknown"
