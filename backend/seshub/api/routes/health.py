"""
Health check endpoints for monitoring system status.
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ... import __version__
from ...adapters.redis import RedisAdapter
from ...core.config import settings
from ...core.database import DatabaseManager, get_db
from ...core.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health")
async def health_check(request: Request) -> dict[str, Any]:
    """
    Health of the database and, when configured, Redis.

    Redis is optional: without it rate limiting, token blacklisting and the
    permission cache are disabled, which degrades but does not break the API.
    """
    components: dict[str, Any] = {}
    health_status: dict[str, Any] = {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": __version__,
        "components": components,
    }

    components["database"] = await DatabaseManager.health_check()

    redis_client = getattr(request.app.state, "redis_client", None)
    if redis_client is None:
        components["redis"] = {
            "status": "disabled",
            "message": "Redis not connected",
            "details": {},
        }
        health_status["status"] = "degraded"
    else:
        redis_health = await RedisAdapter(redis_client).health_check()
        components["redis"] = redis_health
        if redis_health["status"] != "healthy":
            health_status["status"] = "degraded"

    health_status["checks"] = {
        "environment": settings.ENVIRONMENT,
        "debug_mode": settings.DEBUG,
        "permission_cache": settings.PERMISSION_CACHE_ENABLED,
        "token_blacklist": settings.TOKEN_BLACKLIST_ENABLED,
    }

    if components["database"]["status"] == "unhealthy":
        health_status["status"] = "unhealthy"
        raise HTTPException(
            status_code=503,
            detail={
                "error": "Service unavailable",
                "unhealthy_components": ["database"],
                "health_status": health_status,
            },
        )

    return health_status


@router.get("/health/simple")
async def simple_health_check() -> dict[str, str]:
    """Minimal check for load balancers and container liveness checks."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/health/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    """Ready to serve traffic once the database answers."""
    try:
        await db.execute(text("SELECT 1"))
    except (ConnectionError, TimeoutError) as e:
        logger.error("Database connection failed", error=str(e))
        raise HTTPException(status_code=503, detail="Database not ready")
    except Exception as e:
        logger.error(
            "Readiness check failed - database not ready", error=str(e), exc_info=True
        )
        raise HTTPException(status_code=503, detail="Database not ready")

    return {
        "status": "ready",
        "timestamp": datetime.now(UTC).isoformat(),
        "checks": {"database": "ready", "application": "ready"},
    }


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive", "timestamp": datetime.now(UTC).isoformat()}
