"""Main FastAPI application entry point for the SES Hub backend."""

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import redis.asyncio as redis
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api.routes import (
    approaches,
    auth,
    business_partners,
    client_auth,
    client_engineers,
    client_offers,
    companies,
    engineers,
    health,
    offers,
    permissions,
    projects,
    users,
)
from .core.config import settings
from .core.database import close_database_connections
from .core.exceptions import SESHubError
from .core.logger import get_logger, setup_logging
from .middleware.rate_limit import RateLimitMiddleware
from .middleware.security import RequestSizeMiddleware, SecurityHeadersMiddleware
from .middleware.tenant import TenantIsolationMiddleware

setup_logging()
logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager"""
    logger.info("Starting SES Hub backend", environment=settings.ENVIRONMENT)

    # Redis backs rate limiting, the permission cache and the token blacklist
    try:
        redis_settings = settings.get_redis_settings()
        connection_kwargs = {
            key: value
            for key, value in redis_settings.items()
            if key not in {"host", "port"}
        }
        redis_client = redis.from_url(settings.REDIS_URL, **connection_kwargs)
        await redis_client.ping()
        app.state.redis_client = redis_client
        logger.info("Redis connection established")

    except (redis.RedisError, OSError) as exc:
        logger.warning(
            "Failed to connect to Redis, caching and rate limiting disabled",
            error=str(exc),
        )
        app.state.redis_client = None

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down SES Hub backend")

    if getattr(app.state, "redis_client", None):
        await app.state.redis_client.aclose()
        logger.info("Redis connection closed")
    await close_database_connections()


app = FastAPI(
    title=settings.APP_NAME,
    description="SES engineer management, business partner access control and offers",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Last added runs first

# 1. Request size limiting
app.add_middleware(RequestSizeMiddleware, max_size=10 * 1024 * 1024)  # 10MB

# 2. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 3. Rate limiting; the Redis client is read from app.state per request
app.add_middleware(
    RateLimitMiddleware,
    redis_client=None,
    default_requests=settings.RATE_LIMIT_REQUESTS,
    default_window=settings.RATE_LIMIT_WINDOW,
)

# 4. Company isolation
app.add_middleware(TenantIsolationMiddleware)

# 5. CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Accept",
        "Accept-Language",
        "Content-Type",
        "Authorization",
        "X-Request-ID",
        "Cache-Control",
    ],
    expose_headers=["X-Request-ID", "X-RateLimit-Limit", "X-RateLimit-Remaining"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Log all HTTP requests with structured logging"""
    logger.info(
        "HTTP request received",
        method=request.method,
        path=request.url.path,
        client_host=request.client.host if request.client else None,
    )

    response = await call_next(request)

    logger.info(
        "HTTP request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
    )
    return response


@app.exception_handler(SESHubError)
async def seshub_error_handler(request: Request, exc: SESHubError) -> JSONResponse:
    """Domain errors carry their own status code."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Request failed",
        method=request.method,
        path=request.url.path,
        error=exc.message,
        error_type=type(exc).__name__,
        status_code=exc.status_code,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "details": exc.details},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler with structured logging"""
    logger.exception(
        "Unhandled exception", method=request.method, path=request.url.path
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred",
            "request_id": request.headers.get("X-Request-ID"),
        },
    )


api_prefix = settings.API_V1_PREFIX

app.include_router(health.router, prefix=api_prefix, tags=["health"])
app.include_router(auth.router, prefix=f"{api_prefix}/auth", tags=["authentication"])
app.include_router(users.router, prefix=api_prefix, tags=["users"])
app.include_router(companies.router, prefix=api_prefix, tags=["companies"])
app.include_router(permissions.router, prefix=api_prefix, tags=["permissions"])
app.include_router(engineers.router, prefix=api_prefix, tags=["engineers"])
app.include_router(projects.router, prefix=api_prefix, tags=["projects"])
app.include_router(
    business_partners.router, prefix=api_prefix, tags=["business-partners"]
)
app.include_router(offers.router, prefix=api_prefix, tags=["offers"])
app.include_router(approaches.router, prefix=api_prefix, tags=["approaches"])
app.include_router(
    client_auth.router, prefix=f"{api_prefix}/client/auth", tags=["client-auth"]
)
app.include_router(
    client_engineers.router, prefix=f"{api_prefix}/client", tags=["client-engineers"]
)
app.include_router(
    client_offers.router, prefix=f"{api_prefix}/client", tags=["client-offers"]
)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with API information"""
    return {
        "service": settings.APP_NAME,
        "version": __version__,
        "environment": settings.ENVIRONMENT,
        "docs": "/docs",
        "health": f"{api_prefix}/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "seshub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower(),
    )
