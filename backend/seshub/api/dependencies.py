"""FastAPI dependencies for authentication and authorization."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..adapters.redis import RedisAdapter
from ..core.auth import AuthService, Principal
from ..core.database import get_db
from ..core.logger import get_logger
from ..core.token_blacklist import TokenBlacklistService
from ..middleware.tenant import TenantContextManager
from ..models.business_partner import BusinessPartner
from ..repositories.business_partner import BusinessPartnerRepository
from ..services.permission_cache import PermissionCache
from ..services.rbac import RBACService

logger = get_logger(__name__)

PermissionTriple = tuple[str, ...]


def _redis_adapter(request: Request) -> RedisAdapter | None:
    client = getattr(request.app.state, "redis_client", None)
    return RedisAdapter(client) if client is not None else None


def get_rbac_service(request: Request, db: AsyncSession = Depends(get_db)) -> RBACService:
    """RBAC service with the Redis permission cache when Redis is up."""
    adapter = _redis_adapter(request)
    cache = PermissionCache(adapter) if adapter is not None else None
    return RBACService(db, cache=cache)


def get_token_blacklist(request: Request) -> TokenBlacklistService:
    return TokenBlacklistService(_redis_adapter(request))


def _extract_token(request: Request) -> str | None:
    """Bearer header first, then the ``access_token`` cookie."""
    auth_header = request.headers.get("authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get("access_token")


async def get_current_principal(
    request: Request,
    db: AsyncSession = Depends(get_db),
    rbac_service: RBACService = Depends(get_rbac_service),
    token_blacklist: TokenBlacklistService = Depends(get_token_blacklist),
) -> Principal:
    """Resolve the caller into a staff or client principal, or raise 401."""
    token = _extract_token(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    auth_service = AuthService(
        db, rbac_service=rbac_service, token_blacklist=token_blacklist
    )
    principal = await auth_service.get_principal_by_token(token)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    request.state.principal = principal
    return principal


async def get_current_staff(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """Staff principal of an SES company."""
    if principal.is_client:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This endpoint is for SES company users",
        )
    return principal


async def require_client_user(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """Client principal of a business partner."""
    if not principal.is_client:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This endpoint is for client users",
        )
    return principal


def get_current_company_id(request: Request) -> UUID:
    """Company from the tenant middleware; 401 when absent."""
    return TenantContextManager.require_company_id(request)


def _deny(principal: Principal, required: object) -> HTTPException:
    logger.warning(
        "Permission denied",
        user_id=str(principal.id),
        user_type=principal.user_type,
        required=str(required),
    )
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Insufficient permissions",
    )


def require_permission(
    resource: str, action: str, scope: str | None = None
) -> Callable[..., Awaitable[Principal]]:
    """Dependency factory: the caller must hold ``resource:action[:scope]``."""

    async def dependency(
        principal: Principal = Depends(get_current_principal),
    ) -> Principal:
        if not principal.checker.has_permission(resource, action, scope):
            raise _deny(principal, (resource, action, scope))
        return principal

    return dependency


def require_any_permission(
    *permissions: PermissionTriple,
) -> Callable[..., Awaitable[Principal]]:
    """Dependency factory: the caller must hold at least one of ``permissions``."""

    async def dependency(
        principal: Principal = Depends(get_current_principal),
    ) -> Principal:
        if not principal.checker.has_any_permission(permissions):
            raise _deny(principal, permissions)
        return principal

    return dependency


def require_role(*roles: str) -> Callable[..., Awaitable[Principal]]:
    """Dependency factory: the caller must hold one of ``roles``."""

    async def dependency(
        principal: Principal = Depends(get_current_principal),
    ) -> Principal:
        if not principal.checker.has_role(*roles):
            raise _deny(principal, roles)
        return principal

    return dependency


require_admin = require_role("admin")
require_manager = require_role("admin", "manager")
require_sales = require_role("admin", "manager", "sales")


async def get_client_partner(
    principal: Principal = Depends(require_client_user),
    db: AsyncSession = Depends(get_db),
) -> BusinessPartner:
    """Active business partner the client principal belongs to."""
    if principal.ses_company_id is None or principal.business_partner_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Client user is not linked to a business partner",
        )

    repo = BusinessPartnerRepository(db, principal.ses_company_id)
    partner = await repo.get_by_id(principal.business_partner_id)
    if partner is None or not partner.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Business partner is not active",
        )
    return partner


def client_context(request: Request) -> dict[str, str | None]:
    """Caller IP and user agent for the client view log."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        ip_address = forwarded_for.split(",")[0].strip()
    else:
        ip_address = request.client.host if request.client else None
    return {
        "ip_address": ip_address,
        "user_agent": request.headers.get("user-agent"),
    }
