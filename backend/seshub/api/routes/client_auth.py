"""Login and token refresh for business partner client users."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.database import get_db
from ...core.exceptions import AuthenticationError
from ...core.logger import get_logger
from ...services.client_auth import ClientAuthService
from ...services.rbac import RBACService
from ..dependencies import client_context, get_rbac_service
from ..schemas.auth import AccessTokenResponse, ClientLoginResponse, RefreshTokenRequest
from ..schemas.client import ClientLoginRequest

router = APIRouter()
logger = get_logger(__name__)


@router.post("/login", response_model=ClientLoginResponse)
async def client_login(
    request: Request,
    payload: ClientLoginRequest,
    db: AsyncSession = Depends(get_db),
    rbac_service: RBACService = Depends(get_rbac_service),
) -> ClientLoginResponse:
    """
    Authenticate a client user.

    Wrong passwords count towards an account lock; a locked account answers
    423 with ``locked_until`` until the lock expires or an administrator
    unlocks it.
    """
    logger.info("Client login attempt", **client_context(request))
    service = ClientAuthService(db, rbac_service=rbac_service)
    return ClientLoginResponse(**await service.login(payload.email, payload.password))


@router.post("/refresh", response_model=AccessTokenResponse)
async def client_refresh(
    request: Request,
    payload: RefreshTokenRequest | None = None,
    db: AsyncSession = Depends(get_db),
    rbac_service: RBACService = Depends(get_rbac_service),
) -> AccessTokenResponse:
    refresh_token = payload.refresh_token if payload else None
    if not refresh_token:
        refresh_token = request.cookies.get("refresh_token")
    if not refresh_token:
        raise AuthenticationError("No refresh token provided")

    service = ClientAuthService(db, rbac_service=rbac_service)
    return AccessTokenResponse(**await service.refresh(refresh_token))
