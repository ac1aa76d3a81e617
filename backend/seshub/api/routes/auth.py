"""
Staff authentication endpoints: company registration, JWT login and refresh.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.auth import AuthService, Principal
from ...core.config import get_settings
from ...core.database import get_db
from ...core.exceptions import SESHubError
from ...core.logger import get_logger
from ...core.token_blacklist import TokenBlacklistService
from ...models.user import User
from ...services.permission_catalog import get_highest_role
from ...services.rbac import RBACService
from ..dependencies import (
    get_current_principal,
    get_rbac_service,
    get_token_blacklist,
)
from ..schemas.auth import (
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    MyPermissionsResponse,
    PrincipalResponse,
    RefreshTokenRequest,
    RegisterRequest,
    Token,
    UserResponse,
)

router = APIRouter()
logger = get_logger(__name__)
settings = get_settings()


def _set_auth_cookies(response: Response, tokens: dict[str, Any]) -> None:
    """Store tokens as HttpOnly cookies for browser clients."""
    response.set_cookie(
        key="access_token",
        value=tokens["access_token"],
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        path="/",
    )
    if "refresh_token" in tokens:
        response.set_cookie(
            key="refresh_token",
            value=tokens["refresh_token"],
            max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
            httponly=True,
            secure=settings.is_production,
            samesite="strict",
            path="/",
        )


def _user_response(user: User, roles: list[str]) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        company_id=user.company_id,
        is_active=user.is_active,
        created_at=user.created_at,
        last_login_at=user.last_login_at,
        roles=roles,
    )


@router.post(
    "/register", response_model=LoginResponse, status_code=status.HTTP_201_CREATED
)
async def register_company(
    response: Response,
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    rbac_service: RBACService = Depends(get_rbac_service),
) -> LoginResponse:
    """
    Register an SES company together with its first administrator.

    Returns tokens in the body and as HttpOnly cookies.
    """
    logger.info("Registration attempt", email=payload.email)

    auth_service = AuthService(db, rbac_service=rbac_service)
    try:
        user, tokens = await auth_service.register_company(
            company_name=payload.company_name,
            email=payload.email,
            password=payload.password,
            name=payload.name,
            phone=payload.phone,
            address=payload.address,
        )
        _set_auth_cookies(response, tokens)

        logger.info("Registration successful", user_id=str(user.id))
        return LoginResponse(
            user=_user_response(user, await rbac_service.get_user_roles(user.id)),
            token=Token(**tokens),
        )

    except (HTTPException, SESHubError):
        raise
    except ValueError as e:
        await db.rollback()
        logger.warning("Registration validation error", error=str(e))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        await db.rollback()
        logger.error("Registration failed", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Registration failed",
        )


@router.post("/login", response_model=LoginResponse)
async def login_user(
    response: Response,
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_db),
    rbac_service: RBACService = Depends(get_rbac_service),
) -> LoginResponse:
    """Staff login with email and password."""
    logger.info("Login attempt", email=login_data.email)

    auth_service = AuthService(db, rbac_service=rbac_service)
    try:
        user = await auth_service.authenticate_user(
            email=login_data.email, password=login_data.password
        )
        if not user:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )

        tokens = auth_service.create_tokens_for_user(user)
        _set_auth_cookies(response, tokens)

        logger.info("Login successful", user_id=str(user.id))
        return LoginResponse(
            user=_user_response(user, await rbac_service.get_user_roles(user.id)),
            token=Token(**tokens),
        )

    except HTTPException:
        raise
    except (ValueError, TypeError, KeyError) as e:
        logger.error("Login validation error", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid login data",
        )
    except Exception as e:
        logger.error("Login failed", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials"
        )


@router.post("/refresh", response_model=Token)
async def refresh_access_token(
    request: Request,
    response: Response,
    refresh_data: RefreshTokenRequest | None = None,
    db: AsyncSession = Depends(get_db),
    token_blacklist: TokenBlacklistService = Depends(get_token_blacklist),
) -> Token:
    """
    Issue a new token pair from a refresh token.

    The refresh token is read from the cookie first, then from the body.
    """
    refresh_token = request.cookies.get("refresh_token")
    if not refresh_token and refresh_data:
        refresh_token = refresh_data.refresh_token

    if not refresh_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="No refresh token provided"
        )

    auth_service = AuthService(db, token_blacklist=token_blacklist)
    tokens = await auth_service.refresh_access_token(refresh_token)
    _set_auth_cookies(response, tokens)

    logger.info("Token refresh successful")
    return Token(**tokens)


@router.post("/logout", response_model=LogoutResponse)
async def logout_user(
    request: Request,
    response: Response,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    token_blacklist: TokenBlacklistService = Depends(get_token_blacklist),
) -> LogoutResponse:
    """Blacklist the caller's tokens and clear the auth cookies."""
    logger.info("Logout attempt", user_id=str(principal.id))

    auth_service = AuthService(db, token_blacklist=token_blacklist)
    try:
        refresh_token = request.cookies.get("refresh_token")
        if not await auth_service.logout_user(principal.token or "", refresh_token):
            logger.error("Token blacklisting failed", user_id=str(principal.id))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Logout failed",
            )

        response.delete_cookie(
            key="access_token", path="/", secure=settings.is_production, httponly=True
        )
        response.delete_cookie(
            key="refresh_token", path="/", secure=settings.is_production, httponly=True
        )

        logger.info("Logout successful", user_id=str(principal.id))
        return LogoutResponse(message="Successfully logged out")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "Logout error", user_id=str(principal.id), error=str(e), exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Logout failed"
        )


@router.get("/me", response_model=PrincipalResponse)
async def get_me(
    principal: Principal = Depends(get_current_principal),
) -> PrincipalResponse:
    """The authenticated staff or client user."""
    return PrincipalResponse(
        id=principal.id,
        user_type=principal.user_type,
        company_id=principal.company_id,
        email=principal.email,
        name=principal.name,
        roles=principal.roles,
        highest_role=get_highest_role(principal.roles),
        ses_company_id=principal.ses_company_id,
        client_company_id=principal.client_company_id,
        business_partner_id=principal.business_partner_id,
    )


@router.get("/me/permissions", response_model=MyPermissionsResponse)
async def get_my_permissions(
    principal: Principal = Depends(get_current_principal),
) -> MyPermissionsResponse:
    return MyPermissionsResponse(
        user_id=principal.id,
        user_type=principal.user_type,
        roles=principal.roles,
        permissions=principal.permissions,
    )
