"""Staff user management within the caller's company."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.auth import Principal
from ...core.database import get_db
from ...core.exceptions import SESHubError
from ...core.logger import get_logger
from ...services.rbac import RBACService
from ...services.user import UserService
from ..dependencies import (
    get_current_company_id,
    get_current_staff,
    get_rbac_service,
    require_permission,
)
from ..schemas.user import RoleAssignment, UserCreate, UserListItem, UserListResponse

router = APIRouter(dependencies=[Depends(get_current_staff)])
logger = get_logger(__name__)


@router.get("/users", response_model=UserListResponse)
async def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    search: str | None = Query(None, max_length=200),
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    rbac_service: RBACService = Depends(get_rbac_service),
    _principal: Principal = Depends(require_permission("user", "view", "company")),
) -> UserListResponse:
    """List users of the current company with their roles."""
    service = UserService(db, company_id, rbac_service=rbac_service)
    users, total = await service.list_users(skip=skip, limit=limit, search=search)
    return UserListResponse(
        users=[UserListItem(**user) for user in users],
        total=total,
    )


@router.post(
    "/users", response_model=UserListItem, status_code=status.HTTP_201_CREATED
)
async def create_user(
    payload: UserCreate,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    rbac_service: RBACService = Depends(get_rbac_service),
    principal: Principal = Depends(require_permission("user", "create")),
) -> UserListItem:
    """Create a staff user in the current company."""
    logger.info(
        "Creating user", company_id=str(company_id), created_by=str(principal.id)
    )

    service = UserService(db, company_id, rbac_service=rbac_service)
    try:
        user = await service.create_user(
            email=payload.email,
            name=payload.name,
            password=payload.password,
            phone=payload.phone,
            roles=payload.roles,
            created_by=principal.id,
        )
        return UserListItem(
            id=user.id,
            email=user.email,
            name=user.name,
            phone=user.phone,
            is_active=user.is_active,
            created_at=user.created_at,
            last_login_at=user.last_login_at,
            roles=await rbac_service.get_user_roles(user.id),
        )

    except (HTTPException, SESHubError):
        raise
    except ValueError as e:
        logger.warning("User validation error", error=str(e))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error("Failed to create user", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create user",
        )


@router.post("/users/{user_id}/roles", response_model=list[str])
async def assign_role(
    user_id: UUID,
    payload: RoleAssignment,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    rbac_service: RBACService = Depends(get_rbac_service),
    principal: Principal = Depends(require_permission("user", "manage_role")),
) -> list[str]:
    """Grant a role to a user of the current company."""
    logger.info("Assigning role", user_id=str(user_id), role=payload.role_name)
    service = UserService(db, company_id, rbac_service=rbac_service)
    return await service.assign_role(user_id, payload.role_name, granted_by=principal.id)


@router.delete("/users/{user_id}/roles/{role_name}", response_model=list[str])
async def revoke_role(
    user_id: UUID,
    role_name: str,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    rbac_service: RBACService = Depends(get_rbac_service),
    principal: Principal = Depends(require_permission("user", "manage_role")),
) -> list[str]:
    logger.info("Revoking role", user_id=str(user_id), role=role_name)
    if user_id == principal.id and role_name == "admin":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot revoke your own admin role",
        )
    service = UserService(db, company_id, rbac_service=rbac_service)
    return await service.revoke_role(user_id, role_name)


@router.post("/users/{user_id}/deactivate", response_model=UserListItem)
async def deactivate_user(
    user_id: UUID,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    rbac_service: RBACService = Depends(get_rbac_service),
    principal: Principal = Depends(require_permission("user", "delete")),
) -> UserListItem:
    if user_id == principal.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot deactivate your own account",
        )
    service = UserService(db, company_id, rbac_service=rbac_service)
    user = await service.deactivate_user(user_id)
    return UserListItem(
        id=user.id,
        email=user.email,
        name=user.name,
        phone=user.phone,
        is_active=user.is_active,
        created_at=user.created_at,
        last_login_at=user.last_login_at,
        roles=await rbac_service.get_user_roles(user.id),
    )
