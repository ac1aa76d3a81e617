"""Permission catalog, role listing and screen access checks."""

from fastapi import APIRouter, Depends, Query

from ...core.auth import Principal
from ...models.rbac import Permission
from ...services.permission_check import build_permission_name
from ...services.rbac import RBACService
from ...services.route_permissions import can_access_route, get_route_permissions
from ..dependencies import get_current_principal, get_rbac_service
from ..schemas.permission import (
    PermissionResponse,
    RequiredPermission,
    RoleResponse,
    RouteCheckRequest,
    RouteCheckResponse,
)

router = APIRouter()


@router.get("/permissions", response_model=list[PermissionResponse])
async def list_permissions(
    resource: str | None = Query(None, max_length=50),
    rbac_service: RBACService = Depends(get_rbac_service),
    _principal: Principal = Depends(get_current_principal),
) -> list[Permission]:
    return await rbac_service.list_permissions(resource)


@router.get("/permissions/roles", response_model=list[RoleResponse])
async def list_roles(
    rbac_service: RBACService = Depends(get_rbac_service),
    _principal: Principal = Depends(get_current_principal),
) -> list[RoleResponse]:
    """Active roles with the names of the permissions they grant."""
    roles = await rbac_service.list_roles()
    return [
        RoleResponse(
            id=role.id,
            name=role.name,
            display_name=role.display_name,
            description=role.description,
            is_system=role.is_system,
            permissions=sorted(p.name for p in role.permissions),
        )
        for role in roles
    ]


@router.post("/permissions/check-route", response_model=RouteCheckResponse)
async def check_route(
    payload: RouteCheckRequest,
    principal: Principal = Depends(get_current_principal),
) -> RouteCheckResponse:
    """Whether the caller may open a frontend screen, and what it requires."""
    required = get_route_permissions(payload.path)
    return RouteCheckResponse(
        path=payload.path,
        required_permissions=[
            RequiredPermission(
                resource=resource,
                action=action,
                scope=scope,
                name=build_permission_name(resource, action, scope),
            )
            for resource, action, scope in required
        ],
        can_access=can_access_route(payload.path, principal.checker),
    )
