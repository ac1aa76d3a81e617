"""
Permission catalog and route check schemas.
"""

from typing import ClassVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PermissionResponse(BaseModel):
    id: UUID
    name: str
    display_name: str
    description: str | None = None
    resource: str
    action: str
    scope: str | None = None

    model_config: ClassVar[ConfigDict] = ConfigDict(from_attributes=True)


class RoleResponse(BaseModel):
    id: UUID
    name: str
    display_name: str
    description: str | None = None
    is_system: bool
    permissions: list[str] = Field(default_factory=list)


class RouteCheckRequest(BaseModel):
    path: str = Field(..., min_length=1, max_length=500)


class RequiredPermission(BaseModel):
    resource: str
    action: str
    scope: str | None = None
    name: str


class RouteCheckResponse(BaseModel):
    path: str
    required_permissions: list[RequiredPermission]
    can_access: bool
