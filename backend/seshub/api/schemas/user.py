"""
Staff user management schemas.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=8)
    phone: str | None = Field(None, max_length=20)
    roles: list[str] = Field(default_factory=lambda: ["sales"])


class UserListItem(BaseModel):
    id: UUID
    email: str
    name: str
    phone: str | None = None
    is_active: bool
    created_at: datetime
    last_login_at: datetime | None = None
    roles: list[str] = Field(default_factory=list)

    model_config: ClassVar[ConfigDict] = ConfigDict(from_attributes=True)


class UserListResponse(BaseModel):
    users: list[UserListItem]
    total: int


class RoleAssignment(BaseModel):
    role_name: str = Field(..., min_length=1, max_length=50)
