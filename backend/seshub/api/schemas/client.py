"""
Schemas for the client (business partner) facing API.
"""

from pydantic import BaseModel, EmailStr, Field

from ...models.business_partner import AccessPermissionType
from .engineer import EngineerResponse, Pagination


class ClientLoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ClientEngineerListResponse(BaseModel):
    engineers: list[EngineerResponse]
    permission_type: AccessPermissionType
    pagination: Pagination


class ClientEngineerDetailResponse(BaseModel):
    engineer: EngineerResponse
    permission_type: AccessPermissionType
