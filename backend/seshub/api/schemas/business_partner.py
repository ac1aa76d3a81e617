"""
Business partner, access control and client user management schemas.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ...models.business_partner import AccessPermissionType
from .company import CompanyResponse
from .engineer import EngineerResponse


class BusinessPartnerCreate(BaseModel):
    client_company_name: str = Field(..., min_length=1, max_length=255)
    client_email_domain: str | None = Field(None, max_length=255)
    client_address: str | None = None
    client_phone: str | None = Field(None, max_length=20)
    access_url: str | None = Field(None, max_length=255)


class BusinessPartnerUpdate(BaseModel):
    access_url: str | None = Field(None, max_length=255)
    is_active: bool | None = None


class BusinessPartnerResponse(BaseModel):
    id: UUID
    company_id: UUID
    client_company_id: UUID
    client_company: CompanyResponse
    access_url: str | None = None
    url_token: str | None = None
    is_active: bool
    created_by: UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config: ClassVar[ConfigDict] = ConfigDict(from_attributes=True)


class BusinessPartnerListResponse(BaseModel):
    partners: list[BusinessPartnerResponse]
    total: int
    page: int
    limit: int


class AccessPermissionUpdate(BaseModel):
    permission_type: AccessPermissionType
    engineer_ids: list[UUID] = Field(default_factory=list)


class AccessPermissionResponse(BaseModel):
    business_partner_id: UUID
    permission_type: AccessPermissionType
    engineer_ids: list[UUID]
    ng_engineer_ids: list[UUID]


class NgListAdd(BaseModel):
    engineer_id: UUID
    reason: str | None = Field(None, max_length=1000)


class NgListItem(BaseModel):
    id: UUID
    engineer_id: UUID
    reason: str | None = None
    created_by: UUID | None = None
    created_at: datetime
    engineer: EngineerResponse | None = None

    model_config: ClassVar[ConfigDict] = ConfigDict(from_attributes=True)


class ClientUserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: str = Field(..., min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=20)
    department: str | None = Field(None, max_length=100)
    position: str | None = Field(None, max_length=100)
    role_name: str = Field(default="client_admin", max_length=50)


class ClientUserResponse(BaseModel):
    id: UUID
    business_partner_id: UUID
    email: str
    name: str
    phone: str | None = None
    department: str | None = None
    position: str | None = None
    is_active: bool
    failed_login_count: int
    account_locked_until: datetime | None = None
    last_login_at: datetime | None = None
    created_at: datetime

    model_config: ClassVar[ConfigDict] = ConfigDict(from_attributes=True)
