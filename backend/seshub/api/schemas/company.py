"""
Company schemas.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ...models.company import CompanyType


class CompanyResponse(BaseModel):
    id: UUID
    company_type: CompanyType
    name: str
    email_domain: str | None = None
    address: str | None = None
    phone: str | None = None
    website_url: str | None = None
    contact_email: str | None = None
    max_engineers: int | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config: ClassVar[ConfigDict] = ConfigDict(from_attributes=True)


class CompanyUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    email_domain: str | None = Field(None, max_length=255)
    address: str | None = None
    phone: str | None = Field(None, max_length=20)
    website_url: str | None = Field(None, max_length=255)
    contact_email: EmailStr | None = None
    max_engineers: int | None = Field(None, ge=0)
