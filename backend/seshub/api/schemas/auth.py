"""
Authentication API schemas for staff and client users.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator


class UserBase(BaseModel):
    """Base user schema with common fields"""

    email: EmailStr = Field(..., description="User email address")
    name: str = Field(..., min_length=1, max_length=255, description="User full name")


class RegisterRequest(UserBase):
    """Company registration: an SES company and its first administrator."""

    company_name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=8, description="User password")
    confirm_password: str = Field(..., min_length=8, description="Password confirmation")
    phone: str | None = Field(None, max_length=20)
    address: str | None = None

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self

    model_config: ClassVar[ConfigDict] = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "company_name": "デモSES企業",
                    "email": "admin@demo-ses.example.com",
                    "name": "システム管理者",
                    "password": "Admin@123",
                    "confirm_password": "Admin@123",
                }
            ]
        }
    )


class UserResponse(UserBase):
    """User response schema"""

    id: UUID = Field(..., description="Unique user identifier")
    company_id: UUID = Field(..., description="Company identifier")
    is_active: bool = Field(default=True, description="Whether the user is active")
    created_at: datetime = Field(..., description="User creation timestamp")
    last_login_at: datetime | None = Field(None, description="Last login timestamp")
    roles: list[str] = Field(default_factory=list)

    model_config: ClassVar[ConfigDict] = ConfigDict(from_attributes=True)


class Token(BaseModel):
    """JWT token response schema"""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Token expiration time in seconds")


class LoginRequest(BaseModel):
    """Login request schema"""

    email: EmailStr = Field(..., description="User email")
    password: str = Field(..., min_length=1, description="User password")


class LoginResponse(BaseModel):
    """Login response with user and token information"""

    user: UserResponse
    token: Token


class RefreshTokenRequest(BaseModel):
    refresh_token: str | None = Field(None, description="Refresh token")


class AccessTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class LogoutResponse(BaseModel):
    message: str = Field(default="Successfully logged out")


class PrincipalResponse(BaseModel):
    """The authenticated caller, staff or client."""

    id: UUID
    user_type: str
    company_id: UUID
    email: str
    name: str
    roles: list[str]
    highest_role: str | None = None
    ses_company_id: UUID | None = None
    client_company_id: UUID | None = None
    business_partner_id: UUID | None = None


class MyPermissionsResponse(BaseModel):
    user_id: UUID
    user_type: str
    roles: list[str]
    permissions: list[str]


class CompanyRef(BaseModel):
    id: UUID
    name: str


class ClientUserProfile(BaseModel):
    id: UUID
    email: str
    name: str
    department: str | None = None
    position: str | None = None
    user_type: str
    client_company: CompanyRef
    ses_company: CompanyRef
    roles: list[str]
    permissions: list[str]


class ClientLoginResponse(Token):
    user: ClientUserProfile
