"""
Core authentication module.

Resolves bearer tokens into a ``Principal``: either an SES staff user or a
client user of a business partner. Staff login, registration, refresh and
logout live in ``AuthService``; client login lives in
``seshub.services.client_auth``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.stdlib import BoundLogger

from ..domain.value_objects import Email
from ..models.client_user import ClientUser
from ..models.company import CompanyType
from ..models.user import User
from ..repositories.company import CompanyRepository
from ..repositories.user import UserRepository
from ..services.permission_check import PermissionChecker
from ..services.rbac import RBACService
from .clock import utcnow
from .exceptions import AuthenticationError, ConflictError
from .logger import get_logger
from .password_service import PasswordService
from .token_blacklist import TokenBlacklistService
from .token_service import USER_TYPE_CLIENT, USER_TYPE_SES, TokenService

DEFAULT_OWNER_ROLE = "admin"


@dataclass
class Principal:
    """Authenticated caller with resolved roles and permissions."""

    id: uuid.UUID
    user_type: str
    company_id: uuid.UUID
    email: str
    name: str
    roles: list[str] = field(default_factory=list)
    permissions: list[str] = field(default_factory=list)
    ses_company_id: uuid.UUID | None = None
    client_company_id: uuid.UUID | None = None
    business_partner_id: uuid.UUID | None = None
    token: str | None = None

    @property
    def is_client(self) -> bool:
        return self.user_type == USER_TYPE_CLIENT

    @property
    def checker(self) -> PermissionChecker:
        return PermissionChecker(self.permissions, self.roles)

    def has_permission(self, resource: str, action: str, scope: str | None = None) -> bool:
        return self.checker.has_permission(resource, action, scope)


class AuthService:
    """Service for handling authentication of staff users."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        rbac_service: RBACService | None = None,
        token_blacklist: TokenBlacklistService | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self.db = db
        self.rbac = rbac_service or RBACService(db)
        self.password_service = PasswordService()
        self.token_service = TokenService()
        self.token_blacklist = token_blacklist or TokenBlacklistService()
        self.logger = logger or get_logger("auth_service")

    async def get_principal_by_token(self, token: str) -> Principal | None:
        """Resolve an access token, or None when it is invalid or revoked."""
        if await self.token_blacklist.is_token_blacklisted(token):
            self.logger.warning("auth.token_blacklisted")
            return None

        payload = self.token_service.verify_token(token)
        if not payload:
            self.logger.warning("auth.invalid_token", reason="payload_missing")
            return None

        try:
            subject = uuid.UUID(str(payload.get("sub")))
        except ValueError:
            self.logger.warning("auth.invalid_token", reason="malformed_subject")
            return None

        try:
            if payload.get("user_type") == USER_TYPE_CLIENT:
                principal = await self._client_principal(subject)
            else:
                principal = await self._staff_principal(subject, payload.get("company_id"))
        except SQLAlchemyError as exc:
            self.logger.error("auth.principal_lookup_failed", error=str(exc))
            return None

        if principal is not None:
            principal.token = token
        return principal

    async def _staff_principal(
        self, user_id: uuid.UUID, token_company_id: Any
    ) -> Principal | None:
        stmt = select(User).where(
            User.id == user_id,
            User.is_active.is_(True),
            User.is_deleted.is_(False),
        )
        user = (await self.db.execute(stmt)).scalar_one_or_none()
        if user is None:
            self.logger.warning("auth.user_not_found_for_token", user_id=str(user_id))
            return None
        if str(user.company_id) != str(token_company_id):
            self.logger.warning("auth.company_mismatch", user_id=str(user_id))
            return None

        return Principal(
            id=user.id,
            user_type=USER_TYPE_SES,
            company_id=user.company_id,
            email=user.email,
            name=user.name,
            roles=await self.rbac.get_user_roles(user.id),
            permissions=await self.rbac.get_user_permissions(user.id),
        )

    async def _client_principal(self, client_user_id: uuid.UUID) -> Principal | None:
        stmt = select(ClientUser).where(
            ClientUser.id == client_user_id,
            ClientUser.is_active.is_(True),
            ClientUser.is_deleted.is_(False),
        )
        client_user = (await self.db.execute(stmt)).scalar_one_or_none()
        if client_user is None or not client_user.business_partner.is_active:
            self.logger.warning(
                "auth.client_user_not_found_for_token", client_user_id=str(client_user_id)
            )
            return None

        partner = client_user.business_partner
        return Principal(
            id=client_user.id,
            user_type=USER_TYPE_CLIENT,
            company_id=client_user.company_id,
            email=client_user.email,
            name=client_user.name,
            roles=await self.rbac.get_client_user_roles(client_user.id),
            permissions=await self.rbac.get_client_user_permissions(client_user.id),
            ses_company_id=partner.company_id,
            client_company_id=partner.client_company_id,
            business_partner_id=partner.id,
        )

    async def authenticate_user(self, email: str, password: str) -> User | None:
        """Authenticate a staff user with email and password."""
        if not email or not password:
            return None

        stmt = select(User).where(
            User.email == email.strip().lower(),
            User.is_active.is_(True),
            User.is_deleted.is_(False),
        )
        user = (await self.db.execute(stmt)).scalar_one_or_none()
        if user is None:
            self.logger.warning("auth.login_failed_user_not_found")
            return None

        if not self.password_service.verify_password(password, user.hashed_password):
            self.logger.warning("auth.login_failed_bad_password", user_id=str(user.id))
            return None

        new_hash = self.password_service.update_hash_if_needed(
            password, user.hashed_password
        )
        if new_hash:
            user.hashed_password = new_hash
        user.last_login_at = utcnow()
        await self.db.commit()
        await self.db.refresh(user)
        return user

    def create_tokens_for_user(self, user: User) -> dict[str, Any]:
        return self.token_service.create_tokens_for_user_data(
            {
                "id": str(user.id),
                "email": user.email,
                "name": user.name,
                "company_id": str(user.company_id),
            }
        )

    async def register_company(
        self,
        company_name: str,
        email: str,
        password: str,
        name: str,
        **company_fields: Any,
    ) -> tuple[User, dict[str, Any]]:
        """Create an SES company and its first user holding the owner role."""
        normalized = Email(email).value
        existing = await self.db.execute(select(User.id).where(User.email == normalized))
        if existing.first() is not None:
            raise ConflictError("Email already registered", details={"email": normalized})
        hashed_password = self.password_service.get_password_hash(password)

        company = await CompanyRepository(self.db).create(
            name=company_name.strip(),
            company_type=CompanyType.SES,
            email_domain=Email(normalized).domain,
            **company_fields,
        )
        user = await UserRepository(self.db, company.id).create(
            email=normalized,
            name=name,
            hashed_password=hashed_password,
            is_active=True,
        )
        await self.db.commit()
        if not await self.rbac.list_roles():
            await self.rbac.initialize_default_roles_and_permissions()
        await self.rbac.assign_role(user.id, DEFAULT_OWNER_ROLE)

        self.logger.info(
            "Company registered",
            company_id=str(company.id),
            user_id=str(user.id),
        )
        return user, self.create_tokens_for_user(user)

    async def refresh_access_token(self, refresh_token: str) -> dict[str, Any]:
        payload = self.token_service.verify_token(refresh_token, "refresh")
        if not payload or payload.get("user_type", USER_TYPE_SES) != USER_TYPE_SES:
            raise AuthenticationError("Invalid or expired refresh token")
        if await self.token_blacklist.is_token_blacklisted(refresh_token):
            raise AuthenticationError("Invalid or expired refresh token")

        try:
            user_id = uuid.UUID(str(payload.get("sub")))
            company_id = uuid.UUID(str(payload.get("company_id")))
        except ValueError as exc:
            raise AuthenticationError("Invalid or expired refresh token") from exc

        user = await UserRepository(self.db, company_id).get_by_id(user_id)
        if user is None or not user.is_active:
            raise AuthenticationError("User not found")

        return self.create_tokens_for_user(user)

    async def logout_user(
        self, access_token: str, refresh_token: str | None = None
    ) -> bool:
        """Blacklist the access token and, if given, the refresh token."""
        success = await self.token_blacklist.blacklist_token(access_token)
        if not success:
            self.logger.error("Failed to blacklist access token")

        if refresh_token and not await self.token_blacklist.blacklist_token(refresh_token):
            self.logger.error("Failed to blacklist refresh token")
            success = False

        if success:
            self.logger.info("User logged out successfully")
        return success
