"""
Authentication of business partner client users.

Wrong passwords are counted per account. Reaching the configured thresholds
locks the account for 30 minutes, then 2 hours, and finally until an
administrator unlocks it.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import as_utc, utcnow
from ..core.config import settings
from ..core.exceptions import (
    AccountLockedError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
)
from ..core.logger import get_logger
from ..core.password_service import PasswordService
from ..core.token_service import USER_TYPE_CLIENT, TokenService
from ..domain.value_objects import Email
from ..models.business_partner import BusinessPartner
from ..models.client_user import ClientUser
from ..repositories.client_user import ClientUserRepository
from .rbac import RBACService

logger = get_logger(__name__)

PERMANENT_LOCK_UNTIL = datetime(2099, 12, 31, tzinfo=UTC)
INVALID_CREDENTIALS = "Invalid email or password"


def lock_until_for(failed_count: int, now: datetime) -> datetime | None:
    """Lock expiry after ``failed_count`` consecutive failures, or None."""
    if failed_count >= settings.CLIENT_LOCK_PERMANENT_THRESHOLD:
        return PERMANENT_LOCK_UNTIL
    if failed_count >= settings.CLIENT_LOCK_SECOND_THRESHOLD:
        return now + timedelta(minutes=settings.CLIENT_LOCK_SECOND_MINUTES)
    if failed_count >= settings.CLIENT_LOCK_FIRST_THRESHOLD:
        return now + timedelta(minutes=settings.CLIENT_LOCK_FIRST_MINUTES)
    return None


class ClientAuthService:
    """Login, refresh and lockout handling for client users."""

    def __init__(
        self,
        db: AsyncSession,
        rbac_service: RBACService | None = None,
        token_service: TokenService | None = None,
        password_service: PasswordService | None = None,
    ) -> None:
        self.db = db
        self.repo = ClientUserRepository(db)
        self.rbac = rbac_service or RBACService(db)
        self.token_service = token_service or TokenService()
        self.password_service = password_service or PasswordService()

    async def _claims(self, client_user: ClientUser) -> dict[str, Any]:
        partner = client_user.business_partner
        return {
            "sub": str(client_user.id),
            "email": client_user.email,
            "name": client_user.name,
            "company_id": str(client_user.company_id),
            "client_company_id": str(partner.client_company_id),
            "ses_company_id": str(partner.company_id),
            "business_partner_id": str(partner.id),
            "roles": await self.rbac.get_client_user_roles(client_user.id),
            "permissions": await self.rbac.get_client_user_permissions(client_user.id),
        }

    @staticmethod
    def _profile(client_user: ClientUser, claims: dict[str, Any]) -> dict[str, Any]:
        partner = client_user.business_partner
        return {
            "id": client_user.id,
            "email": client_user.email,
            "name": client_user.name,
            "department": client_user.department,
            "position": client_user.position,
            "user_type": USER_TYPE_CLIENT,
            "client_company": {
                "id": partner.client_company.id,
                "name": partner.client_company.name,
            },
            "ses_company": {
                "id": partner.ses_company.id,
                "name": partner.ses_company.name,
            },
            "roles": claims["roles"],
            "permissions": claims["permissions"],
        }

    async def login(self, email: str, password: str) -> dict[str, Any]:
        client_user = await self.repo.get_by_email(email)
        if client_user is None:
            logger.warning("Client login failed: unknown email")
            raise AuthenticationError(INVALID_CREDENTIALS)

        now = utcnow()
        locked_until = as_utc(client_user.account_locked_until)
        if locked_until is not None and locked_until > now:
            logger.warning(
                "Client login rejected: account locked",
                client_user_id=str(client_user.id),
            )
            raise AccountLockedError(locked_until)

        if not client_user.is_active:
            raise AuthorizationError("Account is disabled")
        if not client_user.business_partner.is_active:
            raise AuthorizationError("Business partner relationship is inactive")

        if not self.password_service.verify_password(password, client_user.hashed_password):
            failed = (client_user.failed_login_count or 0) + 1
            client_user.failed_login_count = failed
            client_user.account_locked_until = lock_until_for(failed, now)
            await self.db.commit()

            logger.warning(
                "Client login failed: wrong password",
                client_user_id=str(client_user.id),
                failed_login_count=failed,
                locked=client_user.account_locked_until is not None,
            )
            raise AuthenticationError(
                INVALID_CREDENTIALS,
                details={
                    "remaining_attempts": max(
                        0, settings.CLIENT_LOCK_FIRST_THRESHOLD - failed
                    )
                },
            )

        client_user.failed_login_count = 0
        client_user.account_locked_until = None
        client_user.last_login_at = now
        new_hash = self.password_service.update_hash_if_needed(
            password, client_user.hashed_password
        )
        if new_hash:
            client_user.hashed_password = new_hash
        await self.db.commit()

        claims = await self._claims(client_user)
        logger.info(
            "Client user logged in",
            client_user_id=str(client_user.id),
            business_partner_id=claims["business_partner_id"],
        )
        return {
            "access_token": self.token_service.create_client_access_token(claims),
            "refresh_token": self.token_service.create_client_refresh_token(
                claims["sub"], claims["company_id"]
            ),
            "token_type": "bearer",
            "expires_in": settings.CLIENT_ACCESS_TOKEN_EXPIRE_HOURS * 3600,
            "user": self._profile(client_user, claims),
        }

    async def refresh(self, refresh_token: str) -> dict[str, Any]:
        payload = self.token_service.verify_token(refresh_token, "refresh")
        if not payload or payload.get("user_type") != USER_TYPE_CLIENT:
            raise AuthenticationError("Invalid refresh token")

        try:
            client_user_id = uuid.UUID(str(payload.get("sub")))
        except ValueError as exc:
            raise AuthenticationError("Invalid refresh token") from exc

        client_user = await self.repo.get_by_id(client_user_id)
        if client_user is None or not client_user.is_active:
            raise AuthenticationError("User not found")

        claims = await self._claims(client_user)
        return {
            "access_token": self.token_service.create_client_access_token(claims),
            "token_type": "bearer",
            "expires_in": settings.CLIENT_ACCESS_TOKEN_EXPIRE_HOURS * 3600,
        }

    async def unlock(self, partner: BusinessPartner, client_user_id: uuid.UUID) -> ClientUser:
        client_user = await self.repo.get_for_partner(partner.id, client_user_id)
        if client_user is None:
            raise NotFoundError("Client user")

        client_user.failed_login_count = 0
        client_user.account_locked_until = None
        await self.db.commit()
        await self.db.refresh(client_user)

        logger.info(
            "Client account unlocked",
            client_user_id=str(client_user_id),
            business_partner_id=str(partner.id),
        )
        return client_user

    async def create_client_user(
        self,
        partner: BusinessPartner,
        email: str,
        password: str,
        name: str,
        role_name: str = "client_admin",
        created_by: uuid.UUID | None = None,
        **profile: Any,
    ) -> ClientUser:
        """Create a client user of ``partner`` and grant ``role_name``."""
        normalized = Email(email).value
        if await self.repo.get_by_email(normalized) is not None:
            raise ConflictError("Email already registered", details={"email": normalized})

        client_user = await self.repo.create(
            company_id=partner.client_company_id,
            business_partner_id=partner.id,
            email=normalized,
            hashed_password=self.password_service.get_password_hash(password),
            name=name,
            is_active=True,
            failed_login_count=0,
            **profile,
        )
        await self.rbac.assign_client_role(client_user.id, role_name, granted_by=created_by)
        await self.db.commit()
        await self.db.refresh(client_user)

        logger.info(
            "Client user created",
            client_user_id=str(client_user.id),
            business_partner_id=str(partner.id),
            role=role_name,
        )
        return client_user
