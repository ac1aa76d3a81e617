"""Staff user management within one SES company."""

import uuid
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, NotFoundError
from ..core.logger import get_logger
from ..core.password_service import PasswordService
from ..domain.value_objects import Email, PhoneNumber
from ..models.user import User
from ..repositories.user import UserRepository
from .rbac import RBACService

logger = get_logger(__name__)


class UserService:
    """Service for user management operations."""

    def __init__(
        self,
        db: AsyncSession,
        company_id: uuid.UUID,
        rbac_service: RBACService | None = None,
        password_service: PasswordService | None = None,
    ) -> None:
        self.db = db
        self.company_id = company_id
        self.user_repo = UserRepository(db, company_id)
        self.rbac = rbac_service or RBACService(db)
        self.password_service = password_service or PasswordService()

    async def create_user(
        self,
        email: str,
        name: str,
        password: str,
        phone: str | None = None,
        roles: list[str] | None = None,
        created_by: uuid.UUID | None = None,
    ) -> User:
        """
        Create a staff user of this company and grant ``roles``.

        Raises:
            ConflictError: the email is already registered (in any company)
            NotFoundError: one of ``roles`` does not exist
            ValueError: the password is too weak or the phone is invalid
        """
        normalized = Email(email).value
        if await self.user_repo.email_exists(normalized):
            raise ConflictError("Email already registered", details={"email": normalized})

        # Validate all roles before writing anything
        for role_name in roles or []:
            await self.rbac.get_role(role_name)

        try:
            user = await self.user_repo.create(
                email=normalized,
                name=name.strip(),
                hashed_password=self.password_service.get_password_hash(password),
                phone=PhoneNumber(phone).value if phone else None,
                is_active=True,
            )
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConflictError(
                "Email already registered", details={"email": normalized}
            ) from exc

        for role_name in roles or []:
            await self.rbac.assign_role(user.id, role_name, granted_by=created_by)

        logger.info(
            "User created",
            user_id=str(user.id),
            company_id=str(self.company_id),
            roles=roles or [],
        )
        return user

    async def get_user(self, user_id: uuid.UUID) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User", details={"user_id": str(user_id)})
        return user

    async def list_users(
        self, skip: int = 0, limit: int = 100, search: str | None = None
    ) -> tuple[list[dict[str, Any]], int]:
        """Users of the company with their role names, plus the total count."""
        if search and search.strip():
            users = await self.user_repo.search_users(search, skip=skip, limit=limit)
        else:
            users = await self.user_repo.get_all(
                skip=skip, limit=limit, order_by=User.created_at
            )

        total = await self.user_repo.count()
        items = []
        for user in users:
            items.append(
                {
                    "id": user.id,
                    "email": user.email,
                    "name": user.name,
                    "phone": user.phone,
                    "is_active": user.is_active,
                    "created_at": user.created_at,
                    "last_login_at": user.last_login_at,
                    "roles": await self.rbac.get_user_roles(user.id),
                }
            )
        return items, total

    async def assign_role(
        self, user_id: uuid.UUID, role_name: str, granted_by: uuid.UUID | None = None
    ) -> list[str]:
        await self.get_user(user_id)
        await self.rbac.assign_role(user_id, role_name, granted_by=granted_by)
        return await self.rbac.get_user_roles(user_id)

    async def revoke_role(self, user_id: uuid.UUID, role_name: str) -> list[str]:
        await self.get_user(user_id)
        if not await self.rbac.revoke_role(user_id, role_name):
            raise NotFoundError("Role assignment", details={"role": role_name})
        return await self.rbac.get_user_roles(user_id)

    async def deactivate_user(self, user_id: uuid.UUID) -> User:
        await self.get_user(user_id)
        user = await self.user_repo.deactivate_user(user_id)
        await self.db.commit()
        logger.info("User deactivated", user_id=str(user_id))
        return user
