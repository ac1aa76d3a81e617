"""
User repository for staff account operations with company isolation.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from seshub.models.user import User

from .base import TenantRepository


class UserRepository(TenantRepository[User]):
    """Repository for user operations with company isolation."""

    def __init__(self, session: AsyncSession, company_id: UUID) -> None:
        super().__init__(session, User, company_id)

    async def get_by_email(self, email: str) -> User | None:
        """Get user by email within company."""
        return await self.get_by_field("email", email.lower())

    async def get_active_users(self, skip: int = 0, limit: int = 100) -> list[User]:
        """Get all active users within company."""
        return await self.get_all(
            skip=skip, limit=limit, filters={"is_active": True}, order_by=User.name
        )

    async def search_users(
        self, search_term: str, skip: int = 0, limit: int = 100
    ) -> list[User]:
        """Search users by email or name within company."""
        return await self.search(
            search_fields=["email", "name"],
            search_term=search_term,
            skip=skip,
            limit=limit,
        )

    async def deactivate_user(self, user_id: UUID) -> User | None:
        """Deactivate a user."""
        return await self.update(user_id, is_active=False)

    async def email_exists(self, email: str) -> bool:
        """Staff emails are unique across all companies."""
        stmt = select(func.count(User.id)).where(User.email == email.lower())
        result = await self.session.execute(stmt)
        return bool(result.scalar())
