"""
Role-Based Access Control (RBAC) service for managing permissions and roles.
"""

import uuid
from collections.abc import Iterable

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.exceptions import ConflictError, NotFoundError
from ..core.logger import get_logger
from ..models.rbac import ClientUserRole, Permission, Role, UserRole
from .permission_cache import PermissionCache
from .permission_catalog import PERMISSIONS, ROLES
from .permission_check import build_permission_name

logger = get_logger(__name__)


class RBACService:
    """Service for RBAC operations."""

    def __init__(self, db: AsyncSession, cache: PermissionCache | None = None) -> None:
        self.db = db
        self.cache = cache

    async def initialize_default_roles_and_permissions(self) -> dict[str, int]:
        """Seed the permission catalog and system roles. Safe to run repeatedly."""

        existing_permissions_result = await self.db.execute(select(Permission))
        created_permissions = {
            permission.name: permission
            for permission in existing_permissions_result.scalars().all()
        }

        permissions_created = 0
        for definition in PERMISSIONS:
            if definition.name in created_permissions:
                continue
            permission = Permission(
                name=definition.name,
                display_name=definition.display_name,
                description=definition.description,
                resource=definition.resource,
                action=definition.action,
                scope=definition.scope,
                is_system=True,
            )
            self.db.add(permission)
            created_permissions[definition.name] = permission
            permissions_created += 1

        if permissions_created:
            await self.db.flush()

        existing_roles_result = await self.db.execute(
            select(Role).options(selectinload(Role.permissions))
        )
        created_roles = {role.name: role for role in existing_roles_result.scalars().all()}

        roles_created = 0
        links_created = 0
        for definition in ROLES:
            role = created_roles.get(definition.name)
            if role is None:
                role = Role(
                    name=definition.name,
                    display_name=definition.display_name,
                    description=definition.description,
                    is_system=True,
                    is_active=True,
                    permissions=[],
                )
                self.db.add(role)
                created_roles[definition.name] = role
                roles_created += 1

            # Add missing permissions to role
            granted = {permission.name for permission in role.permissions}
            for permission_name in definition.permissions:
                if permission_name not in granted:
                    role.permissions.append(created_permissions[permission_name])
                    links_created += 1

        if roles_created or links_created:
            await self.db.flush()

        await self.db.commit()

        summary = {
            "permissions_created": permissions_created,
            "roles_created": roles_created,
            "role_permissions_created": links_created,
        }
        logger.info("RBAC catalog initialized", **summary)
        return summary

    async def get_role(self, role_name: str) -> Role:
        result = await self.db.execute(
            select(Role).where(Role.name == role_name, Role.is_active.is_(True))
        )
        role = result.scalar_one_or_none()
        if role is None:
            raise NotFoundError("Role", details={"role": role_name})
        return role

    async def _roles_for_user(self, user_id: uuid.UUID) -> list[Role]:
        result = await self.db.execute(
            select(Role)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id, Role.is_active.is_(True))
            .order_by(Role.name)
        )
        return list(result.scalars().all())

    async def _roles_for_client_user(self, client_user_id: uuid.UUID) -> list[Role]:
        result = await self.db.execute(
            select(Role)
            .join(ClientUserRole, ClientUserRole.role_id == Role.id)
            .where(
                ClientUserRole.client_user_id == client_user_id,
                Role.is_active.is_(True),
            )
            .order_by(Role.name)
        )
        return list(result.scalars().all())

    @staticmethod
    def _permission_names(roles: Iterable[Role]) -> list[str]:
        return sorted({permission.name for role in roles for permission in role.permissions})

    async def get_user_roles(self, user_id: uuid.UUID) -> list[str]:
        if self.cache:
            cached = await self.cache.get_user_roles(user_id)
            if cached is not None:
                return cached

        roles = [role.name for role in await self._roles_for_user(user_id)]
        if self.cache:
            await self.cache.set_user_roles(user_id, roles)
        return roles

    async def get_user_permissions(self, user_id: uuid.UUID) -> list[str]:
        if self.cache:
            cached = await self.cache.get_user_permissions(user_id)
            if cached is not None:
                return cached

        permissions = self._permission_names(await self._roles_for_user(user_id))
        if self.cache:
            await self.cache.set_user_permissions(user_id, permissions)
        return permissions

    async def get_client_user_roles(self, client_user_id: uuid.UUID) -> list[str]:
        if self.cache:
            cached = await self.cache.get_user_roles(client_user_id)
            if cached is not None:
                return cached

        roles = [role.name for role in await self._roles_for_client_user(client_user_id)]
        if self.cache:
            await self.cache.set_user_roles(client_user_id, roles)
        return roles

    async def get_client_user_permissions(self, client_user_id: uuid.UUID) -> list[str]:
        if self.cache:
            cached = await self.cache.get_user_permissions(client_user_id)
            if cached is not None:
                return cached

        permissions = self._permission_names(
            await self._roles_for_client_user(client_user_id)
        )
        if self.cache:
            await self.cache.set_user_permissions(client_user_id, permissions)
        return permissions

    async def has_permission(
        self,
        user_id: uuid.UUID,
        resource: str,
        action: str,
        scope: str | None = None,
    ) -> bool:
        permissions = await self.get_user_permissions(user_id)
        return build_permission_name(resource, action, scope) in permissions

    async def has_any_permission(
        self, user_id: uuid.UUID, required: Iterable[tuple[str, ...]]
    ) -> bool:
        permissions = set(await self.get_user_permissions(user_id))
        return any(build_permission_name(*triple) in permissions for triple in required)

    async def has_role(self, user_id: uuid.UUID, roles: Iterable[str]) -> bool:
        user_roles = set(await self.get_user_roles(user_id))
        return any(role in user_roles for role in roles)

    async def _clear_cache(self, user_id: uuid.UUID) -> None:
        if self.cache:
            await self.cache.clear_user_cache(user_id)

    async def assign_role(
        self,
        user_id: uuid.UUID,
        role_name: str,
        granted_by: uuid.UUID | None = None,
    ) -> UserRole:
        """Grant ``role_name`` to a staff user."""
        role = await self.get_role(role_name)

        existing = await self.db.execute(
            select(UserRole).where(UserRole.user_id == user_id, UserRole.role_id == role.id)
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(
                "User already has this role", details={"role": role_name}
            )

        user_role = UserRole(user_id=user_id, role_id=role.id, granted_by=granted_by)
        self.db.add(user_role)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConflictError(
                "User already has this role", details={"role": role_name}
            ) from exc
        await self.db.refresh(user_role)
        await self._clear_cache(user_id)

        logger.info(
            "Role assigned",
            user_id=str(user_id),
            role=role_name,
            granted_by=str(granted_by) if granted_by else None,
        )
        return user_role

    async def revoke_role(self, user_id: uuid.UUID, role_name: str) -> bool:
        role = await self.get_role(role_name)
        result = await self.db.execute(
            delete(UserRole).where(UserRole.user_id == user_id, UserRole.role_id == role.id)
        )
        await self.db.commit()
        await self._clear_cache(user_id)

        revoked = (result.rowcount or 0) > 0
        logger.info("Role revoked", user_id=str(user_id), role=role_name, revoked=revoked)
        return revoked

    async def assign_client_role(
        self,
        client_user_id: uuid.UUID,
        role_name: str,
        granted_by: uuid.UUID | None = None,
    ) -> ClientUserRole:
        """Grant ``role_name`` to a client user; an existing grant is returned as-is."""
        role = await self.get_role(role_name)

        existing_result = await self.db.execute(
            select(ClientUserRole).where(
                ClientUserRole.client_user_id == client_user_id,
                ClientUserRole.role_id == role.id,
            )
        )
        existing = existing_result.scalar_one_or_none()
        if existing is not None:
            return existing

        client_role = ClientUserRole(
            client_user_id=client_user_id, role_id=role.id, granted_by=granted_by
        )
        self.db.add(client_role)
        await self.db.flush()
        await self._clear_cache(client_user_id)

        logger.info(
            "Client role assigned", client_user_id=str(client_user_id), role=role_name
        )
        return client_role

    async def list_roles(self) -> list[Role]:
        result = await self.db.execute(
            select(Role).where(Role.is_active.is_(True)).order_by(Role.name)
        )
        return list(result.scalars().all())

    async def list_permissions(self, resource: str | None = None) -> list[Permission]:
        stmt = select(Permission).order_by(Permission.resource, Permission.name)
        if resource:
            stmt = stmt.where(Permission.resource == resource)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
