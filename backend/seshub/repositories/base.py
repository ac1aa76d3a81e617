"""
Base repository classes for data access patterns.
"""

from abc import ABC
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from seshub.core.logger import get_logger
from seshub.models.base import Base

logger = get_logger()
ModelType = TypeVar("ModelType", bound=Base)

MAX_SEARCH_TERM_LENGTH = 200


class BaseRepository(ABC, Generic[ModelType]):
    """Base repository with common async CRUD operations.

    Soft-deleted rows are invisible when the model carries ``is_deleted``.
    Writes use ``flush``; committing is left to the caller.
    """

    protected_fields = frozenset({"id", "created_at"})

    def __init__(self, session: AsyncSession, model: type[ModelType]) -> None:
        self.session = session
        self.model = model

    def _scope(self) -> list[ColumnElement[bool]]:
        """Conditions every query of this repository must carry."""
        conditions: list[ColumnElement[bool]] = []
        if hasattr(self.model, "is_deleted"):
            conditions.append(self.model.is_deleted.is_(False))
        return conditions

    def _filter_conditions(
        self, filters: dict[str, Any] | None
    ) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = []
        for field, value in (filters or {}).items():
            if not hasattr(self.model, field):
                continue
            column_attr = getattr(self.model, field)
            if isinstance(value, bool) or value is None:
                conditions.append(column_attr.is_(value))
            elif isinstance(value, list | tuple | set):
                conditions.append(column_attr.in_(list(value)))
            else:
                conditions.append(column_attr == value)
        return conditions

    async def create(self, **kwargs: Any) -> ModelType:
        """Create a new entity."""
        try:
            instance = self.model(**kwargs)
            self.session.add(instance)
            await self.session.flush()
            await self.session.refresh(instance)

            logger.info(
                "Created entity",
                model=self.model.__name__,
                entity_id=str(getattr(instance, "id", None)),
            )
            return instance
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error(
                "Failed to create entity",
                model=self.model.__name__,
                error=str(exc),
            )
            raise exc

    async def get_by_id(self, entity_id: UUID) -> ModelType | None:
        """Get entity by ID."""
        stmt = select(self.model).where(
            and_(self.model.id == entity_id, *self._scope())
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        filters: dict[str, Any] | None = None,
        order_by: Any = None,
    ) -> list[ModelType]:
        """Get all entities with optional filtering."""
        stmt = select(self.model).where(
            and_(*self._scope(), *self._filter_conditions(filters))
        )
        if order_by is not None:
            stmt = stmt.order_by(order_by)

        stmt = stmt.offset(skip).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_field(
        self, field_name: str, field_value: object
    ) -> ModelType | None:
        """Get a single entity by field value."""
        if not field_name.isidentifier() or not hasattr(self.model, field_name):
            logger.warning(
                "Field not found in model",
                field_name=field_name,
                model=self.model.__name__,
            )
            return None

        stmt = select(self.model).where(
            and_(
                *self._scope(),
                *self._filter_conditions({field_name: field_value}),
            )
        )
        try:
            result = await self.session.execute(stmt)
            return result.scalars().first()
        except SQLAlchemyError as exc:
            logger.error("Database error in get_by_field", error=str(exc))
            raise exc

    async def update(self, entity_id: UUID, **kwargs: Any) -> ModelType | None:
        """Update entity by ID. Protected fields are ignored."""
        try:
            instance = await self.get_by_id(entity_id)
            if not instance:
                return None

            update_data = dict(kwargs)
            if hasattr(instance, "updated_at"):
                update_data["updated_at"] = datetime.now(UTC)

            ignored_fields = []
            for field, value in update_data.items():
                if field in self.protected_fields:
                    ignored_fields.append(field)
                    continue
                if hasattr(instance, field):
                    setattr(instance, field, value)

            if ignored_fields:
                logger.warning(
                    "Ignored protected fields during update",
                    fields=ignored_fields,
                    model=self.model.__name__,
                )

            await self.session.flush()
            await self.session.refresh(instance)
            logger.info(
                "Updated entity",
                model=self.model.__name__,
                entity_id=str(entity_id),
            )
            return instance
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error(
                "Failed to update entity",
                model=self.model.__name__,
                entity_id=str(entity_id),
                error=str(exc),
            )
            raise exc

    async def delete(self, entity_id: UUID, *, soft_delete: bool = True) -> bool:
        """Delete entity (soft or hard delete)."""
        try:
            instance = await self.get_by_id(entity_id)
            if not instance:
                return False

            if soft_delete and hasattr(instance, "is_deleted"):
                instance.is_deleted = True
                instance.deleted_at = datetime.now(UTC)
            else:
                await self.session.delete(instance)
            await self.session.flush()

            logger.info(
                "Deleted entity",
                model=self.model.__name__,
                entity_id=str(entity_id),
                soft=soft_delete,
            )
            return True
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error(
                "Failed to delete entity",
                model=self.model.__name__,
                entity_id=str(entity_id),
                error=str(exc),
            )
            raise exc

    async def count(self, filters: dict[str, Any] | None = None) -> int:
        """Count entities with optional filtering."""
        stmt = select(func.count(self.model.id)).where(
            and_(*self._scope(), *self._filter_conditions(filters))
        )
        result = await self.session.execute(stmt)
        return int(result.scalar() or 0)

    async def exists(self, entity_id: UUID) -> bool:
        """Check if entity exists."""
        stmt = select(self.model.id).where(
            and_(self.model.id == entity_id, *self._scope())
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def search(
        self,
        search_fields: list[str],
        search_term: str,
        skip: int = 0,
        limit: int = 100,
        filters: dict[str, Any] | None = None,
    ) -> list[ModelType]:
        """Case-insensitive substring search over the given columns."""
        stmt = self._search_statement(search_fields, search_term, filters)
        if stmt is None:
            return []

        skip = max(0, skip)
        limit = max(1, min(limit, 1000))
        stmt = stmt.offset(skip).limit(limit)

        try:
            result = await self.session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as exc:
            logger.error("Database error in search", error=str(exc))
            raise exc

    def _search_statement(
        self,
        search_fields: list[str],
        search_term: str,
        filters: dict[str, Any] | None = None,
    ) -> Any:
        validated_fields = [
            field
            for field in search_fields
            if field.isidentifier() and hasattr(self.model, field)
        ]
        term = (search_term or "").strip()[:MAX_SEARCH_TERM_LENGTH]
        if not validated_fields or not term:
            return None

        return select(self.model).where(
            and_(*self._scope(), *self._filter_conditions(filters)),
            or_(*(getattr(self.model, f).ilike(f"%{term}%") for f in validated_fields)),
        )

    async def bulk_update(
        self, filters: dict[str, Any], updates: dict[str, Any]
    ) -> int:
        """Bulk update entities matching ``filters`` within this repository's scope."""
        try:
            values = {
                key: value
                for key, value in updates.items()
                if key not in self.protected_fields
            }
            if hasattr(self.model, "updated_at"):
                values["updated_at"] = datetime.now(UTC)

            stmt = (
                update(self.model)
                .where(and_(*self._scope(), *self._filter_conditions(filters)))
                .values(**values)
            )
            result = await self.session.execute(
                stmt.execution_options(synchronize_session=False)
            )
            await self.session.flush()

            logger.info(
                "Bulk updated records",
                model=self.model.__name__,
                updated_count=result.rowcount,
            )
            return int(result.rowcount or 0)
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error(
                "Failed to bulk update",
                model=self.model.__name__,
                error=str(exc),
            )
            raise exc


class TenantRepository(BaseRepository[ModelType]):
    """Repository with company isolation."""

    protected_fields = frozenset({"id", "company_id", "created_at"})

    def __init__(
        self, session: AsyncSession, model: type[ModelType], company_id: UUID
    ) -> None:
        super().__init__(session, model)
        self.company_id = company_id

    def _scope(self) -> list[ColumnElement[bool]]:
        return [self.model.company_id == self.company_id, *super()._scope()]

    async def create(self, **kwargs: Any) -> ModelType:
        """Create entity owned by this repository's company."""
        kwargs["company_id"] = self.company_id
        return await super().create(**kwargs)
