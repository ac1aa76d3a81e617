"""
Project repository for project management operations with company isolation.
"""

from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from seshub.models.project import Project, ProjectStatus

from .base import TenantRepository


class ProjectRepository(TenantRepository[Project]):
    """Repository for project operations with company isolation."""

    def __init__(self, session: AsyncSession, company_id: UUID) -> None:
        super().__init__(session, Project, company_id)

    async def get_by_name(self, name: str) -> Project | None:
        """Get project by name within company."""
        return await self.get_by_field("name", name)

    async def list_projects(
        self,
        skip: int = 0,
        limit: int = 20,
        status: ProjectStatus | None = None,
        search: str | None = None,
    ) -> tuple[list[Project], int]:
        """Page of projects plus the total matching count."""
        conditions = list(self._scope())
        if status is not None:
            conditions.append(Project.status == status)
        if search and search.strip():
            term = f"%{search.strip()}%"
            conditions.append(
                Project.name.ilike(term) | Project.client_company.ilike(term)
            )

        total_stmt = select(func.count(Project.id)).where(and_(*conditions))
        total = int((await self.session.execute(total_stmt)).scalar() or 0)

        stmt = (
            select(Project)
            .where(and_(*conditions))
            .order_by(Project.updated_at.desc(), Project.id)
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def update_status(
        self, project_id: UUID, status: ProjectStatus
    ) -> Project | None:
        """Update project status."""
        return await self.update(project_id, status=status)

    async def check_name_availability(
        self, name: str, exclude_project_id: UUID | None = None
    ) -> bool:
        """Check if project name is available within company."""
        stmt = select(Project.id).where(and_(Project.name == name, *self._scope()))
        if exclude_project_id:
            stmt = stmt.where(Project.id != exclude_project_id)
        result = await self.session.execute(stmt)
        return result.scalars().first() is None
