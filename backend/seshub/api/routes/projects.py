"""Project management endpoints with company isolation."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.auth import Principal
from ...core.database import get_db
from ...core.exceptions import SESHubError
from ...core.logger import get_logger
from ...domain.value_objects import DateRange
from ...models.project import Project, ProjectStatus
from ...repositories.project import ProjectRepository
from ..dependencies import get_current_company_id, get_current_staff, require_permission
from ..schemas.project import (
    ProjectCreate,
    ProjectListResponse,
    ProjectResponse,
    ProjectUpdate,
)

router = APIRouter(dependencies=[Depends(get_current_staff)])
logger = get_logger(__name__)


def _handle_integrity_error(
    ie: IntegrityError,
    name_field: str | None = None,
    operation: str = "operation",
) -> HTTPException:
    """Convert IntegrityError to an HTTPException with a sanitized message.

    Full error details are logged server-side; clients only learn whether the
    project name was taken.
    """
    logger.warning(
        "IntegrityError during project write",
        operation=operation,
        error_type=type(ie).__name__,
        original_error=str(ie.orig) if hasattr(ie, "orig") else None,
        attempted_name=name_field,
    )

    # SQLite reports the column list instead of the constraint name
    original = str(ie.orig)
    if (
        "uq_project_company_name" in original
        or "projects.company_id, projects.name" in original
    ):
        attempted_name = name_field or "unknown"
        return HTTPException(
            status_code=409,
            detail=f"Project name '{attempted_name}' already exists in this company",
        )

    return HTTPException(
        status_code=400,
        detail="Database constraint violation. Please check your input.",
    )


async def _get_project_or_404(repo: ProjectRepository, project_id: UUID) -> Project:
    project = await repo.get_by_id(project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.get("/projects", response_model=ProjectListResponse)
async def list_projects(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: ProjectStatus | None = Query(None, description="Filter by status"),
    search: str | None = Query(None, max_length=200),
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("project", "view", "company")),
) -> ProjectListResponse:
    """List projects of the current company, most recently updated first."""
    logger.info(
        "Listing projects",
        page=page,
        limit=limit,
        status=status.value if status else None,
        company_id=str(company_id),
        user_id=str(principal.id),
    )

    project_repo = ProjectRepository(db, company_id)
    try:
        projects, total = await project_repo.list_projects(
            skip=(page - 1) * limit, limit=limit, status=status, search=search
        )
        return ProjectListResponse(
            projects=[ProjectResponse.model_validate(p) for p in projects],
            total=total,
            page=page,
            limit=limit,
        )

    except (ConnectionError, TimeoutError) as e:
        logger.error(
            "Database connection failed while listing projects",
            error=str(e),
            company_id=str(company_id),
        )
        raise HTTPException(status_code=500, detail="Failed to list projects")
    except Exception as e:
        logger.error(
            "Failed to list projects",
            error=str(e),
            company_id=str(company_id),
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail="Failed to list projects")


@router.post("/projects", response_model=ProjectResponse, status_code=201)
async def create_project(
    project_data: ProjectCreate,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("project", "create")),
) -> Project:
    """Create a project. Names are unique within a company."""
    logger.info(
        "Creating project",
        name=project_data.name,
        company_id=str(company_id),
        user_id=str(principal.id),
    )

    project_repo = ProjectRepository(db, company_id)
    try:
        try:
            project = await project_repo.create(**project_data.model_dump())
            await db.commit()
        except IntegrityError as ie:
            await db.rollback()
            raise _handle_integrity_error(
                ie, name_field=project_data.name, operation="create"
            )
        await db.refresh(project)

        logger.info(
            "Project created successfully",
            project_id=str(project.id),
            company_id=str(company_id),
        )
        return project

    except (HTTPException, SESHubError):
        raise
    except (ConnectionError, TimeoutError) as e:
        await db.rollback()
        logger.error("Database connection failed while creating project", error=str(e))
        raise HTTPException(status_code=500, detail="Database connection error")
    except (ValueError, KeyError, TypeError) as e:
        await db.rollback()
        logger.error("Validation error while creating project", error=str(e))
        raise HTTPException(status_code=400, detail=f"Invalid project data: {e!s}")
    except Exception as e:
        await db.rollback()
        logger.error(
            "Unexpected error while creating project", error=str(e), exc_info=True
        )
        raise HTTPException(status_code=500, detail="Failed to create project")


@router.get("/projects/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: UUID,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    _principal: Principal = Depends(require_permission("project", "view", "company")),
) -> Project:
    return await _get_project_or_404(ProjectRepository(db, company_id), project_id)


@router.put("/projects/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: UUID,
    project_data: ProjectUpdate,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("project", "update", "company")),
) -> Project:
    """
    Update a project.

    The resulting period is checked against the stored dates, so moving only
    one end of the period cannot invert it.
    """
    project_repo = ProjectRepository(db, company_id)
    project = await _get_project_or_404(project_repo, project_id)

    update_data = project_data.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")

    start = update_data.get("start_date", project.start_date)
    end = update_data.get("end_date", project.end_date)
    if start is not None and end is not None:
        try:
            DateRange(start, end)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    try:
        updated = await project_repo.update(project_id, **update_data)
        await db.commit()
    except IntegrityError as ie:
        await db.rollback()
        raise _handle_integrity_error(
            ie, name_field=update_data.get("name"), operation="update"
        )
    await db.refresh(updated)

    logger.info(
        "Project updated",
        project_id=str(project_id),
        user_id=str(principal.id),
        fields=sorted(update_data),
    )
    return updated


@router.delete("/projects/{project_id}", status_code=204)
async def delete_project(
    project_id: UUID,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("project", "delete")),
) -> Response:
    project_repo = ProjectRepository(db, company_id)
    if not await project_repo.delete(project_id):
        raise HTTPException(status_code=404, detail="Project not found")
    await db.commit()

    logger.info(
        "Project deleted", project_id=str(project_id), user_id=str(principal.id)
    )
    return Response(status_code=204)
