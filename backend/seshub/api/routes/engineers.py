"""Engineer and skill sheet endpoints for SES company staff."""

import math
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.auth import Principal
from ...core.database import get_db
from ...core.exceptions import SESHubError
from ...core.logger import get_logger
from ...models.engineer import Engineer, EngineerStatus
from ...models.skill_sheet import SkillSheet
from ...repositories.company import CompanyRepository
from ...repositories.engineer import EngineerRepository
from ...repositories.skill_sheet import SkillSheetRepository
from ..dependencies import get_current_company_id, get_current_staff, require_permission
from ..schemas.engineer import (
    EngineerCreate,
    EngineerListResponse,
    EngineerResponse,
    EngineerStatusUpdate,
    EngineerUpdate,
    Pagination,
    SkillSheetResponse,
    SkillSheetUpsert,
)

router = APIRouter(dependencies=[Depends(get_current_staff)])
logger = get_logger(__name__)


async def _get_engineer_or_404(repo: EngineerRepository, engineer_id: UUID) -> Engineer:
    engineer = await repo.get_by_id(engineer_id)
    if engineer is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Engineer not found"
        )
    return engineer


async def _ensure_email_free(
    repo: EngineerRepository, email: str, exclude_id: UUID | None = None
) -> None:
    existing = await repo.get_by_field("email", email)
    if existing is not None and existing.id != exclude_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Engineer with email '{email}' already exists",
        )


@router.get("/engineers", response_model=EngineerListResponse)
async def list_engineers(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: EngineerStatus | None = Query(None, alias="status"),
    search: str | None = Query(None, max_length=200),
    include_inactive: bool = Query(False),
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    _principal: Principal = Depends(require_permission("engineer", "view", "company")),
) -> EngineerListResponse:
    """List engineers of the current company, newest first."""
    logger.info(
        "Listing engineers",
        company_id=str(company_id),
        page=page,
        limit=limit,
        status=status_filter.value if status_filter else None,
    )

    repo = EngineerRepository(db, company_id)
    engineers, total = await repo.list_engineers(
        skip=(page - 1) * limit,
        limit=limit,
        status=status_filter,
        search=search,
        include_inactive=include_inactive,
    )
    return EngineerListResponse(
        engineers=[EngineerResponse.model_validate(e) for e in engineers],
        pagination=Pagination(
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit),
        ),
    )


@router.post(
    "/engineers", response_model=EngineerResponse, status_code=status.HTTP_201_CREATED
)
async def create_engineer(
    payload: EngineerCreate,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("engineer", "create")),
) -> Engineer:
    """
    Register an engineer in the current company.

    Fails with 400 when the company has reached its ``max_engineers`` limit.
    """
    logger.info(
        "Creating engineer", company_id=str(company_id), user_id=str(principal.id)
    )

    repo = EngineerRepository(db, company_id)
    try:
        await _ensure_email_free(repo, payload.email)

        company = await CompanyRepository(db).get_by_id(company_id)
        if company is not None and company.max_engineers is not None:
            if await repo.count() >= company.max_engineers:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Engineer limit reached for this company",
                )

        engineer = await repo.create(**payload.model_dump())
        await db.commit()
        await db.refresh(engineer)

        logger.info(
            "Engineer created",
            engineer_id=str(engineer.id),
            company_id=str(company_id),
        )
        return engineer

    except (HTTPException, SESHubError):
        await db.rollback()
        raise
    except (ValueError, KeyError, TypeError) as e:
        await db.rollback()
        logger.error("Validation error while creating engineer", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid engineer data: {e!s}"
        )
    except Exception as e:
        await db.rollback()
        logger.error(
            "Unexpected error while creating engineer", error=str(e), exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create engineer",
        )


@router.get("/engineers/{engineer_id}", response_model=EngineerResponse)
async def get_engineer(
    engineer_id: UUID,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    _principal: Principal = Depends(require_permission("engineer", "view", "company")),
) -> Engineer:
    return await _get_engineer_or_404(EngineerRepository(db, company_id), engineer_id)


@router.put("/engineers/{engineer_id}", response_model=EngineerResponse)
async def update_engineer(
    engineer_id: UUID,
    payload: EngineerUpdate,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("engineer", "update", "company")),
) -> Engineer:
    repo = EngineerRepository(db, company_id)
    await _get_engineer_or_404(repo, engineer_id)

    update_data = payload.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update"
        )
    if update_data.get("email"):
        await _ensure_email_free(repo, update_data["email"], exclude_id=engineer_id)

    engineer = await repo.update(engineer_id, **update_data)
    await db.commit()
    await db.refresh(engineer)

    logger.info(
        "Engineer updated",
        engineer_id=str(engineer_id),
        user_id=str(principal.id),
        fields=sorted(update_data),
    )
    return engineer


@router.patch("/engineers/{engineer_id}/status", response_model=EngineerResponse)
async def update_engineer_status(
    engineer_id: UUID,
    payload: EngineerStatusUpdate,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    _principal: Principal = Depends(require_permission("engineer", "update", "company")),
) -> Engineer:
    """Change an engineer's availability status."""
    repo = EngineerRepository(db, company_id)
    await _get_engineer_or_404(repo, engineer_id)

    fields: dict[str, object] = {"current_status": payload.current_status}
    if payload.available_date is not None:
        fields["available_date"] = payload.available_date
    engineer = await repo.update(engineer_id, **fields)
    await db.commit()
    await db.refresh(engineer)

    logger.info(
        "Engineer status updated",
        engineer_id=str(engineer_id),
        status=payload.current_status.value,
    )
    return engineer


@router.delete("/engineers/{engineer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_engineer(
    engineer_id: UUID,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("engineer", "delete")),
) -> Response:
    repo = EngineerRepository(db, company_id)
    if not await repo.delete(engineer_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Engineer not found"
        )
    await db.commit()

    logger.info(
        "Engineer deleted", engineer_id=str(engineer_id), user_id=str(principal.id)
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/engineers/{engineer_id}/skill-sheet", response_model=SkillSheetResponse)
async def get_skill_sheet(
    engineer_id: UUID,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    _principal: Principal = Depends(require_permission("skillsheet", "view", "company")),
) -> SkillSheet:
    await _get_engineer_or_404(EngineerRepository(db, company_id), engineer_id)
    skill_sheet = await SkillSheetRepository(db, company_id).get_by_engineer(engineer_id)
    if skill_sheet is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Skill sheet not found"
        )
    return skill_sheet


@router.put("/engineers/{engineer_id}/skill-sheet", response_model=SkillSheetResponse)
async def upsert_skill_sheet(
    engineer_id: UUID,
    payload: SkillSheetUpsert,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(
        require_permission("skillsheet", "update", "company")
    ),
) -> SkillSheet:
    """Create or replace the engineer's skill sheet."""
    await _get_engineer_or_404(EngineerRepository(db, company_id), engineer_id)

    skill_sheet = await SkillSheetRepository(db, company_id).upsert(
        engineer_id, **payload.model_dump()
    )
    await db.commit()
    await db.refresh(skill_sheet)

    logger.info(
        "Skill sheet saved",
        engineer_id=str(engineer_id),
        user_id=str(principal.id),
        is_completed=skill_sheet.is_completed,
    )
    return skill_sheet
