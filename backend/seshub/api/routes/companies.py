"""The caller's own company profile."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.auth import Principal
from ...core.database import get_db
from ...core.logger import get_logger
from ...models.company import Company
from ...repositories.company import CompanyRepository
from ..dependencies import get_current_company_id, get_current_staff, require_permission
from ..schemas.company import CompanyResponse, CompanyUpdate

router = APIRouter(dependencies=[Depends(get_current_staff)])
logger = get_logger(__name__)


async def _own_company(repo: CompanyRepository, company_id: UUID) -> Company:
    company = await repo.get_by_id(company_id)
    if company is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Company not found"
        )
    return company


@router.get("/companies/me", response_model=CompanyResponse)
async def get_my_company(
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    _principal: Principal = Depends(require_permission("company", "view", "own")),
) -> Company:
    return await _own_company(CompanyRepository(db), company_id)


@router.put("/companies/me", response_model=CompanyResponse)
async def update_my_company(
    payload: CompanyUpdate,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("company", "update", "own")),
) -> Company:
    """Update the company profile. Only fields present in the body change."""
    repo = CompanyRepository(db)
    await _own_company(repo, company_id)

    update_data = payload.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update"
        )

    company = await repo.update(company_id, **update_data)
    await db.commit()
    await db.refresh(company)

    logger.info(
        "Company updated",
        company_id=str(company_id),
        updated_by=str(principal.id),
        fields=sorted(update_data),
    )
    return company
