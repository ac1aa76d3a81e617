"""
Approach service: sales outreach sent by an SES company.

An approach targets either a registered company or a freelancer reached by
email. Drafts are private to the sender; once sent, the target company sees
the approach in its received list too. Only the sender changes or deletes it.
"""

import uuid
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import utcnow
from ..core.exceptions import (
    AuthorizationError,
    BusinessLogicError,
    NotFoundError,
    ValidationError,
)
from ..core.logger import get_logger
from ..models.approach import Approach, ApproachStatus, ApproachType
from ..repositories.approach import ApproachRepository
from ..repositories.company import CompanyRepository
from ..repositories.engineer import EngineerRepository

logger = get_logger(__name__)

STATS_RECENT_DAYS = 30


def _rate(part: int, total: int) -> float:
    if total == 0:
        return 0.0
    return round(part / total * 100, 1)


class ApproachService:
    """Create, send, track and delete the approaches of one SES company."""

    def __init__(self, db: AsyncSession, company_id: uuid.UUID) -> None:
        self.db = db
        self.company_id = company_id
        self.repo = ApproachRepository(db, company_id)
        self.company_repo = CompanyRepository(db)
        self.engineer_repo = EngineerRepository(db, company_id)

    async def create_draft(
        self,
        created_by: uuid.UUID,
        approach_type: ApproachType,
        subject: str,
        message_content: str,
        to_company_id: uuid.UUID | None = None,
        target_name: str | None = None,
        recipient_email: str | None = None,
        engineer_ids: list[uuid.UUID] | None = None,
        project_details: str | None = None,
    ) -> Approach:
        """Store an unsent approach after checking its target and engineers."""
        if not subject.strip():
            raise ValidationError("Subject is required", field="subject")
        if not message_content.strip():
            raise ValidationError("Message is required", field="message_content")

        target_name = await self._validate_target(
            approach_type, to_company_id, recipient_email, target_name
        )
        engineer_ids = await self._validate_engineers(engineer_ids or [])

        approach = await self.repo.create(
            approach_type=approach_type,
            to_company_id=to_company_id if approach_type == ApproachType.COMPANY else None,
            target_name=target_name,
            recipient_email=recipient_email,
            engineer_ids=[str(engineer_id) for engineer_id in engineer_ids],
            subject=subject.strip(),
            message_content=message_content,
            project_details=project_details,
            status=ApproachStatus.DRAFT,
            created_by=created_by,
        )
        await self.db.commit()
        await self.db.refresh(approach)

        logger.info(
            "Approach draft created",
            approach_id=str(approach.id),
            company_id=str(self.company_id),
            approach_type=approach_type.value,
            engineer_count=len(engineer_ids),
        )
        return approach

    async def send(self, approach_id: uuid.UUID, sent_by: uuid.UUID) -> Approach:
        """Send a draft. An approach is sent once."""
        approach = await self._get_own(approach_id)
        if approach.status != ApproachStatus.DRAFT:
            raise BusinessLogicError(
                "Approach has already been sent",
                details={"status": approach.status.value},
            )

        approach.status = ApproachStatus.SENT
        approach.sent_at = utcnow()
        approach.sent_by = sent_by
        await self.db.commit()
        await self.db.refresh(approach)

        logger.info(
            "Approach sent",
            approach_id=str(approach.id),
            company_id=str(self.company_id),
            to_company_id=str(approach.to_company_id) if approach.to_company_id else None,
        )
        return approach

    async def send_approach(self, created_by: uuid.UUID, **fields: Any) -> Approach:
        """Create and send in one step."""
        draft = await self.create_draft(created_by, **fields)
        return await self.send(draft.id, created_by)

    async def get_approach(self, approach_id: uuid.UUID) -> Approach:
        """Approach sent by this company, or a sent one addressed to it."""
        approach = await self.repo.get_visible(approach_id)
        if approach is None:
            raise NotFoundError("Approach", details={"approach_id": str(approach_id)})
        return approach

    async def list_sent(
        self,
        page: int = 1,
        limit: int = 20,
        status: ApproachStatus | None = None,
        approach_type: ApproachType | None = None,
        sent_from: datetime | None = None,
        sent_to: datetime | None = None,
    ) -> tuple[list[Approach], int]:
        return await self.repo.list_sent(
            skip=(page - 1) * limit,
            limit=limit,
            status=status,
            approach_type=approach_type,
            sent_from=sent_from,
            sent_to=sent_to,
        )

    async def list_received(
        self, page: int = 1, limit: int = 20
    ) -> tuple[list[Approach], int]:
        return await self.repo.list_received(skip=(page - 1) * limit, limit=limit)

    async def update_status(
        self, approach_id: uuid.UUID, status: ApproachStatus
    ) -> Approach:
        """Record the target's reaction on a sent approach."""
        approach = await self._get_own(approach_id)
        if approach.status == ApproachStatus.DRAFT:
            raise BusinessLogicError(
                "Approach has not been sent", details={"status": approach.status.value}
            )
        if status == ApproachStatus.DRAFT:
            raise ValidationError("A sent approach cannot return to draft", field="status")

        previous = approach.status
        approach.status = status
        await self.db.commit()
        await self.db.refresh(approach)

        logger.info(
            "Approach status updated",
            approach_id=str(approach_id),
            old_status=previous.value,
            new_status=status.value,
        )
        return approach

    async def delete_approach(self, approach_id: uuid.UUID) -> None:
        await self._get_own(approach_id)
        await self.repo.delete(approach_id)
        await self.db.commit()
        logger.info(
            "Approach deleted", approach_id=str(approach_id), company_id=str(self.company_id)
        )

    async def get_statistics(self) -> dict[str, Any]:
        """Send totals and open/reply rates, drafts excluded."""
        by_status = await self.repo.count_by_status()
        recent = await self.repo.count_by_status(
            since=utcnow() - timedelta(days=STATS_RECENT_DAYS)
        )
        total = sum(by_status.values())
        opened = by_status.get(ApproachStatus.OPENED, 0)
        replied = by_status.get(ApproachStatus.REPLIED, 0)
        return {
            "total": total,
            "last_30_days": sum(recent.values()),
            "opened": opened,
            "replied": replied,
            "open_rate": _rate(opened, total),
            "reply_rate": _rate(replied, total),
        }

    async def _get_own(self, approach_id: uuid.UUID) -> Approach:
        approach = await self.get_approach(approach_id)
        if approach.company_id != self.company_id:
            raise AuthorizationError(
                "Only the sending company can change an approach",
                details={"approach_id": str(approach_id)},
            )
        return approach

    async def _validate_target(
        self,
        approach_type: ApproachType,
        to_company_id: uuid.UUID | None,
        recipient_email: str | None,
        target_name: str | None,
    ) -> str | None:
        if approach_type == ApproachType.FREELANCE:
            if not recipient_email:
                raise ValidationError(
                    "Freelance approaches need a recipient email", field="recipient_email"
                )
            return target_name

        if to_company_id is None:
            raise ValidationError(
                "Company approaches need a target company", field="to_company_id"
            )
        if to_company_id == self.company_id:
            raise ValidationError(
                "An approach cannot target the sending company", field="to_company_id"
            )
        company = await self.company_repo.get_by_id(to_company_id)
        if company is None or not company.is_active:
            raise ValidationError(
                "Target company not found",
                field="to_company_id",
                details={"to_company_id": str(to_company_id)},
            )
        return target_name or company.name

    async def _validate_engineers(
        self, engineer_ids: list[uuid.UUID]
    ) -> list[uuid.UUID]:
        unique_ids = list(dict.fromkeys(engineer_ids))
        found = await self.engineer_repo.get_many(unique_ids)
        found_ids = {engineer.id for engineer in found}
        unknown = [engineer_id for engineer_id in unique_ids if engineer_id not in found_ids]
        if unknown:
            raise ValidationError(
                "Engineers not found in this company",
                field="engineer_ids",
                details={"engineer_ids": [str(engineer_id) for engineer_id in unknown]},
            )
        return unique_ids
