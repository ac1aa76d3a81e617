"""
Repository layer for data access with company isolation.
"""

from .approach import ApproachRepository
from .base import BaseRepository, TenantRepository
from .business_partner import (
    AccessPermissionRepository,
    BusinessPartnerRepository,
    EngineerNgListRepository,
)
from .client_user import ClientUserRepository, ClientViewLogRepository
from .company import CompanyRepository
from .engineer import EngineerRepository
from .offer import OfferRepository, ReceivedOfferRepository
from .project import ProjectRepository
from .skill_sheet import SkillSheetRepository
from .user import UserRepository

__all__ = [
    "AccessPermissionRepository",
    "ApproachRepository",
    "BaseRepository",
    "BusinessPartnerRepository",
    "ClientUserRepository",
    "ClientViewLogRepository",
    "CompanyRepository",
    "EngineerNgListRepository",
    "EngineerRepository",
    "OfferRepository",
    "ProjectRepository",
    "ReceivedOfferRepository",
    "SkillSheetRepository",
    "TenantRepository",
    "UserRepository",
]
