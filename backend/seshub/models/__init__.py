"""
Database models and business logic entities.
"""

from .approach import Approach, ApproachStatus, ApproachType
from .base import (
    Base,
    BaseModel,
    GlobalModel,
    SoftDeleteMixin,
    TenantMixin,
    TimestampMixin,
)
from .business_partner import (
    AccessPermissionType,
    BusinessPartner,
    ClientAccessPermission,
    EngineerNgList,
)
from .client_user import ClientUser, ClientViewLog
from .company import Company, CompanyType
from .engineer import Engineer, EngineerStatus, EngineerType
from .offer import Offer, OfferEngineer, OfferEngineerState, OfferState
from .project import Project, ProjectStatus
from .rbac import ClientUserRole, Permission, Role, UserRole, role_permissions
from .skill_sheet import SkillSheet
from .user import User

__all__ = [
    "AccessPermissionType",
    "Approach",
    "ApproachStatus",
    "ApproachType",
    "Base",
    "BaseModel",
    "BusinessPartner",
    "ClientAccessPermission",
    "ClientUser",
    "ClientUserRole",
    "ClientViewLog",
    "Company",
    "CompanyType",
    "Engineer",
    "EngineerNgList",
    "EngineerStatus",
    "EngineerType",
    "GlobalModel",
    "Offer",
    "OfferEngineer",
    "OfferEngineerState",
    "OfferState",
    "Permission",
    "Project",
    "ProjectStatus",
    "Role",
    "SkillSheet",
    "SoftDeleteMixin",
    "TenantMixin",
    "TimestampMixin",
    "User",
    "UserRole",
    "role_permissions",
]
