"""
API routes module
"""

from . import (
    approaches,
    auth,
    business_partners,
    client_auth,
    client_engineers,
    client_offers,
    companies,
    engineers,
    health,
    offers,
    permissions,
    projects,
    users,
)

__all__ = [
    "approaches",
    "auth",
    "business_partners",
    "client_auth",
    "client_engineers",
    "client_offers",
    "companies",
    "engineers",
    "health",
    "offers",
    "permissions",
    "projects",
    "users",
]
