#!/usr/bin/env python3
"""
Seed the permission catalog and system roles.

Usage:
    python scripts/seed_permissions.py            # roles and permissions only
    python scripts/seed_permissions.py --demo     # plus a demo SES company and admin

Safe to run repeatedly; existing rows are left untouched.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from sqlalchemy import text
from tenacity import retry, stop_after_attempt, wait_exponential

# Add parent directory to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from seshub.core.auth import AuthService
from seshub.core.database import close_database_connections, get_db_session
from seshub.core.exceptions import ConflictError
from seshub.core.logger import get_logger, log_function_call
from seshub.services.rbac import RBACService

logger = get_logger()

DEMO_COMPANY = {
    "company_name": "デモSES企業",
    "email": "admin@demo-ses.example.com",
    "password": "Admin@123",
    "name": "システム管理者",
    "max_engineers": 100,
}


@retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=4, max=10))
async def wait_for_database() -> None:
    """Fail after three attempts if the database does not answer."""
    async with get_db_session() as session:
        await session.execute(text("SELECT 1"))


@log_function_call
async def seed_roles_and_permissions() -> dict[str, int]:
    async with get_db_session() as session:
        return await RBACService(session).initialize_default_roles_and_permissions()


@log_function_call
async def seed_demo_company() -> dict[str, Any] | None:
    """Demo SES company with one administrator, or None if it already exists."""
    async with get_db_session() as session:
        auth_service = AuthService(session)
        try:
            user, _ = await auth_service.register_company(**DEMO_COMPANY)
        except ConflictError:
            logger.info("Demo company already present", email=DEMO_COMPANY["email"])
            return None
        return {"company_id": str(user.company_id), "user_id": str(user.id)}


async def main(with_demo: bool) -> int:
    try:
        await wait_for_database()
        summary = await seed_roles_and_permissions()
        logger.info("Permissions seeded", **summary)

        if with_demo:
            demo = await seed_demo_company()
            if demo:
                logger.info("Demo company created", **demo)
    finally:
        await close_database_connections()
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument(
        "--demo", action="store_true", help="also create the demo SES company"
    )
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.demo)))
