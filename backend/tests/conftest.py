"""
Pytest configuration and shared fixtures.
"""

import os

# Set required environment variables before app import
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["PERMISSION_CACHE_ENABLED"] = "false"
os.environ["TOKEN_BLACKLIST_ENABLED"] = "false"

import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import Engine, event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from seshub.core.database import get_db
from seshub.core.password_service import PasswordService
from seshub.core.token_service import TokenService
from seshub.main import app
from seshub.models import Base, BusinessPartner, ClientUser, Company, User
from seshub.models.company import CompanyType
from seshub.models.engineer import Engineer, EngineerStatus
from seshub.models.skill_sheet import SkillSheet
from seshub.services.business_partner import BusinessPartnerService
from seshub.services.client_auth import ClientAuthService
from seshub.services.rbac import RBACService

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "Secure123pass"


@event.listens_for(Engine, "connect")
def sqlite_connect(dbapi_connection, connection_record):
    """
    Register ``uuidv7`` for SQLite.

    PostgreSQL 18 ships the function natively; SQLite gets a uuid4 stand-in
    so the server default in the schema compiles.
    """
    if hasattr(dbapi_connection, "create_function"):

        def uuidv7():
            return str(uuid.uuid4())

        dbapi_connection.create_function("uuidv7", 0, uuidv7)


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh in-memory schema per test."""
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app; every request gets its own session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def password_service() -> PasswordService:
    return PasswordService()


@pytest.fixture
async def seeded_rbac(test_session: AsyncSession) -> dict[str, int]:
    """Permission catalog and system roles."""
    return await RBACService(test_session).initialize_default_roles_and_permissions()


@pytest.fixture
async def ses_company(test_session: AsyncSession) -> Company:
    company = Company(
        name="株式会社アクメSES",
        company_type=CompanyType.SES,
        email_domain="acme-ses.jp",
        max_engineers=50,
        is_active=True,
    )
    test_session.add(company)
    await test_session.commit()
    await test_session.refresh(company)
    return company


@pytest.fixture
async def other_ses_company(test_session: AsyncSession) -> Company:
    company = Company(
        name="株式会社ライバルSES",
        company_type=CompanyType.SES,
        email_domain="rival-ses.jp",
        is_active=True,
    )
    test_session.add(company)
    await test_session.commit()
    await test_session.refresh(company)
    return company


@pytest.fixture
def user_factory(
    test_session: AsyncSession, password_service: PasswordService
) -> Callable[..., Awaitable[User]]:
    """Create a staff user of a company holding ``role``."""

    async def create(company: Company, role: str = "admin", email: str | None = None) -> User:
        user = User(
            company_id=company.id,
            email=email or f"user-{uuid.uuid4().hex[:8]}@{company.email_domain}",
            name="テストユーザー",
            hashed_password=password_service.get_password_hash(TEST_PASSWORD),
            is_active=True,
        )
        test_session.add(user)
        await test_session.commit()
        await test_session.refresh(user)
        await RBACService(test_session).assign_role(user.id, role)
        return user

    return create


@pytest.fixture
async def admin_user(seeded_rbac, ses_company: Company, user_factory) -> User:
    return await user_factory(ses_company, "admin", email="admin@acme-ses.jp")


@pytest.fixture
async def sales_user(seeded_rbac, ses_company: Company, user_factory) -> User:
    return await user_factory(ses_company, "sales", email="sales@acme-ses.jp")


def staff_headers(user: User) -> dict[str, str]:
    tokens = TokenService().create_tokens_for_user_data(
        {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "company_id": user.company_id,
        }
    )
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return staff_headers(admin_user)


@pytest.fixture
def sales_headers(sales_user: User) -> dict[str, str]:
    return staff_headers(sales_user)


@pytest.fixture
def engineer_factory(test_session: AsyncSession) -> Callable[..., Awaitable[Engineer]]:
    """Create an engineer, always with an explicit (possibly empty) skill sheet."""

    async def create(
        company: Company,
        last_name: str = "山田",
        first_name: str = "太郎",
        status: EngineerStatus = EngineerStatus.AVAILABLE,
        skills: list[str] | None = None,
        **fields: Any,
    ) -> Engineer:
        engineer = Engineer(
            company_id=company.id,
            last_name=last_name,
            first_name=first_name,
            email=fields.pop("email", f"eng-{uuid.uuid4().hex[:8]}@{company.email_domain}"),
            current_status=status,
            is_active=fields.pop("is_active", True),
            skill_sheet=(
                SkillSheet(company_id=company.id, programming_languages=list(skills))
                if skills is not None
                else None
            ),
            **fields,
        )
        test_session.add(engineer)
        await test_session.commit()
        await test_session.refresh(engineer)
        return engineer

    return create


@pytest.fixture
async def partner(
    test_session: AsyncSession, ses_company: Company, admin_user: User
) -> BusinessPartner:
    service = BusinessPartnerService(test_session, ses_company.id)
    return await service.create_partner(
        "株式会社クライアント",
        created_by=admin_user.id,
        email_domain="client-corp.jp",
    )


@pytest.fixture
async def client_user(test_session: AsyncSession, partner: BusinessPartner) -> ClientUser:
    return await ClientAuthService(test_session).create_client_user(
        partner,
        email="buyer@client-corp.jp",
        password=TEST_PASSWORD,
        name="取引先 花子",
        role_name="client_admin",
    )


def client_headers_for(client_user: ClientUser) -> dict[str, str]:
    token = TokenService().create_client_access_token(
        {"sub": str(client_user.id), "company_id": str(client_user.company_id)}
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client_headers(client_user: ClientUser) -> dict[str, str]:
    return client_headers_for(client_user)


# Pytest configuration
def pytest_configure(config) -> None:
    config.addinivalue_line("markers", "integration: mark test as integration test")
