from __future__ import annotations

import base64
import os
import uuid
from datetime import date

# Must be set before anything imports app.core.config.
os.environ.setdefault(
    "IDENTITY_WEBHOOK_SECRET",
    "whsec_" + base64.b64encode(b"loyaltyblocks-test-webhook-secret").decode(),
)
os.environ.setdefault("LOG_JSON", "false")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from app.core.security import create_access_token
from app.db.session import enable_sqlite_foreign_keys, get_db

# Ensure Base + models are registered before create_all
from app.db.base import Base
import app.models  # noqa: F401
from app.core.roles import UserRole
from app.models.customer import Customer
from app.models.tenant import Tenant
from app.models.tenant_settings import TenantSettings
from app.models.user import InternalUser


# ---------------------------------------------------------
# Database config
# ---------------------------------------------------------
@pytest.fixture()
def database_url_async(tmp_path) -> str:
    """
    TEST_DATABASE_URL_ASYNC points the suite at a real server; otherwise each
    test gets its own SQLite file.
    """
    return os.getenv("TEST_DATABASE_URL_ASYNC") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


# ---------------------------------------------------------
# Engine + schema lifecycle
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def engine(database_url_async: str):
    engine = create_async_engine(database_url_async, future=True, echo=False, poolclass=NullPool)

    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        # start clean when pointed at a shared database
        for table in reversed(Base.metadata.sorted_tables):
            await conn.execute(delete(table))

    yield engine

    await engine.dispose()


@pytest.fixture()
def sessionmaker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# ---------------------------------------------------------
# DB session for assertions / setup
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def db(sessionmaker):
    """
    Session for test setup & assertions ONLY. Setup helpers commit so the
    API's own sessions can see the rows.
    """
    async with sessionmaker() as session:
        yield session
        await session.rollback()


# ---------------------------------------------------------
# FastAPI app + dependency override
# ---------------------------------------------------------
@pytest.fixture()
def app(sessionmaker):
    from app.main import app as fastapi_app

    async def _override_get_db():
        async with sessionmaker() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


# ---------------------------------------------------------
# HTTP client
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
    ) as ac:
        yield ac


# ---------------------------------------------------------
# Factories
# ---------------------------------------------------------
class Factory:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def tenant(self, slug: str, country: str = "United States") -> Tenant:
        tenant = Tenant(slug=slug, name=slug.capitalize())
        tenant.settings = TenantSettings(country=country)
        self.db.add(tenant)
        await self.db.commit()
        return tenant

    async def user(
        self,
        tenant: Tenant,
        role: UserRole,
        *,
        email: str | None = None,
        external_id: str | None = None,
    ) -> InternalUser:
        user = InternalUser(
            tenant_id=tenant.id,
            external_id=external_id or f"user_{uuid.uuid4().hex[:12]}",
            email=email or f"{uuid.uuid4().hex[:8]}@example.com",
            first_name="Test",
            last_name=role.value.title(),
            role=role.value,
        )
        self.db.add(user)
        await self.db.commit()
        return user

    async def customer(
        self,
        tenant: Tenant,
        phone: str,
        *,
        first_name: str = "Jane",
        last_name: str = "Doe",
        created_by: InternalUser | None = None,
    ) -> Customer:
        customer = Customer(
            tenant_id=tenant.id,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            birth_date=date(1990, 5, 17),
            consent_given=True,
            created_by_user_id=created_by.id if created_by else None,
            updated_by_user_id=created_by.id if created_by else None,
        )
        self.db.add(customer)
        await self.db.commit()
        return customer


@pytest.fixture()
def factory(db) -> Factory:
    return Factory(db)


def auth_headers(user: InternalUser) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject=user.external_id)}"}


@pytest.fixture()
def headers_for():
    return auth_headers
