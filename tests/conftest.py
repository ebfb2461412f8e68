import os
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

# Ensure critical settings exist before the app/config modules import.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./dev.db")
os.environ.setdefault("BCRYPT_ROUNDS", "4")  # Fast hashing for tests

from app.repositories.memory import (
    InMemoryOrganizationRepository,
    InMemoryUserRepository,
)
from app.services.organization_service import OrganizationService
from app.services.user_service import UserService
from core.db import Base, create_engine
from main import create_app

# Use SQLite for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

engine = create_engine(TEST_DATABASE_URL)


@pytest.fixture(autouse=True)
async def setup_db():
    """Create and drop all tables for each test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client bound to the test database."""
    app = create_app(engine=engine)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def create_organization(client: AsyncClient):
    """Factory fixture that creates organizations through the API."""
    async def _create_organization(name: str = "Acme Corp", **fields) -> dict:
        response = await client.post(
            "/api/v1/organizations/", json={"name": name, **fields}
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _create_organization


@pytest.fixture
def create_user(client: AsyncClient):
    """Factory fixture that creates users through the API."""
    async def _create_user(organization_id: str, email: str, name: str = "Test User", **fields) -> dict:
        response = await client.post(
            "/api/v1/users/",
            json={
                "email": email,
                "name": name,
                "organization_id": organization_id,
                **fields,
            },
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _create_user


@pytest.fixture
async def test_organization(create_organization) -> dict:
    """Create a test organization with a position."""
    return await create_organization(
        "Acme Corp",
        lat=13.7388,
        lng=100.5322,
        address="1 Sukhumvit Rd, Bangkok",
    )


@pytest.fixture
def org_repo() -> InMemoryOrganizationRepository:
    return InMemoryOrganizationRepository()


@pytest.fixture
def user_repo(org_repo: InMemoryOrganizationRepository) -> InMemoryUserRepository:
    return InMemoryUserRepository(organizations=org_repo)


@pytest.fixture
def organization_service(org_repo: InMemoryOrganizationRepository) -> OrganizationService:
    """Organization service over in-memory storage."""
    return OrganizationService(org_repo)


@pytest.fixture
def user_service(
    user_repo: InMemoryUserRepository, org_repo: InMemoryOrganizationRepository
) -> UserService:
    """User service over in-memory storage."""
    return UserService(user_repo, org_repo)
