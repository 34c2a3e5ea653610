"""
Pytest configuration and fixtures for closeflow tests
"""
import pytest
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from closeflow.main import create_app
from closeflow.db.base import Base
from closeflow.core.security import Identity, create_access_token
from closeflow.models.task import TaskFrequency
from closeflow.repositories.task_repository import TaskRepository
from closeflow.schemas.workspace import WorkspaceCreate
from closeflow.services.workspace_service import WorkspaceService


# Test database URL - use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

OWNER = Identity(user_id="user_owner", email="owner@test.com", name="Test Owner")
OUTSIDER = Identity(user_id="user_outsider", email="outsider@test.com", name="Test Outsider")


@pytest.fixture(scope="function")
async def test_engine():
    """In-memory SQLite engine with all tables; each test gets a fresh database."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def test_session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="function")
async def test_db(test_session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with test_session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def test_client(test_db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client with dependency override for database.
    """
    app = create_app()

    async def override_get_db():
        yield test_db

    from closeflow.db.session import get_db
    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def owner_token() -> str:
    return create_access_token(OWNER.user_id, email=OWNER.email, name=OWNER.name)


@pytest.fixture
def outsider_token() -> str:
    return create_access_token(OUTSIDER.user_id, email=OUTSIDER.email)


@pytest.fixture
def owner_headers(owner_token: str) -> dict:
    return {"Authorization": f"Bearer {owner_token}"}


@pytest.fixture
def outsider_headers(outsider_token: str) -> dict:
    return {"Authorization": f"Bearer {outsider_token}"}


@pytest.fixture
async def workspace_id(test_db: AsyncSession) -> int:
    """A workspace owned (and administered) by OWNER."""
    workspace = await WorkspaceService(test_db).create_workspace(
        WorkspaceCreate(
            name="Acme Finance",
            timezone="America/New_York",
            fiscal_year_end="12-31",
            first_period="2024-01",
        ),
        OWNER,
    )
    return workspace.id


@pytest.fixture
def make_template(test_db: AsyncSession, workspace_id: int):
    """Factory inserting a recurring template task; returns its id."""
    async def _make(title: str, frequency: TaskFrequency = TaskFrequency.MONTHLY, **extra) -> int:
        template = await TaskRepository(test_db).create({
            "workspace_id": workspace_id,
            "title": title,
            "frequency": frequency,
            "is_template": True,
            "is_subtask": False,
            "is_archived": False,
            **extra,
        })
        return template.id
    return _make


@pytest.fixture
async def other_workspace_id(test_db: AsyncSession) -> int:
    """A workspace OWNER does not belong to."""
    workspace = await WorkspaceService(test_db).create_workspace(
        WorkspaceCreate(name="Other Co", fiscal_year_end="12-31", first_period="2024-01"),
        OUTSIDER,
    )
    return workspace.id
