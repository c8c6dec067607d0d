import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from operalog.config import settings
from operalog.db.database import get_session
from operalog.main import app
from operalog.models.db import Base
from operalog.models.opera import Opera


@pytest.fixture
def sample_catalog() -> list[Opera]:
    """Small catalog used across search and store tests."""
    return [
        Opera(id="1", title="La Traviata", composer="Verdi"),
        Opera(id="2", title="Carmen", composer="Bizet"),
    ]


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session(async_engine) -> AsyncSession:
    """Provide a database session for tests."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session


@pytest.fixture
async def client(async_engine):
    """Provide an async test client with overridden database session."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_session():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Headers the OAuth proxy adds for a signed-in user."""
    return {settings.auth_user_header: "user-123"}


@pytest.fixture
def other_user_headers() -> dict[str, str]:
    return {settings.auth_user_header: "user-456"}
