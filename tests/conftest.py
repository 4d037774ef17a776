import os

# Must be set before sellfast settings are imported.
os.environ.setdefault("TELEMETRY_ENABLED", "false")
os.environ.setdefault("SESSION_TOKEN_PEPPER", "test-pepper")
os.environ.setdefault("DATABASE_URL", os.getenv("DATABASE_URL_TEST", "sqlite+aiosqlite://"))

import httpx
import pytest

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

# Import Base + all models so metadata is complete
from sellfast.models import Base

from sellfast.main import app
from sellfast.core.db import get_db

from fixtures_seed import seed_catalog_rows, seed_user  # noqa: F401


def _test_db_url() -> str:
    # In-memory SQLite by default; point DATABASE_URL_TEST at Postgres to run against it.
    return os.getenv("DATABASE_URL_TEST", "sqlite+aiosqlite://")


@pytest.fixture
async def async_engine():
    url = _test_db_url()
    kwargs = {"pool_pre_ping": True}
    if url.startswith("sqlite"):
        # one shared connection, otherwise every connection gets its own empty database
        kwargs = {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}

    engine = create_async_engine(url, **kwargs)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
async def db_session(async_engine):
    session_factory = async_sessionmaker(bind=async_engine, expire_on_commit=False, class_=AsyncSession)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(db_session: AsyncSession):
    """
    HTTP client that uses the test DB session via dependency override.
    """
    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
