"""
Test infrastructure for the MDX Articles API.

Strategy
--------
- SQLite in-memory via aiosqlite with StaticPool, so every session shares
  the one connection that holds the database.
- The app's get_db dependency is overridden to use the test session factory.
- Tables are created before each test and dropped after it.
- Redis is replaced by ``FakeRedis``, a dict with the handful of async
  methods ``CacheManager`` calls, so rendered content can be read back.
- MEDIA_ROOT and UPLOAD_TEMP_ROOT point into the per-test ``tmp_path``.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from mdx_articles.cache import cache
from mdx_articles.config import settings
from mdx_articles.database import Base, get_db
from mdx_articles.main import app
from mdx_articles.middleware import install_query_counter

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# In-memory Redis stand-in
# ---------------------------------------------------------------------------

class FakeRedis:
    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.set_calls: list[str] = []

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.set_calls.append(key)
        self.store[key] = value

    async def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)

    async def ping(self):
        return True

    async def aclose(self):
        pass


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def media_dirs(tmp_path, monkeypatch):
    """Point permanent and staging storage at a per-test directory."""
    media = tmp_path / "media"
    uploads = tmp_path / "uploads"
    monkeypatch.setattr(settings, "MEDIA_ROOT", str(media))
    monkeypatch.setattr(settings, "UPLOAD_TEMP_ROOT", str(uploads))
    return media


@pytest.fixture(autouse=True)
def fake_redis():
    fake = FakeRedis()
    cache._redis = fake
    yield fake
    cache._redis = None


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

