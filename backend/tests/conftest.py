"""
Shared fixtures: a throwaway SQLite database, an in-memory Redis stand-in
and an ASGI client wired to both.
"""
import os

# Configure before the application modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./hitcount-test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-0123")
os.environ.pop("REDIS_URL", None)
os.environ.pop("DASHBOARD_TOKEN", None)

from datetime import datetime, timezone
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from hitcount.core.database import create_engine, create_session_factory, init_db
from hitcount.main import create_app
from hitcount.schemas.hit import HitPayload

FIREFOX_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:122.0) "
    "Gecko/20100101 Firefox/122.0"
)
IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_2 like Mac OS X) "
    "AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Mobile/15E148 Safari/604.1"
)
CHROME_MAC_UA = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class FakeRedis:
    """Just enough of ``redis.asyncio.Redis`` for the session tracker."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.ttls: dict[str, Optional[int]] = {}
        self.set_calls = 0

    async def get(self, key: str) -> Optional[str]:
        return self.store.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        self.store[key] = value
        self.ttls[key] = ex
        self.set_calls += 1
        return True

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        pass


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite engine with the schema and reserved rows."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'hitcount.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def app(session_factory, fake_redis):
    """Application with test state; the lifespan does not run under ASGITransport."""
    application = create_app()
    application.state.session_factory = session_factory
    application.state.redis = fake_redis
    application.state.arq_pool = None
    return application


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def make_payload():
    """Factory for hit payloads with browser-like defaults."""

    def _make(path: str = "/", **overrides) -> HitPayload:
        values = {
            "path": path,
            "ip": "203.0.113.7",
            "user_agent": FIREFOX_UA,
            "created_at": datetime(2026, 3, 10, 14, 25, tzinfo=timezone.utc),
        }
        values.update(overrides)
        return HitPayload(**values)

    return _make
