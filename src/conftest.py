from typing import AsyncGenerator, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.pool import StaticPool
from sqlmodel.ext.asyncio.session import AsyncSession

from config import Settings, get_settings
from database import create_engine, create_session_maker, init_db
from services.auth import hash_password
from services.push import PushDeliveryError

ADMIN_PASSWORD = "right-password"
DEVICE_ID = "device-abc12345"


@pytest.fixture(scope="session")
def admin_password_hash() -> str:
    # Work factor 12, as in production; computed once per test run
    return hash_password(ADMIN_PASSWORD, rounds=12)


@pytest.fixture
def settings(admin_password_hash: str) -> Settings:
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        database_url="sqlite+aiosqlite://",
        jwt_secret="test-secret",
        admin_password_hash=admin_password_hash,
        idea_cooldown_sec=60,
        vapid_public_key=None,
        vapid_private_key=None,
    )


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine: AsyncEngine):
    return create_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest.fixture
def app(settings: Settings, engine: AsyncEngine, session_maker):
    from main import create_app

    app = create_app(settings)
    app.state.engine = engine
    app.state.session_maker = session_maker
    app.dependency_overrides[get_settings] = lambda: settings
    return app


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-Device-Id": DEVICE_ID},
    ) as client:
        yield client


class FakePushSender:
    """Records deliveries; endpoints listed in `failures` raise with that status."""

    def __init__(self, failures: Optional[Dict[str, Optional[int]]] = None):
        self.failures = failures or {}
        self.delivered: List[str] = []
        self.attempted: List[str] = []

    async def send(self, subscription_info: dict, data: str) -> None:
        endpoint = subscription_info["endpoint"]
        self.attempted.append(endpoint)
        if endpoint in self.failures:
            raise PushDeliveryError("delivery failed", status_code=self.failures[endpoint])
        self.delivered.append(endpoint)


@pytest.fixture
def fake_sender() -> FakePushSender:
    return FakePushSender()
