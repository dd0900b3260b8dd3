import pytest
import pytest_asyncio
from fakeredis import FakeServer
from fakeredis.aioredis import FakeRedis
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, update
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from biubiustar.core.config import settings
from biubiustar.db.base import Base
from biubiustar.db.session import create_session_maker
from biubiustar.main import app
from biubiustar.models.user import User

PASSWORD = "secret1"


@pytest.fixture(autouse=True)
def force_test_settings(monkeypatch):
    monkeypatch.setattr(settings, "JWT_SECRET", "test-secret")
    monkeypatch.setattr(settings, "POST_REVIEW_REQUIRED", False)
    monkeypatch.setattr(settings, "ENVIRONMENT", "test")


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return create_session_maker(engine)


@pytest_asyncio.fixture
async def fake_redis():
    client = FakeRedis(server=FakeServer(), decode_responses=True)
    try:
        yield client
    finally:
        await client.flushall()
        await client.aclose()


@pytest_asyncio.fixture
async def api_client(engine, session_maker, fake_redis):
    app.state.engine = engine
    app.state.session_maker = session_maker
    app.state.redis = fake_redis
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def register(client: AsyncClient, username: str, email: str | None = None, password: str = PASSWORD) -> dict:
    """Register a user and return {"user": ..., "token": ...}."""
    resp = await client.post(
        "/api/auth/register",
        json={"email": email or f"{username}@x.com", "username": username, "password": password},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def set_role(session_maker, username: str, role: str) -> None:
    async with session_maker() as session:
        await session.execute(update(User).where(User.username == username).values(role=role))
        await session.commit()


@pytest_asyncio.fixture
async def alice(api_client):
    return await register(api_client, "alice", "a@x.com")


@pytest_asyncio.fixture
async def bob(api_client):
    return await register(api_client, "bob", "b@x.com")


@pytest_asyncio.fixture
async def admin(api_client, session_maker):
    data = await register(api_client, "admin1", "admin1@biubiu.io")
    await set_role(session_maker, "admin1", "admin")
    return data


@pytest_asyncio.fixture
async def super_admin(api_client, session_maker):
    data = await register(api_client, "root", "root@biubiu.io")
    await set_role(session_maker, "root", "super_admin")
    return data
