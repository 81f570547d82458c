import os
import tempfile

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-fitlink-suite")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["REGISTER_RATE_LIMIT"] = "50"
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="fitlink-static-"))

import pytest
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from fitlink.database import Base, get_db
from fitlink.config import settings
from fitlink.main import app
from fitlink.core.rate_limit import reset_rate_limiter_state
import fitlink.models  # noqa: F401

DEFAULT_PASSWORD = "password123"


@pytest.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    async_session = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )
    async with async_session() as session:
        yield session


@pytest.fixture(scope="function")
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    await reset_rate_limiter_state()

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
    await reset_rate_limiter_state()


@pytest.fixture
def register(client: AsyncClient):
    """Register an account through the API and return its session payload plus auth headers."""

    async def _register(user_type: str, email: str, **extra) -> dict:
        payload = {
            "email": email,
            "password": DEFAULT_PASSWORD,
            "first_name": extra.pop("first_name", email.split("@")[0].title()),
            "last_name": extra.pop("last_name", "Tester"),
            "user_type": user_type,
            **extra,
        }
        response = await client.post(f"{settings.API_V1_STR}/auth/register", json=payload)
        assert response.status_code == 200, response.text
        data = response.json()["data"]
        data["headers"] = {"Authorization": f"Bearer {data['access_token']}"}
        return data

    return _register


@pytest.fixture
async def coach(register) -> dict:
    return await register("coach", "coach@fitlink.io", first_name="Carla", last_name="Coach", specialization="Powerlifting")


@pytest.fixture
async def client_account(register) -> dict:
    return await register("client", "client@fitlink.io", first_name="Cody", last_name="Client")


@pytest.fixture
async def gym_account(register) -> dict:
    return await register(
        "gym",
        "gym@fitlink.io",
        first_name="Gina",
        last_name="Owner",
        gym={"name": "Iron Temple", "address": "1 Barbell Road"},
    )


@pytest.fixture
async def linked_pair(client: AsyncClient, coach: dict, client_account: dict) -> tuple[dict, dict]:
    """A coach and a client joined through an accepted coach_to_client invitation."""
    invite = await client.post(
        f"{settings.API_V1_STR}/invitations",
        json={"type": "coach_to_client", "invitee_email": client_account["user"]["email"]},
        headers=coach["headers"],
    )
    assert invite.status_code == 200, invite.text
    accept = await client.patch(
        f"{settings.API_V1_STR}/invitations/{invite.json()['data']['id']}",
        json={"status": "accepted"},
        headers=client_account["headers"],
    )
    assert accept.status_code == 200, accept.text
    return coach, client_account
