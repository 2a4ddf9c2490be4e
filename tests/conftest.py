import os

os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.privy_client import get_privy_client
from app.database import Base
from app.init_db import get_db
from app.main import app
from app.models import InviteCode, User
from app.services import profile_refresh
from helpers import FakePrivyClient


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def seed(session_factory):
    """Persist rows through a separate session so services start from a clean identity map."""
    async def _seed(*rows):
        async with session_factory() as session:
            session.add_all(rows)
            await session.commit()
        return rows[0] if len(rows) == 1 else rows
    return _seed


@pytest.fixture
def count(session_factory):
    async def _count(model, *criteria) -> int:
        async with session_factory() as session:
            result = await session.execute(select(func.count()).select_from(model).where(*criteria))
            return result.scalar_one()
    return _count


@pytest.fixture
def fetch(session_factory):
    async def _fetch(model, *criteria):
        async with session_factory() as session:
            result = await session.execute(select(model).where(*criteria))
            return result.scalar_one_or_none()
    return _fetch


@pytest.fixture
def privy():
    return FakePrivyClient()


@pytest.fixture(autouse=True)
def scheduled(monkeypatch):
    """Record background refresh requests instead of publishing to the broker."""
    calls = []

    def fake_schedule(user_id, wallet):
        calls.append((user_id, wallet))
        return True

    monkeypatch.setattr(profile_refresh, "schedule_profile_refresh", fake_schedule)
    return calls


@pytest.fixture
def make_user(seed):
    async def _make_user(privy_user_id: str, wallet: str, **fields) -> User:
        fields.setdefault("is_active", True)
        fields.setdefault("has_finished_onboarding", False)
        return await seed(User(privy_user_id=privy_user_id, wallet=wallet.lower(), **fields))
    return _make_user


@pytest.fixture
def make_code(seed):
    async def _make_code(code: str = "ABC123", max_uses: int = 1, used: int = 0, is_active: bool = True, **fields) -> InviteCode:
        return await seed(InviteCode(code=code, max_uses=max_uses, used=used, is_active=is_active, **fields))
    return _make_code


@pytest_asyncio.fixture
async def client(session_factory, privy):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_privy_client] = lambda: privy

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
