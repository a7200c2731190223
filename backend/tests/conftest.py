"""
Pytest configuration for the team feedback backend.
Points the app at throwaway SQLite and cache locations before anything imports it.
"""

import os
import tempfile

# Must be set before any app imports: settings are cached on first use
_test_data_dir = tempfile.mkdtemp(prefix="team_feedback_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_test_data_dir}/bootstrap.db"
os.environ["LOCAL_CACHE_DIR"] = os.path.join(_test_data_dir, "cache")
os.environ["GEMINI_API_KEY"] = ""
os.environ["JWT_SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"

from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api.deps import get_ai_assistant
from app.core.security import create_access_token, hash_password
from app.database import Base, build_engine, get_db
from app.main import app
from app.models.user import UserRole
from app.schemas.user import UserRecord
from app.services import store
from app.services.ai_assistant import AiAssistant
from app.services.local_cache import local_cache

TEST_PASSWORD = "s3cret-pass"


@pytest.fixture(autouse=True)
def isolated_cache(tmp_path, monkeypatch):
    """Every test gets an empty local cache directory."""
    cache_dir = tmp_path / "cache"
    monkeypatch.setattr(local_cache, "directory", str(cache_dir))
    return cache_dir


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(db):
    """Factory that stores a user directly, bypassing signup and approval."""

    async def _make(
        username: str,
        role: UserRole = UserRole.USER,
        manager_id: str | None = None,
        is_approved: bool = True,
        with_password: bool = False,
        name: str | None = None,
    ) -> UserRecord:
        user = UserRecord(
            username=username,
            name=name or username.capitalize(),
            role=role,
            manager_id=manager_id,
            is_approved=is_approved,
            password_hash=hash_password(TEST_PASSWORD) if with_password else "",
        )
        return await store.users.upsert(db, user)

    return _make


@pytest.fixture
def password():
    """Plain-text password of users made with ``with_password=True``."""
    return TEST_PASSWORD


@pytest.fixture
def auth_headers():
    def _headers(user: UserRecord) -> dict:
        token = create_access_token(user.id, user.role.value)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def ai_stub():
    """AiAssistant double with canned answers."""
    assistant = AsyncMock(spec=AiAssistant)
    assistant.refine.return_value = "Refined feedback text"
    assistant.analyze.return_value = "Agent was curt with the customer. Sentiment: Negative"
    assistant.coach.return_value = "Pause before replying and restate the customer's issue."
    assistant.insight.return_value = "Most reports concern tone on escalated calls."
    return assistant


@pytest_asyncio.fixture
async def client(session_factory, ai_stub):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ai_assistant] = lambda: ai_stub
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
