import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from database import Base, get_db
from main import app
from models.user import User
from routers import rate_limit
from services.passwords import hash_password
from services.session_token import create_session_token


TEST_PASSWORD = "correct-horse-battery"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


def make_auth_header(user_id: str, role: str = "user") -> dict:
    token = create_session_token(user_id, email=f"{user_id}@example.com", role=role)["token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_header():
    return make_auth_header


@pytest.fixture
def seeded_password():
    """Plain-text password matching every user created by seed_user."""
    return TEST_PASSWORD


@pytest.fixture(autouse=True)
def reset_local_rate_limit_counters():
    """Keep in-memory rate-limit state isolated between tests."""
    previous = getattr(app.state, "disable_rate_limits", False)
    app.state.disable_rate_limits = True
    rate_limit._local_counters.clear()
    yield
    rate_limit._local_counters.clear()
    app.state.disable_rate_limits = previous


@pytest.fixture(autouse=True)
def reset_resource_caches():
    app.state.resource_search_cache.clear()
    app.state.resource_detail_cache.clear()
    yield
    app.state.resource_search_cache.clear()
    app.state.resource_detail_cache.clear()


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    db_path = tmp_path / "skillify_test.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield maker
    await engine.dispose()


@pytest_asyncio.fixture
async def integration_client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.pop(get_db, None)


@pytest_asyncio.fixture
async def seed_user(session_maker):
    """Insert a user row directly; returns the user id."""

    async def _seed(user_id: str, role: str = "user", **fields) -> str:
        async with session_maker() as session:
            session.add(
                User(
                    id=user_id,
                    full_name=fields.pop("full_name", f"User {user_id}"),
                    email=fields.pop("email", f"{user_id}@example.com"),
                    password_hash=TEST_PASSWORD_HASH,
                    user_role=role,
                    employment_status="student",
                    preferred_jobs=[],
                    education=[],
                    **fields,
                )
            )
            await session.commit()
        return user_id

    return _seed
