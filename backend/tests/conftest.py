import os
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Default DATABASE_URL (not used by tests that use the per-session engine)
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_fomi.db")
from fomi.main import app
from fomi.core.security import create_access_token
from fomi.db.database import Base, get_db
from fomi.db.models import User


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="session")
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///./test_fomi.db",
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="session")
async def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def clean_tables(test_engine):
    """Ensure DB is empty before each test by deleting from all tables (keep schema intact)."""
    async with test_engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            await conn.execute(table.delete())
    yield


@pytest.fixture
async def db_session(session_factory, clean_tables):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory, clean_tables):
    """HTTP client bound to the app; every request gets its own session on the test engine."""
    async def _override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _make_user(db_session, email: str, name: str) -> User:
    user = User(email=email, name=name, email_verified=True)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


def _token_for(user: User) -> str:
    return create_access_token(data={"sub": str(user.id), "email": user.email})


@pytest.fixture
async def user(db_session):
    return await _make_user(db_session, "owner@example.com", "owner")


@pytest.fixture
async def other_user(db_session):
    return await _make_user(db_session, "stranger@example.com", "stranger")


@pytest.fixture
def token(user):
    return _token_for(user)


@pytest.fixture
def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_headers(other_user):
    return {"Authorization": f"Bearer {_token_for(other_user)}"}
