"""Shared pytest fixtures for the Tutor Tracker test suite."""

from collections.abc import AsyncGenerator, Awaitable, Callable

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import app.models  # noqa: F401  (register tables on Base.metadata)
from app.config import settings
from app.database import Base, get_db
from app.models.store_item import StoreItem
from app.models.user import User, UserRole
from main import app

# ---------------------------------------------------------------------------
# Async engine & session fixtures (SQLite file per test)
# ---------------------------------------------------------------------------


@pytest.fixture()
async def async_engine(tmp_path):
    """Fresh database per test.

    A file rather than ``:memory:`` so that several connections see the
    same data, which the concurrency tests rely on.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for seeding data and inspecting state from the test body."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture()
async def client(session_factory) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTPX async client wired to the FastAPI app with test DB override."""

    async def _override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://testserver",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Convenience / data fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
async def users(session_factory) -> dict[str, User]:
    """An admin, two tutors and three students.

    ``alice`` and ``bob`` belong to ``tutor``; ``carol`` belongs to
    ``other_tutor``.  Every student starts with 100 points.  Seeded in a
    throwaway session so the returned objects are detached and survive
    rollbacks in the test body.
    """
    async with session_factory() as session:
        return await _seed_users(session)


async def _seed_users(db_session: AsyncSession) -> dict[str, User]:
    admin = User(username="admin", email="admin@example.com", role=UserRole.ADMIN.value)
    tutor = User(
        username="tutor",
        email="tutor@example.com",
        first_name="Tara",
        role=UserRole.TUTOR.value,
    )
    other_tutor = User(
        username="tutor2", email="tutor2@example.com", role=UserRole.TUTOR.value
    )
    db_session.add_all([admin, tutor, other_tutor])
    await db_session.flush()

    alice = User(
        username="alice",
        email="alice@example.com",
        first_name="Alice",
        last_name="Archer",
        role=UserRole.STUDENT.value,
        points=100,
        tutor_id=tutor.id,
    )
    bob = User(
        username="bob",
        email="bob@example.com",
        first_name="Bob",
        role=UserRole.STUDENT.value,
        points=100,
        tutor_id=tutor.id,
    )
    carol = User(
        username="carol",
        email="carol@example.com",
        role=UserRole.STUDENT.value,
        points=100,
        tutor_id=other_tutor.id,
    )
    db_session.add_all([alice, bob, carol])
    await db_session.commit()

    return {
        "admin": admin,
        "tutor": tutor,
        "other_tutor": other_tutor,
        "alice": alice,
        "bob": bob,
        "carol": carol,
    }


@pytest.fixture()
async def prize(make_item) -> StoreItem:
    """A single-unit store item priced at 60 points."""
    return await make_item(
        name="Homework pass",
        description="Skip one homework assignment",
        points_required=60,
        available_quantity=1,
    )


@pytest.fixture()
def make_item(session_factory) -> Callable[..., Awaitable[StoreItem]]:
    """Create a store item in its own session and return it detached."""

    async def _make(**fields) -> StoreItem:
        async with session_factory() as session:
            item = StoreItem(**fields)
            session.add(item)
            await session.commit()
            return item

    return _make


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Build the identity header the upstream proxy would forward."""

    def _headers(user: User) -> dict[str, str]:
        return {settings.AUTH_HEADER: str(user.id)}

    return _headers
