"""Shared test configuration and fixtures.

Every test gets a fresh SQLite database file, so tests are isolated without
relying on transaction rollback. The reservation store opens its own
transactions, which means fixtures commit the rows they create.

Time is frozen at ``FIXED_NOW`` for both the service and the API so the
past-date and cancellation-window rules are deterministic.
"""

import uuid
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

import epicspots.models  # noqa: F401  (registers every table on Base.metadata)
from epicspots.api.deps import get_clock, get_spot_locks
from epicspots.auth.jwt import create_token_pair
from epicspots.auth.passwords import hash_password
from epicspots.database import Base, get_session_factory, make_engine, make_session_factory
from epicspots.main import app
from epicspots.models.spot import Spot
from epicspots.models.user import User, UserRole
from epicspots.reservations.store import SpotLocks, SqlReservationStore
from epicspots.services.directory import SqlSpotCatalog, SqlUserDirectory
from epicspots.services.reservation_service import ReservationService

FIXED_NOW = datetime(2030, 6, 10, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """A throwaway SQLite database with all tables created."""
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'epicspots_test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(test_engine)


@pytest.fixture
def spot_locks() -> SpotLocks:
    return SpotLocks()


# ---------------------------------------------------------------------------
# Data helpers
# ---------------------------------------------------------------------------


async def create_user(
    session_factory: async_sessionmaker[AsyncSession],
    role: UserRole = UserRole.USER,
    name: str = "Test User",
    is_active: bool = True,
) -> User:
    """Create and commit a user directly in the DB."""
    unique = uuid.uuid4().hex[:8]
    async with session_factory() as session:
        user = User(
            email=f"{role.value.lower()}-{unique}@test.com",
            hashed_password=hash_password("testpass123"),
            name=name,
            role=role,
            is_active=is_active,
        )
        session.add(user)
        await session.flush()
        await session.refresh(user)
        await session.commit()
    return user


async def create_spot(
    session_factory: async_sessionmaker[AsyncSession],
    owner: User,
    price: Decimal = Decimal("100.00"),
    title: str = "Test Spot",
) -> Spot:
    """Create and commit a spot owned by ``owner``."""
    async with session_factory() as session:
        spot = Spot(owner_id=owner.id, title=title, location="Testville", price=price)
        session.add(spot)
        await session.flush()
        await session.refresh(spot)
        await session.commit()
    return spot


def auth_headers_for(user: User) -> dict[str, str]:
    tokens = create_token_pair(str(user.id))
    return {"Authorization": f"Bearer {tokens['access_token']}"}


# ---------------------------------------------------------------------------
# Users and spots
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def guest(session_factory) -> User:
    return await create_user(session_factory, UserRole.USER, name="Test Guest")


@pytest_asyncio.fixture
async def other_guest(session_factory) -> User:
    return await create_user(session_factory, UserRole.USER, name="Other Guest")


@pytest_asyncio.fixture
async def owner(session_factory) -> User:
    return await create_user(session_factory, UserRole.OWNER, name="Test Owner")


@pytest_asyncio.fixture
async def spot(session_factory, owner: User) -> Spot:
    return await create_spot(session_factory, owner, price=Decimal("120.00"))


@pytest.fixture
def guest_headers(guest: User) -> dict[str, str]:
    return auth_headers_for(guest)


@pytest.fixture
def other_headers(other_guest: User) -> dict[str, str]:
    return auth_headers_for(other_guest)


@pytest.fixture
def owner_headers(owner: User) -> dict[str, str]:
    return auth_headers_for(owner)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


@pytest.fixture
def make_service(session_factory, spot_locks) -> Callable[..., ReservationService]:
    """Build a ``ReservationService`` on the test DB with a frozen clock."""

    def _make(now: datetime = FIXED_NOW, lock_timeout: float = 10.0) -> ReservationService:
        store = SqlReservationStore(session_factory, spot_locks, lock_timeout=lock_timeout)
        return ReservationService(
            store=store,
            spots=SqlSpotCatalog(session_factory),
            users=SqlUserDirectory(session_factory),
            clock=lambda: now,
        )

    return _make


@pytest.fixture
def service(make_service) -> ReservationService:
    return make_service()


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(session_factory, spot_locks) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to the test DB and frozen clock."""
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_spot_locks] = lambda: spot_locks
    app.dependency_overrides[get_clock] = lambda: (lambda: FIXED_NOW)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    """``await make_user(role=..., name=...)`` for tests that need extra users."""

    async def _make(role: UserRole = UserRole.USER, name: str = "Extra User", is_active: bool = True) -> User:
        return await create_user(session_factory, role, name=name, is_active=is_active)

    return _make


@pytest.fixture
def make_spot(session_factory):
    """``await make_spot(owner, price=..., title=...)`` for tests that need extra spots."""

    async def _make(owner: User, price: Decimal = Decimal("100.00"), title: str = "Extra Spot") -> Spot:
        return await create_spot(session_factory, owner, price=price, title=title)

    return _make
