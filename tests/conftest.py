"""
Pytest fixtures for test database, client, ledger, and authentication.

Each test gets its own SQLite database file so concurrent ledger operations
run on real, separate connections. Redis is disabled.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./ticketbook_unused.db")
os.environ["REDIS_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "test"

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketbook.core.security import create_access_token, hash_password
from ticketbook.db.base import Base
from ticketbook.db.session import build_engine, build_session_factory, get_db
from ticketbook.ledger import BookingLedger, get_ledger
from ticketbook.ledger.stores.sqlalchemy_store import SqlAlchemyLedgerStore
from ticketbook.ledger.strategies import OptimisticReservation, PessimisticReservation
from ticketbook.main import app
from ticketbook.models.booking import Booking
from ticketbook.models.event import Event
from ticketbook.models.user import User


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh database file per test, tables created up front."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'ticketbook_test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_ledger(session_factory):
    """Build a ledger over the test database with the given strategy."""

    def _make(strategy: str = "optimistic", max_attempts: int = 25) -> BookingLedger:
        store = SqlAlchemyLedgerStore(session_factory, attempts=3, timeout=10.0, backoff=0.01)
        if strategy == "optimistic":
            reservation = OptimisticReservation(max_attempts=max_attempts)
        else:
            reservation = PessimisticReservation()
        return BookingLedger(store, reservation, max_tickets_per_booking=10, conflict_backoff=0.001)

    return _make


@pytest.fixture(params=["optimistic", "pessimistic"])
def ledger(request, make_ledger) -> BookingLedger:
    """Ledger fixture; tests using it run once per reservation strategy."""
    return make_ledger(request.param)


@pytest_asyncio.fixture
async def client(session_factory, make_ledger) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the database and ledger dependencies pointed at the test DB."""
    http_ledger = make_ledger("optimistic")

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ledger] = lambda: http_ledger

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db_session: AsyncSession, email: str, username: str) -> User:
    user = User(
        email=email,
        username=username,
        first_name="Test",
        last_name="User",
        hashed_password=hash_password("testpassword123"),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "test@example.com", "testuser")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "other@example.com", "otheruser")


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    token = create_access_token(data={"sub": str(test_user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_headers(other_user: User) -> dict:
    token = create_access_token(data={"sub": str(other_user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_event(db_session: AsyncSession, test_user: User):
    """Factory for events owned by test_user."""

    async def _make(
        capacity: int = 100,
        tickets_available: Optional[int] = None,
        price: Decimal = Decimal("25.00"),
        title: str = "Test Concert",
        days_ahead: int = 30,
        category_id: Optional[int] = None,
    ) -> Event:
        event = Event(
            title=title,
            description="A test event",
            date=datetime.now(timezone.utc) + timedelta(days=days_ahead),
            location="Test Venue",
            price=price,
            capacity=capacity,
            tickets_available=capacity if tickets_available is None else tickets_available,
            category_id=category_id,
            organizer_id=test_user.id,
        )
        db_session.add(event)
        await db_session.commit()
        await db_session.refresh(event)
        return event

    return _make


@pytest_asyncio.fixture
async def test_event(make_event) -> Event:
    """Event with 100 tickets at 25.00."""
    return await make_event()


@pytest_asyncio.fixture
async def sold_out_event(make_event) -> Event:
    return await make_event(capacity=50, tickets_available=0, title="Sold Out Show")


@pytest.fixture
def event_state(session_factory):
    """Read (capacity, tickets_available, confirmed ticket sum) for an event from a fresh session."""

    async def _state(event_id: int) -> tuple[int, int, int]:
        async with session_factory() as session:
            row = (
                await session.execute(
                    select(Event.capacity, Event.tickets_available).where(Event.id == event_id)
                )
            ).one()
            confirmed = (
                await session.execute(
                    select(func.coalesce(func.sum(Booking.number_of_tickets), 0)).where(
                        Booking.event_id == event_id,
                        Booking.status == "confirmed",
                    )
                )
            ).scalar()
        return row.capacity, row.tickets_available, int(confirmed)

    return _state
