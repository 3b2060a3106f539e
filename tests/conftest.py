"""Shared fixtures: a file-backed SQLite database, a controllable clock and an HTTP client."""
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from uuid import uuid4

import httpx
import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from courtbook.core.clock import Clock, get_clock
from courtbook.core.database import Base, get_db
from courtbook.core.security import hash_password
from courtbook.main import app
from courtbook.models import Court, CourtStatus, User, UserRole
from courtbook.services.booking_service import BookingService
from courtbook.services.refund_policy import booking_start_utc

SLOT_DATE = date(2025, 6, 1)
SLOT_TIME = time(18, 0)


class FakeClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current

    def set(self, value: datetime) -> None:
        self.current = value


def slot_start(booking_date: date = SLOT_DATE, start: time = SLOT_TIME) -> datetime:
    return booking_start_utc(booking_date, start)


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'courtbook.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        # Match PostgreSQL: enforce ON DELETE rules
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FakeClock:
    # Five hours before the default slot starts
    return FakeClock(slot_start() - timedelta(hours=5))


@pytest.fixture
def service(clock) -> BookingService:
    return BookingService(clock=clock)


async def make_user(db: AsyncSession, role: UserRole = UserRole.PLAYER, name: str = "Test User") -> User:
    user = User(
        name=name,
        email=f"user-{uuid4().hex[:12]}@example.com",
        password_hash=hash_password("secret123"),
        role=role.value,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def make_court(
    db: AsyncSession,
    owner: User,
    price: str = "40.00",
    status: CourtStatus = CourtStatus.AVAILABLE,
    operating_hours=None,
) -> Court:
    court = Court(
        owner_id=owner.id,
        name="Court X",
        location="DHA Phase 6",
        city="Lahore",
        price_per_hour=Decimal(price),
        status=status.value,
        court_type="Indoor",
        surface="Synthetic",
        operating_hours=operating_hours,
    )
    db.add(court)
    await db.commit()
    await db.refresh(court)
    return court


@pytest.fixture
async def owner(db) -> User:
    return await make_user(db, UserRole.OWNER, name="Court Owner")


@pytest.fixture
async def player(db) -> User:
    return await make_user(db, UserRole.PLAYER, name="Player One")


@pytest.fixture
async def admin(db) -> User:
    return await make_user(db, UserRole.ADMIN, name="Admin")


@pytest.fixture
async def court(db, owner) -> Court:
    return await make_court(db, owner)


@pytest.fixture
async def client(session_factory, clock):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client

    app.dependency_overrides.clear()


def as_user(user: User) -> dict:
    return {"X-User-Id": str(user.id)}
