"""Shared fixtures: in-memory database, sample rows and a manual scheduler."""

import itertools
from typing import Callable, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.database import Base
from app.models import Property, User, UserRole


# Use in-memory SQLite for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(TEST_DATABASE_URL, echo=False)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session():
    """Create a fresh database session for each test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def landlord(db_session: AsyncSession) -> User:
    user = User(email="landlord@example.com", full_name="Lena Landlord", role=UserRole.LANDLORD.value)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def tenant(db_session: AsyncSession) -> User:
    user = User(email="tenant@example.com", full_name="Tom Tenant", role=UserRole.TENANT.value)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def make_property(db_session: AsyncSession, landlord: User):
    """Factory creating listings owned by the sample landlord."""
    counter = itertools.count(1)

    async def factory(**overrides) -> Property:
        n = next(counter)
        fields = dict(
            landlord_id=landlord.id,
            title=f"Flat {n}",
            description="Sunny flat",
            property_type="apartment",
            address=f"{n} Independence Ave",
            city="Windhoek",
            price_nad=5000.0 + n,
            bedrooms=2,
            bathrooms=1,
            images=[f"img-{n}"],
            amenity_names=["parking"],
            is_available=True,
        )
        fields.update(overrides)
        prop = Property(**fields)
        db_session.add(prop)
        await db_session.commit()
        await db_session.refresh(prop)
        return prop

    return factory


@pytest.fixture
def fake_storage():
    """Storage client stand-in resolving every id to a predictable URL."""
    storage = MagicMock()

    async def resolve_urls(ids):
        return [f"https://cdn.test/{sid}" for sid in ids or []]

    storage.resolve_urls = AsyncMock(side_effect=resolve_urls)
    return storage


class ManualScheduler:
    """Scheduler whose clock only moves when a test calls ``advance``."""

    def __init__(self):
        self.now = 0.0
        self._timers: list["ManualTimer"] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> "ManualTimer":
        timer = ManualTimer(self.now + delay, callback)
        self._timers.append(timer)
        return timer

    @property
    def active(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled and not t.fired)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and not t.fired and t.when <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self.now = timer.when
            timer.fired = True
            timer.callback()
        self.now = target


class ManualTimer:
    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


class StepClock:
    """Millisecond clock advancing by ``step`` on every read."""

    def __init__(self, start: int = 1_700_000_000_000, step: Optional[int] = 1):
        self.value = start
        self.step = step

    def __call__(self) -> int:
        current = self.value
        if self.step:
            self.value += self.step
        return current


@pytest.fixture
def step_clock() -> StepClock:
    return StepClock()
