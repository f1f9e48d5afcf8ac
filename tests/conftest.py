"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  The production models carry no
PostgreSQL-only column types, so the real metadata is created as-is.
Redis and WhatsApp are replaced with ``AsyncMock`` doubles.
"""

import uuid
from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from uturn.domain.entities import Driver
from uturn.infrastructure import models  # noqa: F401  (registers tables)
from uturn.infrastructure.database import Base, build_session_factory
from uturn.infrastructure.messaging import WhatsAppNotifier
from uturn.infrastructure.repositories import DriverRepository, JobRepository
from uturn.infrastructure.storage import LocalFileStorage
from uturn.services.availability import AvailabilityCoordinator
from uturn.services.commission import CommissionSettlement
from uturn.services.lifecycle import TripLifecycle

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


# ── Database ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def engine():
    """One shared in-memory connection; tables created fresh per test."""
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ── Collaborator doubles ──────────────────────────────────────────────


@pytest.fixture
def mock_redis():
    """Redis double whose lock acquire (SET NX) and release (EVAL) succeed."""
    redis = AsyncMock()
    redis.set = AsyncMock(return_value=True)
    redis.eval = AsyncMock(return_value=1)
    redis.ping = AsyncMock(return_value=True)
    return redis


@pytest.fixture
def notifier():
    return AsyncMock(spec=WhatsAppNotifier)


@pytest.fixture
def storage(tmp_path):
    return LocalFileStorage(str(tmp_path / "uploads"), "http://test/uploads")


# ── Services ──────────────────────────────────────────────────────────


@pytest.fixture
def jobs(db_session):
    return JobRepository(db_session)


@pytest.fixture
def drivers(db_session):
    return DriverRepository(db_session)


@pytest.fixture
def availability(jobs, drivers):
    return AvailabilityCoordinator(jobs, drivers)


@pytest.fixture
def commission(jobs, drivers):
    return CommissionSettlement(jobs, drivers)


@pytest.fixture
def lifecycle(jobs, drivers, availability, commission, notifier, storage, mock_redis):
    return TripLifecycle(
        jobs=jobs,
        drivers=drivers,
        availability=availability,
        commission=commission,
        notifier=notifier,
        storage=storage,
        redis=mock_redis,
    )


# ── Builders ──────────────────────────────────────────────────────────


@pytest.fixture
def make_driver(drivers):
    counter = iter(range(1000))

    async def _make(**overrides) -> Driver:
        n = next(counter)
        values = dict(
            id=str(uuid.uuid4()),
            name=f"Driver {n}",
            phone=f"+9198400{n:05d}",
            vehicle_number=f"TN01AB{n:04d}",
            vehicle_type="Sedan",
        )
        values.update(overrides)
        return await drivers.add(Driver(**values))

    return _make
