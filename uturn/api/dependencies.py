"""FastAPI dependency injection helpers.

Long-lived collaborators (session factory, Redis, notifier, file storage)
are built by the application lifespan and parked on ``app.state``; the
helpers below hand them to routes and assemble the per-request services.
"""

import redis.asyncio as aioredis
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from uturn.config import Settings
from uturn.infrastructure.messaging import WhatsAppNotifier
from uturn.infrastructure.repositories import DriverRepository, JobRepository
from uturn.infrastructure.storage import LocalFileStorage
from uturn.services.availability import AvailabilityCoordinator
from uturn.services.commission import CommissionSettlement
from uturn.services.lifecycle import TripLifecycle


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_db(request: Request) -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with request.app.state.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_redis(request: Request) -> aioredis.Redis:
    return request.app.state.redis


def get_notifier(request: Request) -> WhatsAppNotifier:
    return request.app.state.notifier


def get_storage(request: Request) -> LocalFileStorage:
    return request.app.state.storage


def get_availability(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AvailabilityCoordinator:
    return AvailabilityCoordinator(
        JobRepository(db), DriverRepository(db), settings.default_job_hours
    )


def get_commission(db: AsyncSession = Depends(get_db)) -> CommissionSettlement:
    return CommissionSettlement(JobRepository(db), DriverRepository(db))


def get_lifecycle(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    redis: aioredis.Redis = Depends(get_redis),
    notifier: WhatsAppNotifier = Depends(get_notifier),
    storage: LocalFileStorage = Depends(get_storage),
) -> TripLifecycle:
    jobs, drivers = JobRepository(db), DriverRepository(db)
    return TripLifecycle(
        jobs=jobs,
        drivers=drivers,
        availability=AvailabilityCoordinator(jobs, drivers, settings.default_job_hours),
        commission=CommissionSettlement(jobs, drivers),
        notifier=notifier,
        storage=storage,
        redis=redis,
        otp_length=settings.otp_length,
        lock_ttl_seconds=settings.accept_lock_ttl_seconds,
    )
