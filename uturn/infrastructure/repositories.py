"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exchanges
domain entities (``Job``, ``Driver``) with its callers, never ORM rows.
Every mutation after creation is a single ``UPDATE`` statement, so a
multi-field change either lands completely or not at all.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import BookingModel, DriverModel, SoloRideModel, utcnow
from uturn.domain.entities import Driver, Job, JobUpdate, Location
from uturn.domain.enums import DriverStatus, JobKind, JobStatus

_JOB_MODELS = {JobKind.VENDOR: BookingModel, JobKind.SOLO: SoloRideModel}

# Entity attributes that do not map 1:1 onto a column
_JOB_COMPOSITE = {"kind", "pickup", "drop"}


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _location(lat: Optional[float], lng: Optional[float]) -> Optional[Location]:
    if lat is None or lng is None:
        return None
    return Location(lat, lng)


def _job_from_row(row, kind: JobKind) -> Job:
    values = {}
    for f in fields(Job):
        if f.name in _JOB_COMPOSITE or not hasattr(row, f.name):
            continue
        value = getattr(row, f.name)
        if isinstance(value, datetime):
            value = _as_utc(value)
        values[f.name] = value
    return Job(
        kind=kind,
        pickup=_location(row.pickup_lat, row.pickup_lng),
        drop=_location(row.drop_lat, row.drop_lng),
        **values,
    )


def _job_columns(job: Job, model) -> dict:
    columns = set(model.__table__.columns.keys())
    values = {
        f.name: getattr(job, f.name)
        for f in fields(Job)
        if f.name not in _JOB_COMPOSITE and f.name in columns
    }
    if job.pickup is not None:
        values["pickup_lat"] = job.pickup.latitude
        values["pickup_lng"] = job.pickup.longitude
    if job.drop is not None:
        values["drop_lat"] = job.drop.latitude
        values["drop_lng"] = job.drop.longitude
    return {k: v for k, v in values.items() if v is not None}


@dataclass
class JobFilter:
    statuses: Optional[Iterable[JobStatus]] = None
    assigned_driver_id: Optional[str] = None
    vendor_id: Optional[str] = None
    pickup_city: Optional[str] = None
    vehicle_type: Optional[str] = None
    tracking_id: Optional[str] = None


class JobRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, job: Job) -> Job:
        model = _JOB_MODELS[job.kind]
        row = model(**_job_columns(job, model))
        self.session.add(row)
        await self.session.flush()
        return _job_from_row(row, job.kind)

    async def get(self, kind: JobKind, job_id: str) -> Optional[Job]:
        row = await self.session.get(
            _JOB_MODELS[kind], job_id, populate_existing=True
        )
        return _job_from_row(row, kind) if row else None

    async def find(self, job_id: str) -> Optional[Job]:
        """Look the id up in bookings first, then solo rides."""
        for kind in (JobKind.VENDOR, JobKind.SOLO):
            job = await self.get(kind, job_id)
            if job:
                return job
        return None

    async def find_by_tracking_id(self, tracking_id: str) -> Optional[Job]:
        for kind in (JobKind.VENDOR, JobKind.SOLO):
            jobs = await self.scan(kind, JobFilter(tracking_id=tracking_id))
            if jobs:
                return jobs[0]
        return None

    async def scan(self, kind: JobKind, criteria: JobFilter) -> list[Job]:
        model = _JOB_MODELS[kind]
        query = select(model)
        if criteria.statuses is not None:
            query = query.where(model.status.in_(list(criteria.statuses)))
        if criteria.assigned_driver_id is not None:
            query = query.where(model.assigned_driver_id == criteria.assigned_driver_id)
        if criteria.vendor_id is not None:
            if kind != JobKind.VENDOR:
                return []
            query = query.where(model.vendor_id == criteria.vendor_id)
        if criteria.pickup_city is not None:
            query = query.where(model.pickup_city == criteria.pickup_city)
        if criteria.vehicle_type is not None:
            query = query.where(model.vehicle_type == criteria.vehicle_type)
        if criteria.tracking_id is not None:
            query = query.where(model.tracking_id == criteria.tracking_id)
        result = await self.session.execute(query.order_by(model.created_at))
        return [_job_from_row(row, kind) for row in result.scalars().all()]

    async def update_fields(
        self,
        kind: JobKind,
        job_id: str,
        changes: JobUpdate,
        expected_status: Optional[JobStatus] = None,
        expected_waiting_mins: Optional[int] = None,
    ) -> bool:
        """Apply *changes* in one UPDATE.

        With ``expected_status`` (and ``expected_waiting_mins``) the write only
        happens if the row still holds those values.  Returns whether a row
        was updated.
        """
        model = _JOB_MODELS[kind]
        stmt = update(model).where(model.id == job_id)
        if expected_status is not None:
            stmt = stmt.where(model.status == expected_status)
        if expected_waiting_mins is not None:
            stmt = stmt.where(model.waiting_time_mins == expected_waiting_mins)
        stmt = stmt.values(**changes.changes(), updated_at=utcnow())
        result = await self.session.execute(
            stmt.execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def increment_waiting_time(
        self,
        kind: JobKind,
        job_id: str,
        minutes: int,
        expected_status: Optional[JobStatus] = None,
    ) -> bool:
        """Server-side ``waiting_time_mins += minutes`` (no read-modify-write).

        With ``expected_status`` rows in any other status are left alone.
        """
        model = _JOB_MODELS[kind]
        stmt = update(model).where(model.id == job_id)
        if expected_status is not None:
            stmt = stmt.where(model.status == expected_status)
        stmt = (
            stmt
            .values(
                waiting_time_mins=model.waiting_time_mins + minutes,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def commit(self) -> None:
        await self.session.commit()

    async def delete(self, kind: JobKind, job_id: str) -> bool:
        model = _JOB_MODELS[kind]
        result = await self.session.execute(
            delete(model)
            .where(model.id == job_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0


def _driver_from_row(row: DriverModel) -> Driver:
    return Driver(
        id=row.id,
        name=row.name,
        phone=row.phone,
        vehicle_number=row.vehicle_number or "",
        vehicle_type=row.vehicle_type or "",
        profile_photo_url=row.profile_photo_url,
        status=row.status,
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


class DriverRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, driver: Driver) -> Driver:
        row = DriverModel(
            id=driver.id,
            name=driver.name,
            phone=driver.phone,
            vehicle_number=driver.vehicle_number,
            vehicle_type=driver.vehicle_type,
            profile_photo_url=driver.profile_photo_url,
            status=driver.status,
        )
        self.session.add(row)
        await self.session.flush()
        return _driver_from_row(row)

    async def get_by_id(self, driver_id: str) -> Optional[Driver]:
        row = await self.session.get(DriverModel, driver_id, populate_existing=True)
        return _driver_from_row(row) if row else None

    async def get_by_phone(self, phone: str) -> Optional[Driver]:
        result = await self.session.execute(
            select(DriverModel).where(DriverModel.phone == phone)
        )
        row = result.scalar_one_or_none()
        return _driver_from_row(row) if row else None

    async def set_status(self, driver_id: str, status: DriverStatus) -> bool:
        result = await self.session.execute(
            update(DriverModel)
            .where(DriverModel.id == driver_id)
            .values(status=status, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def list_by_status(self, status: DriverStatus) -> list[Driver]:
        result = await self.session.execute(
            select(DriverModel)
            .where(DriverModel.status == status)
            .order_by(DriverModel.created_at)
        )
        return [_driver_from_row(row) for row in result.scalars().all()]
