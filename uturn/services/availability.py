"""
Driver Availability
===================

Two independent checks decide whether a driver may take new work:

1. **Active booking** -- any vendor booking assigned to the driver that is
   accepted, approved or under way.  A busy driver sees no pending work
   and cannot accept.
2. **Schedule overlap** -- scans the driver's committed bookings *and* solo
   rides and rejects a job whose time window intersects one of them.

A driver blocked for unpaid commission is refused on top of both.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from uturn.domain.entities import Driver, Job
from uturn.domain.enums import (
    ACTIVE_BOOKING_STATUSES,
    COMMITTED_STATUSES,
    JobKind,
    JobStatus,
)
from uturn.domain.errors import DriverNotFound, DriverUnavailable, ScheduleConflict
from uturn.domain.scheduling import find_conflict, job_window
from uturn.infrastructure.repositories import (
    DriverRepository,
    JobFilter,
    JobRepository,
)

logger = logging.getLogger(__name__)


class AvailabilityCoordinator:
    def __init__(
        self,
        jobs: JobRepository,
        drivers: DriverRepository,
        default_job_hours: float = 4.0,
    ):
        self.jobs = jobs
        self.drivers = drivers
        self.default_job_hours = default_job_hours

    async def has_active_booking(self, driver_id: str) -> bool:
        active = await self.jobs.scan(
            JobKind.VENDOR,
            JobFilter(statuses=ACTIVE_BOOKING_STATUSES, assigned_driver_id=driver_id),
        )
        return bool(active)

    async def check_overlap(
        self,
        driver_id: str,
        start: datetime,
        end: datetime,
        exclude_job_id: Optional[str] = None,
    ) -> Optional[Job]:
        """Return the driver's first committed job overlapping ``[start, end)``."""
        for kind in (JobKind.VENDOR, JobKind.SOLO):
            committed = await self.jobs.scan(
                kind,
                JobFilter(
                    statuses=COMMITTED_STATUSES[kind], assigned_driver_id=driver_id
                ),
            )
            committed = [j for j in committed if j.id != exclude_job_id]
            conflict = find_conflict(committed, start, end, self.default_job_hours)
            if conflict is not None:
                return conflict
        return None

    async def ensure_can_take(self, driver: Driver, job: Job) -> None:
        """Raise unless *driver* may be assigned *job* right now."""
        if driver.is_blocked:
            raise DriverUnavailable(
                "Driver is blocked until the pending commission is paid"
            )
        if job.kind == JobKind.VENDOR and await self.has_active_booking(driver.id):
            raise DriverUnavailable("You have an active ride")

        window = job_window(job, self.default_job_hours)
        if window is None:
            logger.debug("Job %s has no parseable schedule; skipping overlap check", job.id)
            return
        conflict = await self.check_overlap(
            driver.id, window[0], window[1], exclude_job_id=job.id
        )
        if conflict is not None:
            logger.info(
                "Driver %s schedule conflict: job %s overlaps %s",
                driver.id, job.id, conflict.id,
            )
            raise ScheduleConflict(conflict)

    async def list_pending(
        self,
        city: Optional[str] = None,
        vehicle_type: Optional[str] = None,
        driver_id: Optional[str] = None,
    ) -> list[Job]:
        """Pending bookings; empty for a driver who cannot take work."""
        if driver_id:
            driver = await self.drivers.get_by_id(driver_id)
            if driver is None:
                raise DriverNotFound(driver_id)
            if driver.is_blocked or await self.has_active_booking(driver_id):
                return []

        return await self.jobs.scan(
            JobKind.VENDOR,
            JobFilter(
                statuses={JobStatus.PENDING},
                pickup_city=city,
                vehicle_type=vehicle_type,
            ),
        )
