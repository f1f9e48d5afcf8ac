"""
Commission Settlement
=====================

Completing a trip blocks the driver (``blocked_for_payment``) until the
commission is settled.  Settlement is per driver, not per job: marking any
one job's commission as paid returns the driver to ``active`` even when
other completed jobs still owe commission.
"""

from __future__ import annotations

import logging

from uturn.domain.entities import Driver, Job, JobUpdate
from uturn.domain.enums import CommissionStatus, DriverStatus
from uturn.domain.errors import DriverNotFound, JobNotFound
from uturn.infrastructure.repositories import DriverRepository, JobRepository

logger = logging.getLogger(__name__)


class CommissionSettlement:
    def __init__(self, jobs: JobRepository, drivers: DriverRepository):
        self.jobs = jobs
        self.drivers = drivers

    async def block_driver(self, driver_id: str) -> None:
        await self.drivers.set_status(driver_id, DriverStatus.BLOCKED_FOR_PAYMENT)
        logger.info("Driver %s blocked pending commission", driver_id)

    async def mark_commission_paid(self, job_id: str) -> Job:
        job = await self.jobs.find(job_id)
        if job is None:
            raise JobNotFound(job_id)

        await self.jobs.update_fields(
            job.kind, job.id, JobUpdate(commission_status=CommissionStatus.PAID)
        )
        if job.assigned_driver_id:
            await self.drivers.set_status(job.assigned_driver_id, DriverStatus.ACTIVE)
        logger.info(
            "Commission paid for %s %s; driver %s unblocked",
            job.label.lower(), job.id, job.assigned_driver_id,
        )
        return await self.jobs.get(job.kind, job.id)

    async def list_blocked_drivers(self) -> list[Driver]:
        return await self.drivers.list_by_status(DriverStatus.BLOCKED_FOR_PAYMENT)

    async def unblock_driver(self, driver_id: str) -> Driver:
        if not await self.drivers.set_status(driver_id, DriverStatus.ACTIVE):
            raise DriverNotFound(driver_id)
        logger.info("Driver %s unblocked by vendor", driver_id)
        return await self.drivers.get_by_id(driver_id)
