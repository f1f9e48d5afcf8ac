"""
Trip Lifecycle Engine
=====================

Drives a job through

    draft -> pending -> driver_accepted -> vendor_approved -> in_progress -> completed
                 ^             |
                 +-- reject ---+

(solo rides start life as ``confirmed`` and skip the vendor steps), with
``cancelled`` reachable from every non-terminal status.

Every operation reads the job, validates the transition against
``JOB_TRANSITIONS`` and writes all changed fields in one UPDATE that is
conditional on the status it read, so a job that moved underneath the
caller is reported as an invalid transition instead of being overwritten.

Concurrency safety
------------------
* **Accept** runs under a per-driver Redis lock and commits before the
  lock is released, so a driver's availability check and assignment are
  never interleaved with another acceptance by the same driver.  The
  ``status = 'pending'`` condition makes a second driver's accept of the
  same booking fail.
* **Waiting time** is a server-side increment guarded on ``in_progress``;
  concurrent additions never lose updates, and completion only settles
  the fare against the waiting time it read.

Notifications go out after the state change is committed and never fail
the operation.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import redis.asyncio as aioredis

from uturn.domain.codes import booking_tracking_id, generate_otp, solo_tracking_id
from uturn.domain.entities import Job, JobUpdate
from uturn.domain.enums import (
    CommissionStatus,
    JobKind,
    JobStatus,
    PaymentStatus,
    STARTABLE_STATUSES,
)
from uturn.domain.errors import (
    DriverNotFound,
    DriverUnavailable,
    InvalidOTP,
    InvalidStateTransition,
    InvalidTripData,
    JobNotFound,
)
from uturn.domain.pricing import coerce_amount, quote_fare, settle_fare
from uturn.infrastructure.locks import LockNotAcquired, driver_accept_lock
from uturn.infrastructure.messaging import WhatsAppNotifier
from uturn.infrastructure.repositories import (
    DriverRepository,
    JobFilter,
    JobRepository,
)
from uturn.infrastructure.storage import LocalFileStorage
from uturn.services.availability import AvailabilityCoordinator
from uturn.services.commission import CommissionSettlement

logger = logging.getLogger(__name__)

COMPLETE_ATTEMPTS = 3


@dataclass(frozen=True)
class MediaUpload:
    data: bytes
    content_type: str
    filename: str = ""

    @property
    def extension(self) -> str:
        _, dot, ext = self.filename.rpartition(".")
        return re.sub(r"[^a-z0-9]", "", ext.lower()) if dot else ""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TripLifecycle:
    def __init__(
        self,
        jobs: JobRepository,
        drivers: DriverRepository,
        availability: AvailabilityCoordinator,
        commission: CommissionSettlement,
        notifier: WhatsAppNotifier,
        storage: LocalFileStorage,
        redis: aioredis.Redis,
        otp_length: int = 6,
        lock_ttl_seconds: int = 30,
    ):
        self.jobs = jobs
        self.drivers = drivers
        self.availability = availability
        self.commission = commission
        self.notifier = notifier
        self.storage = storage
        self.redis = redis
        self.otp_length = otp_length
        self.lock_ttl_seconds = lock_ttl_seconds

    # ── Lookups ───────────────────────────────────────────────────────

    async def get_job(self, job_id: str) -> Job:
        job = await self.jobs.find(job_id)
        if job is None:
            raise JobNotFound(job_id, "Ride")
        return job

    async def get_booking(self, job_id: str) -> Job:
        job = await self.jobs.get(JobKind.VENDOR, job_id)
        if job is None:
            raise JobNotFound(job_id)
        return job

    async def track(self, tracking_id: str) -> Job:
        """Public lookup by tracking code, falling back to the raw id."""
        job = await self.jobs.find_by_tracking_id(tracking_id)
        if job is None:
            job = await self.jobs.find(tracking_id)
        if job is None:
            raise JobNotFound(tracking_id)
        return job

    async def vendor_bookings(
        self, vendor_id: str, status: Optional[JobStatus] = None
    ) -> list[Job]:
        return await self.jobs.scan(
            JobKind.VENDOR,
            JobFilter(vendor_id=vendor_id, statuses={status} if status else None),
        )

    async def driver_bookings(
        self, driver_id: str, status: Optional[JobStatus] = None
    ) -> list[Job]:
        return await self.jobs.scan(
            JobKind.VENDOR,
            JobFilter(
                assigned_driver_id=driver_id, statuses={status} if status else None
            ),
        )

    async def solo_rides(self, driver_id: str) -> list[Job]:
        rides = await self.jobs.scan(
            JobKind.SOLO, JobFilter(assigned_driver_id=driver_id)
        )
        return sorted(rides, key=lambda r: r.created_at, reverse=True)

    async def quote(self, job_id: str) -> int:
        return quote_fare(await self.get_job(job_id))

    # ── Creation ──────────────────────────────────────────────────────

    async def create_booking(self, job: Job) -> Job:
        if job.status not in (JobStatus.DRAFT, JobStatus.PENDING):
            raise InvalidStateTransition(
                f"A booking cannot be created in status {job.status.value}"
            )
        job.kind = JobKind.VENDOR
        job.id = str(uuid.uuid4())
        job.assigned_driver_id = None
        if not job.total_amount:
            job.total_amount = job.estimated_fare
        created = await self.jobs.add(job)
        logger.info("Booking %s created by vendor %s (%s)", created.id, created.vendor_id, created.status.value)
        return created

    async def create_solo_ride(self, driver_id: str, job: Job) -> Job:
        driver = await self.drivers.get_by_id(driver_id)
        if driver is None:
            raise DriverNotFound(driver_id)

        job.kind = JobKind.SOLO
        job.id = str(uuid.uuid4())
        job.status = JobStatus.CONFIRMED
        job.tracking_id = solo_tracking_id()
        job.vendor_id = None
        job.assigned_driver_id = driver.id
        job.driver_name = driver.name
        job.driver_phone = driver.phone
        job.vehicle_number = driver.vehicle_number
        job.driver_photo_url = driver.profile_photo_url
        job.vehicle_type = job.vehicle_type or driver.vehicle_type
        job.schedule_date = job.schedule_date or _utcnow().isoformat()
        job.schedule_time = job.schedule_time or "Now"

        await self.availability.ensure_can_take(driver, job)
        created = await self.jobs.add(job)
        logger.info("Solo ride %s (%s) created by driver %s", created.id, created.tracking_id, driver.id)
        return created

    async def publish(self, job_id: str) -> Job:
        job = await self.get_booking(job_id)
        job.require_status("publish", JobStatus.DRAFT)
        job.transition_to(JobStatus.PENDING)
        await self._write(job, JobUpdate(status=JobStatus.PENDING), JobStatus.DRAFT)
        logger.info("Booking %s published", job_id)
        return await self.jobs.get(job.kind, job_id)

    async def delete_draft(self, job_id: str) -> None:
        job = await self.get_booking(job_id)
        job.require_status("delete", JobStatus.DRAFT)
        await self.jobs.delete(job.kind, job_id)
        logger.info("Draft booking %s deleted", job_id)

    # ── Driver assignment ─────────────────────────────────────────────

    async def accept(self, job_id: str, driver_id: str) -> Job:
        job = await self.get_booking(job_id)
        job.require_status("accept", JobStatus.PENDING)
        driver = await self.drivers.get_by_id(driver_id)
        if driver is None:
            raise DriverNotFound(driver_id)

        try:
            async with driver_accept_lock(self.redis, driver_id, self.lock_ttl_seconds):
                await self.availability.ensure_can_take(driver, job)
                changes = JobUpdate(
                    status=JobStatus.DRIVER_ACCEPTED,
                    assigned_driver_id=driver.id,
                    driver_name=driver.name,
                    driver_phone=driver.phone,
                    vehicle_number=driver.vehicle_number,
                    driver_photo_url=driver.profile_photo_url,
                    rejection_reason=None,
                )
                updated = await self.jobs.update_fields(
                    JobKind.VENDOR, job_id, changes, expected_status=JobStatus.PENDING
                )
                if not updated:
                    raise InvalidStateTransition(
                        "Booking was already accepted by another driver"
                    )
                await self.jobs.commit()
        except LockNotAcquired:
            raise DriverUnavailable(
                "Another acceptance for this driver is already in progress"
            ) from None

        logger.info("Booking %s accepted by driver %s", job_id, driver_id)
        return await self.jobs.get(JobKind.VENDOR, job_id)

    async def upload_video(self, job_id: str, video: MediaUpload) -> Job:
        job = await self.get_booking(job_id)
        job.require_status("upload a video for", JobStatus.DRIVER_ACCEPTED)

        ext = video.extension or "mp4"
        url = self.storage.save(
            "driver-videos",
            f"{job_id}-{job.assigned_driver_id}-{uuid.uuid4().hex[:8]}.{ext}",
            video.data,
            video.content_type,
        )
        await self._write(job, JobUpdate(driver_video_url=url), JobStatus.DRIVER_ACCEPTED)
        logger.info("Verification video uploaded for booking %s", job_id)
        return await self.jobs.get(job.kind, job_id)

    async def approve(self, job_id: str) -> Job:
        job = await self.get_booking(job_id)
        job.transition_to(JobStatus.VENDOR_APPROVED)

        otp = generate_otp(self.otp_length)
        await self._write(
            job,
            JobUpdate(status=JobStatus.VENDOR_APPROVED, otp=otp),
            JobStatus.DRIVER_ACCEPTED,
        )
        await self.jobs.commit()
        logger.info("Booking %s: driver %s approved", job_id, job.assigned_driver_id)

        approved = await self.jobs.get(job.kind, job_id)
        await self.notifier.notify_driver_confirmed(approved)
        return approved

    async def reject(self, job_id: str, reason: str) -> Job:
        if not reason or not reason.strip():
            raise InvalidTripData("Rejection reason required")
        job = await self.get_booking(job_id)
        job.require_status("reject the driver of", JobStatus.DRIVER_ACCEPTED)
        job.transition_to(JobStatus.PENDING)

        await self._write(
            job,
            JobUpdate(
                status=JobStatus.PENDING,
                rejection_reason=reason.strip(),
                assigned_driver_id=None,
                driver_name=None,
                driver_phone=None,
                vehicle_number=None,
                driver_photo_url=None,
                driver_video_url=None,
            ),
            JobStatus.DRIVER_ACCEPTED,
        )
        logger.info("Booking %s: driver %s rejected (%s)", job_id, job.assigned_driver_id, reason)
        return await self.jobs.get(job.kind, job_id)

    # ── Trip ──────────────────────────────────────────────────────────

    async def generate_otp(self, job_id: str) -> Job:
        job = await self.get_job(job_id)
        job.require_status("issue an OTP for", *STARTABLE_STATUSES)

        otp = generate_otp(self.otp_length)
        await self._write(job, JobUpdate(otp=otp), job.status)
        await self.jobs.commit()

        refreshed = await self.jobs.get(job.kind, job_id)
        await self.notifier.notify_trip_otp(refreshed, otp)
        return refreshed

    async def start_trip(
        self,
        job_id: str,
        start_odometer: float,
        otp: str,
        photo: Optional[MediaUpload] = None,
    ) -> Job:
        job = await self.get_job(job_id)
        job.require_status("start", *STARTABLE_STATUSES)
        if job.otp is None or str(otp).strip() != job.otp:
            logger.warning("Rejected OTP for %s %s", job.label.lower(), job_id)
            raise InvalidOTP()
        if start_odometer < 0:
            raise InvalidTripData("Start odometer cannot be negative")

        previous = job.status
        job.transition_to(JobStatus.IN_PROGRESS)
        photo_url = None
        if photo is not None:
            photo_url = self.storage.save(
                "odometer-photos", f"start-{job_id}.jpg", photo.data, photo.content_type
            )

        await self._write(
            job,
            JobUpdate(
                status=JobStatus.IN_PROGRESS,
                start_odometer=start_odometer,
                start_time=_utcnow(),
                start_odometer_photo_url=photo_url,
            ),
            previous,
        )
        logger.info("Trip started for %s %s", job.label.lower(), job_id)
        return await self.jobs.get(job.kind, job_id)

    async def add_waiting_time(self, job_id: str, minutes: int) -> Job:
        if minutes <= 0:
            raise InvalidTripData("Valid additional minutes required")
        job = await self.get_job(job_id)
        job.require_status("add waiting time to", JobStatus.IN_PROGRESS)

        added = await self.jobs.increment_waiting_time(
            job.kind, job_id, minutes, expected_status=JobStatus.IN_PROGRESS
        )
        if not added:
            raise InvalidStateTransition(
                f"{job.label} {job_id} is no longer in progress"
            )
        return await self.jobs.get(job.kind, job_id)

    async def complete_trip(
        self,
        job_id: str,
        end_odometer: float,
        payment_method: str,
        photo: Optional[MediaUpload] = None,
        extra_charges: Any = 0,
    ) -> Job:
        extra = coerce_amount(extra_charges)
        photo_url = None
        job = await self.get_job(job_id)
        for attempt in range(COMPLETE_ATTEMPTS):
            if attempt:
                job = await self.get_job(job_id)
            job.transition_to(JobStatus.COMPLETED)

            start_odometer = job.start_odometer or 0.0
            if end_odometer < start_odometer:
                raise InvalidTripData(
                    f"End odometer ({end_odometer:g}) is below start odometer "
                    f"({start_odometer:g})"
                )

            end_time = _utcnow()
            job.actual_distance_km = end_odometer - start_odometer
            total = settle_fare(job, end_time, extra)

            if photo is not None and photo_url is None:
                photo_url = self.storage.save(
                    "odometer-photos", f"end-{job_id}.jpg", photo.data, photo.content_type
                )

            # The fare includes the waiting time read above; a concurrent
            # addition makes this write miss and the fare is recomputed.
            completed = await self.jobs.update_fields(
                job.kind,
                job_id,
                JobUpdate(
                    status=JobStatus.COMPLETED,
                    end_odometer=end_odometer,
                    end_odometer_photo_url=photo_url,
                    end_time=end_time,
                    actual_distance_km=job.actual_distance_km,
                    extra_charges=extra,
                    total_amount=total,
                    payment_method=payment_method,
                    payment_status=PaymentStatus.COMPLETED,
                    commission_status=CommissionStatus.PENDING,
                ),
                expected_status=JobStatus.IN_PROGRESS,
                expected_waiting_mins=job.waiting_time_mins,
            )
            if completed:
                break
        else:
            raise InvalidStateTransition(
                f"{job.label} {job_id} changed while it was being completed"
            )

        if job.assigned_driver_id:
            await self.commission.block_driver(job.assigned_driver_id)
        await self.jobs.commit()
        logger.info(
            "Trip completed for %s %s: %.1f km, total %d",
            job.label.lower(), job_id, job.actual_distance_km, total,
        )

        completed_job = await self.jobs.get(job.kind, job_id)
        await self.notifier.notify_trip_summary(completed_job)
        return completed_job

    async def cancel(self, job_id: str) -> Job:
        job = await self.get_job(job_id)
        previous = job.status
        job.transition_to(JobStatus.CANCELLED)
        await self._write(job, JobUpdate(status=JobStatus.CANCELLED), previous)
        logger.info("%s %s cancelled from %s", job.label, job_id, previous.value)
        return await self.jobs.get(job.kind, job_id)

    async def generate_tracking(self, job_id: str) -> Job:
        job = await self.get_booking(job_id)
        await self._write(job, JobUpdate(tracking_id=booking_tracking_id()))
        return await self.jobs.get(job.kind, job_id)

    # ── Internals ─────────────────────────────────────────────────────

    async def _write(
        self,
        job: Job,
        changes: JobUpdate,
        expected_status: Optional[JobStatus] = None,
    ) -> None:
        if not await self.jobs.update_fields(job.kind, job.id, changes, expected_status):
            raise InvalidStateTransition(
                f"{job.label} {job.id} changed while it was being updated"
            )
