"""
Domain entities with business logic.

Patterns used
-------------
- **Tagged variant** ``Job``: a vendor ``Booking`` and a driver's
  ``SoloRide`` share one entity, told apart by ``kind``.
- **State Pattern** on ``Job``: enforces valid lifecycle transitions
  (DRAFT -> PENDING -> DRIVER_ACCEPTED -> VENDOR_APPROVED -> IN_PROGRESS ->
  COMPLETED, with CANCELLED as the escape hatch).
- ``JobUpdate`` is the typed partial update the repository persists; only
  its enumerated fields can ever be patched after creation.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Optional

from .enums import (
    CommissionStatus,
    DriverStatus,
    JOB_TRANSITIONS,
    JobKind,
    JobStatus,
    PaymentStatus,
    TERMINAL_STATUSES,
    TripType,
)
from .errors import InvalidStateTransition


# ── Value Object ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Job:
    kind: JobKind = JobKind.VENDOR
    id: Optional[str] = None
    tracking_id: Optional[str] = None

    # Parties
    vendor_id: Optional[str] = None
    assigned_driver_id: Optional[str] = None
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    vehicle_number: Optional[str] = None
    driver_photo_url: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_language: str = "Tamil"
    number_of_people: int = 1

    # Itinerary
    trip_type: str = TripType.ONE_WAY.value
    vehicle_type: Optional[str] = None
    pickup_address: Optional[str] = None
    pickup_city: Optional[str] = None
    pickup: Optional[Location] = None
    drop_address: Optional[str] = None
    drop_city: Optional[str] = None
    drop: Optional[Location] = None
    distance_km: Optional[float] = None
    estimated_duration_mins: Optional[int] = None
    schedule_date: Optional[str] = None
    schedule_time: Optional[str] = None
    return_date: Optional[str] = None
    return_time: Optional[str] = None

    # Fare inputs
    base_fare: float = 0.0
    per_km_rate: float = 0.0
    hourly_rate: float = 0.0
    estimated_hours: float = 0.0
    night_allowance: float = 0.0
    hills_allowance: float = 0.0
    driver_allowance: float = 0.0
    waiting_charges_per_hour: float = 0.0
    extra_charges: float = 0.0
    package_amount: float = 0.0
    rental_hours: float = 0.0
    vendor_commission: float = 0.0
    estimated_fare: float = 0.0
    total_amount: float = 0.0

    # Lifecycle
    status: JobStatus = JobStatus.DRAFT
    otp: Optional[str] = None
    driver_video_url: Optional[str] = None
    rejection_reason: Optional[str] = None
    start_odometer: Optional[float] = None
    end_odometer: Optional[float] = None
    start_odometer_photo_url: Optional[str] = None
    end_odometer_photo_url: Optional[str] = None
    actual_distance_km: Optional[float] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    waiting_time_mins: int = 0
    payment_method: Optional[str] = None
    payment_status: PaymentStatus = PaymentStatus.PENDING
    commission_status: CommissionStatus = CommissionStatus.NONE

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def label(self) -> str:
        return "Booking" if self.kind == JobKind.VENDOR else "Solo ride"

    @property
    def is_closed(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def can_transition_to(self, new_status: JobStatus) -> bool:
        return new_status in JOB_TRANSITIONS.get(self.status, set())

    def transition_to(self, new_status: JobStatus) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        if not self.can_transition_to(new_status):
            raise InvalidStateTransition(
                f"Cannot move {self.label.lower()} from {self.status.value} "
                f"to {new_status.value}"
            )
        self.status = new_status

    def require_status(self, action: str, *allowed: JobStatus) -> None:
        """Raise unless the job currently sits in one of *allowed*."""
        if self.status not in allowed:
            raise InvalidStateTransition(
                f"Cannot {action} a {self.label.lower()} in status "
                f"{self.status.value}"
            )


@dataclass
class Driver:
    id: Optional[str] = None
    name: str = ""
    phone: str = ""
    vehicle_number: str = ""
    vehicle_type: str = ""
    profile_photo_url: Optional[str] = None
    status: DriverStatus = DriverStatus.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_blocked(self) -> bool:
        return self.status == DriverStatus.BLOCKED_FOR_PAYMENT


# ── Partial update ────────────────────────────────────────────────────


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass
class JobUpdate:
    """Fields a lifecycle operation may change on an existing job.

    Anything left as ``UNSET`` is not written; ``None`` clears the column.
    """

    status: Any = UNSET
    assigned_driver_id: Any = UNSET
    driver_name: Any = UNSET
    driver_phone: Any = UNSET
    vehicle_number: Any = UNSET
    driver_photo_url: Any = UNSET
    driver_video_url: Any = UNSET
    rejection_reason: Any = UNSET
    otp: Any = UNSET
    tracking_id: Any = UNSET
    start_odometer: Any = UNSET
    start_odometer_photo_url: Any = UNSET
    start_time: Any = UNSET
    end_odometer: Any = UNSET
    end_odometer_photo_url: Any = UNSET
    end_time: Any = UNSET
    actual_distance_km: Any = UNSET
    extra_charges: Any = UNSET
    total_amount: Any = UNSET
    payment_method: Any = UNSET
    payment_status: Any = UNSET
    commission_status: Any = UNSET

    def changes(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    def apply_to(self, job: Job) -> Job:
        for name, value in self.changes().items():
            setattr(job, name, value)
        return job
