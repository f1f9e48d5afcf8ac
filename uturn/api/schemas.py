"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from uturn.domain.entities import Driver, Job, Location
from uturn.domain.enums import JobStatus, TripType
from uturn.domain.pricing import waiting_charges


# ── Requests ──────────────────────────────────────────────────────────


class Coordinates(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class JobDetails(BaseModel):
    """Itinerary and fare inputs shared by bookings and solo rides."""

    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_language: str = "Tamil"
    number_of_people: int = Field(1, ge=1)

    trip_type: str = TripType.ONE_WAY.value
    vehicle_type: Optional[str] = None
    pickup_address: Optional[str] = None
    pickup_city: Optional[str] = None
    pickup_location: Optional[Coordinates] = None
    drop_address: Optional[str] = None
    drop_city: Optional[str] = None
    drop_location: Optional[Coordinates] = None
    distance_km: Optional[float] = Field(None, ge=0)
    estimated_duration_mins: Optional[int] = Field(None, ge=0)
    schedule_date: Optional[str] = None
    schedule_time: Optional[str] = None
    return_date: Optional[str] = None
    return_time: Optional[str] = None

    base_fare: float = Field(0.0, ge=0)
    per_km_rate: float = Field(0.0, ge=0)
    hourly_rate: float = Field(0.0, ge=0)
    estimated_hours: float = Field(0.0, ge=0)
    night_allowance: float = Field(0.0, ge=0)
    hills_allowance: float = Field(0.0, ge=0)
    driver_allowance: float = Field(0.0, ge=0)
    waiting_charges_per_hour: float = Field(0.0, ge=0)
    extra_charges: float = Field(0.0, ge=0)
    package_amount: float = Field(0.0, ge=0)
    rental_hours: float = Field(0.0, ge=0)
    vendor_commission: float = Field(0.0, ge=0)
    estimated_fare: float = Field(0.0, ge=0)
    total_amount: float = Field(0.0, ge=0)

    def to_job(self, **overrides) -> Job:
        # Only the shared job fields; subclasses add request-only fields.
        data = self.model_dump(
            include=set(JobDetails.model_fields) - {"pickup_location", "drop_location"}
        )
        data.update(overrides)
        return Job(
            pickup=_location(self.pickup_location),
            drop=_location(self.drop_location),
            **data,
        )


class BookingCreateRequest(JobDetails):
    vendor_id: str
    publish: bool = Field(
        False, description="Publish to drivers immediately instead of saving a draft."
    )

    def to_job(self, **overrides) -> Job:
        status = JobStatus.PENDING if self.publish else JobStatus.DRAFT
        job = JobDetails.to_job(self, **overrides)
        job.vendor_id = self.vendor_id
        job.status = status
        return job


class SoloRideCreateRequest(JobDetails):
    driver_id: str


class AcceptRequest(BaseModel):
    driver_id: str


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class WaitingTimeRequest(BaseModel):
    additional_minutes: int = Field(..., gt=0)


class DriverCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=6, max_length=20)
    vehicle_number: str = ""
    vehicle_type: str = ""
    profile_photo_url: Optional[str] = None


# ── Responses ─────────────────────────────────────────────────────────


class JobResponse(BaseModel):
    id: str
    kind: str
    tracking_id: Optional[str] = None
    status: str
    vendor_id: Optional[str] = None
    assigned_driver_id: Optional[str] = None
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    vehicle_number: Optional[str] = None
    driver_photo_url: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_language: Optional[str] = None
    number_of_people: int = 1

    trip_type: str
    vehicle_type: Optional[str] = None
    pickup_address: Optional[str] = None
    pickup_city: Optional[str] = None
    pickup_location: Optional[Coordinates] = None
    drop_address: Optional[str] = None
    drop_city: Optional[str] = None
    drop_location: Optional[Coordinates] = None
    distance_km: Optional[float] = None
    estimated_duration_mins: Optional[int] = None
    schedule_date: Optional[str] = None
    schedule_time: Optional[str] = None
    return_date: Optional[str] = None
    return_time: Optional[str] = None

    base_fare: float
    per_km_rate: float
    hourly_rate: float
    night_allowance: float
    hills_allowance: float
    driver_allowance: float
    waiting_charges_per_hour: float
    extra_charges: float
    package_amount: float
    rental_hours: float
    estimated_fare: float
    total_amount: float

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
    payment_status: str
    commission_status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_job(cls, job: Job) -> "JobResponse":
        data = {
            name: getattr(job, name)
            for name in cls.model_fields
            if hasattr(job, name)
        }
        data.update(
            kind=job.kind.value,
            status=job.status.value,
            payment_status=job.payment_status.value,
            commission_status=job.commission_status.value,
            pickup_location=_coordinates(job.pickup),
            drop_location=_coordinates(job.drop),
        )
        return cls(**data)


class QuoteResponse(BaseModel):
    job_id: str
    estimated_fare: int


class TrackingResponse(BaseModel):
    """Limited public view of a job, safe to share with the customer."""

    id: str
    tracking_id: Optional[str] = None
    status: str
    is_closed: bool
    customer_name: Optional[str] = None
    pickup_address: Optional[str] = None
    pickup_city: Optional[str] = None
    drop_address: Optional[str] = None
    drop_city: Optional[str] = None
    vehicle_type: Optional[str] = None
    trip_type: str
    schedule_date: Optional[str] = None
    schedule_time: Optional[str] = None
    distance_km: Optional[float] = None
    estimated_fare: float = 0.0
    waiting_charges: float = 0.0
    total_amount: float = 0.0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    driver_name: Optional[str] = None
    vehicle_number: Optional[str] = None
    driver_phone: Optional[str] = None
    closed_message: Optional[str] = None

    @classmethod
    def from_job(cls, job: Job) -> "TrackingResponse":
        show_driver = job.status not in (JobStatus.PENDING, JobStatus.CANCELLED)
        masked_phone = None
        if show_driver and job.driver_phone:
            masked_phone = f"+91 XXXXX {job.driver_phone[-4:]}"
        closed_message = None
        if job.status == JobStatus.COMPLETED:
            closed_message = (
                "This ride has been completed. Thank you for traveling with UTurn!"
            )
        elif job.status == JobStatus.CANCELLED:
            closed_message = "This ride was cancelled."

        return cls(
            id=job.id,
            tracking_id=job.tracking_id,
            status=job.status.value,
            is_closed=job.is_closed,
            customer_name=job.customer_name,
            pickup_address=job.pickup_address,
            pickup_city=job.pickup_city,
            drop_address=job.drop_address,
            drop_city=job.drop_city,
            vehicle_type=job.vehicle_type,
            trip_type=job.trip_type,
            schedule_date=job.schedule_date,
            schedule_time=job.schedule_time,
            distance_km=job.distance_km,
            estimated_fare=job.estimated_fare,
            waiting_charges=waiting_charges(job.waiting_charges_per_hour, job.waiting_time_mins),
            total_amount=job.total_amount,
            start_time=job.start_time,
            end_time=job.end_time,
            driver_name=job.driver_name if show_driver else None,
            vehicle_number=job.vehicle_number if show_driver else None,
            driver_phone=masked_phone,
            closed_message=closed_message,
        )


class DriverResponse(BaseModel):
    id: str
    name: str
    phone: str
    vehicle_number: str
    vehicle_type: str
    profile_photo_url: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_driver(cls, driver: Driver) -> "DriverResponse":
        return cls(
            id=driver.id,
            name=driver.name,
            phone=driver.phone,
            vehicle_number=driver.vehicle_number,
            vehicle_type=driver.vehicle_type,
            profile_photo_url=driver.profile_photo_url,
            status=driver.status.value,
            created_at=driver.created_at,
        )


class HealthResponse(BaseModel):
    status: str = "ok"
    database: str = "ok"
    redis: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
    conflict_id: Optional[str] = None


def _location(coords: Optional[Coordinates]) -> Optional[Location]:
    return Location(coords.lat, coords.lng) if coords else None


def _coordinates(location: Optional[Location]) -> Optional[Coordinates]:
    if location is None:
        return None
    return Coordinates(lat=location.latitude, lng=location.longitude)
