"""
Booking endpoints (vendor-created jobs)
=======================================

POST   /api/v1/bookings                        -- create (draft or published)
GET    /api/v1/bookings/pending                -- pending work for drivers
GET    /api/v1/bookings/vendor/{vendor_id}     -- a vendor's bookings
GET    /api/v1/bookings/driver/{driver_id}     -- bookings assigned to a driver
POST   /api/v1/bookings/{id}/publish           -- draft -> pending
DELETE /api/v1/bookings/{id}                   -- delete a draft
POST   /api/v1/bookings/{id}/accept            -- driver accepts
POST   /api/v1/bookings/{id}/driver-video      -- driver uploads proof video
POST   /api/v1/bookings/{id}/approve-driver    -- vendor approves, OTP issued
POST   /api/v1/bookings/{id}/reject-driver     -- vendor rejects, back to pending
POST   /api/v1/bookings/{id}/tracking          -- issue a public tracking id
POST   /api/v1/bookings/{id}/commission-paid   -- settle commission, unblock driver
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from uturn.api.dependencies import get_availability, get_commission, get_lifecycle
from uturn.api.middleware import DEFAULT_RATE_LIMIT, limiter
from uturn.api.schemas import (
    AcceptRequest,
    BookingCreateRequest,
    ErrorResponse,
    JobResponse,
    RejectRequest,
)
from uturn.api.uploads import MAX_VIDEO_BYTES, read_media
from uturn.domain.enums import JobStatus
from uturn.services.availability import AvailabilityCoordinator
from uturn.services.commission import CommissionSettlement
from uturn.services.lifecycle import TripLifecycle

router = APIRouter(prefix="/bookings", tags=["bookings"])

_CONFLICT = {409: {"model": ErrorResponse}}
_NOT_FOUND = {404: {"model": ErrorResponse}}


@router.post(
    "",
    status_code=201,
    response_model=JobResponse,
    summary="Create a booking",
)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def create_booking(
    request: Request,
    body: BookingCreateRequest,
    lifecycle: TripLifecycle = Depends(get_lifecycle),
):
    return JobResponse.from_job(await lifecycle.create_booking(body.to_job()))


@router.get(
    "/pending",
    response_model=list[JobResponse],
    summary="List pending bookings",
    description=(
        "Pending bookings, optionally filtered by pickup city and vehicle "
        "type.  When ``driver_id`` is given and that driver is blocked or "
        "already on an active booking, the list is empty."
    ),
)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def list_pending(
    request: Request,
    city: Optional[str] = None,
    vehicle_type: Optional[str] = None,
    driver_id: Optional[str] = None,
    availability: AvailabilityCoordinator = Depends(get_availability),
):
    jobs = await availability.list_pending(city, vehicle_type, driver_id)
    return [JobResponse.from_job(j) for j in jobs]


@router.get("/vendor/{vendor_id}", response_model=list[JobResponse])
@limiter.limit(DEFAULT_RATE_LIMIT)
async def vendor_bookings(
    request: Request,
    vendor_id: str,
    status: Optional[JobStatus] = None,
    lifecycle: TripLifecycle = Depends(get_lifecycle),
):
    return [JobResponse.from_job(j) for j in await lifecycle.vendor_bookings(vendor_id, status)]


@router.get("/driver/{driver_id}", response_model=list[JobResponse])
@limiter.limit(DEFAULT_RATE_LIMIT)
async def driver_bookings(
    request: Request,
    driver_id: str,
    status: Optional[JobStatus] = None,
    lifecycle: TripLifecycle = Depends(get_lifecycle),
):
    return [JobResponse.from_job(j) for j in await lifecycle.driver_bookings(driver_id, status)]


@router.post("/{booking_id}/publish", response_model=JobResponse, responses=_CONFLICT)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def publish_booking(
    request: Request,
    booking_id: str,
    lifecycle: TripLifecycle = Depends(get_lifecycle),
):
    return JobResponse.from_job(await lifecycle.publish(booking_id))


@router.delete("/{booking_id}", status_code=204, responses=_CONFLICT)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def delete_booking(
    request: Request,
    booking_id: str,
    lifecycle: TripLifecycle = Depends(get_lifecycle),
):
    await lifecycle.delete_draft(booking_id)


@router.post(
    "/{booking_id}/accept",
    response_model=JobResponse,
    summary="Driver accepts a pending booking",
    responses={**_CONFLICT, **_NOT_FOUND},
)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def accept_booking(
    request: Request,
    booking_id: str,
    body: AcceptRequest,
    lifecycle: TripLifecycle = Depends(get_lifecycle),
):
    return JobResponse.from_job(await lifecycle.accept(booking_id, body.driver_id))


@router.post("/{booking_id}/driver-video", response_model=JobResponse)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def upload_driver_video(
    request: Request,
    booking_id: str,
    video: Optional[UploadFile] = File(None),
    lifecycle: TripLifecycle = Depends(get_lifecycle),
):
    media = await read_media(video, "video", MAX_VIDEO_BYTES)
    if media is None:
        raise HTTPException(status_code=400, detail="Video file required")
    return JobResponse.from_job(await lifecycle.upload_video(booking_id, media))


@router.post(
    "/{booking_id}/approve-driver",
    response_model=JobResponse,
    summary="Vendor approves the assigned driver",
    description="Moves the booking to vendor_approved, issues the trip OTP "
    "and sends the customer the driver's details.",
)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def approve_driver(
    request: Request,
    booking_id: str,
    lifecycle: TripLifecycle = Depends(get_lifecycle),
):
    return JobResponse.from_job(await lifecycle.approve(booking_id))


@router.post("/{booking_id}/reject-driver", response_model=JobResponse)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def reject_driver(
    request: Request,
    booking_id: str,
    body: RejectRequest,
    lifecycle: TripLifecycle = Depends(get_lifecycle),
):
    return JobResponse.from_job(await lifecycle.reject(booking_id, body.reason))


@router.post("/{booking_id}/tracking", response_model=JobResponse)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def generate_tracking(
    request: Request,
    booking_id: str,
    lifecycle: TripLifecycle = Depends(get_lifecycle),
):
    return JobResponse.from_job(await lifecycle.generate_tracking(booking_id))


@router.post(
    "/{booking_id}/commission-paid",
    response_model=JobResponse,
    summary="Mark commission paid and unblock the driver",
)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def commission_paid(
    request: Request,
    booking_id: str,
    commission: CommissionSettlement = Depends(get_commission),
):
    return JobResponse.from_job(await commission.mark_commission_paid(booking_id))
