"""
Trip endpoints shared by bookings and solo rides
================================================

GET   /api/v1/jobs/{id}               -- fetch a booking or solo ride
POST  /api/v1/jobs/{id}/otp           -- (re)issue the trip OTP
POST  /api/v1/jobs/{id}/start-trip    -- verify OTP, record start odometer
PATCH /api/v1/jobs/{id}/waiting-time  -- add waiting minutes
POST  /api/v1/jobs/{id}/complete      -- record end odometer, settle fare
POST  /api/v1/jobs/{id}/cancel        -- cancel a non-terminal job
GET   /api/v1/jobs/{id}/quote         -- fare estimate from planned distance
GET   /api/v1/track/{tracking_id}     -- public customer tracking view
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from uturn.api.dependencies import get_lifecycle
from uturn.api.middleware import DEFAULT_RATE_LIMIT, limiter
from uturn.api.schemas import (
    ErrorResponse,
    JobResponse,
    QuoteResponse,
    TrackingResponse,
    WaitingTimeRequest,
)
from uturn.api.uploads import MAX_IMAGE_BYTES, read_media
from uturn.domain.enums import PaymentMethod
from uturn.services.lifecycle import TripLifecycle

router = APIRouter(prefix="/jobs", tags=["trips"])
tracking_router = APIRouter(prefix="/track", tags=["tracking"])


@router.get("/{job_id}", response_model=JobResponse, responses={404: {"model": ErrorResponse}})
@limiter.limit(DEFAULT_RATE_LIMIT)
async def get_job(
    request: Request,
    job_id: str,
    lifecycle: TripLifecycle = Depends(get_lifecycle),
):
    return JobResponse.from_job(await lifecycle.get_job(job_id))


@router.post("/{job_id}/otp", response_model=JobResponse)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def generate_otp(
    request: Request,
    job_id: str,
    lifecycle: TripLifecycle = Depends(get_lifecycle),
):
    return JobResponse.from_job(await lifecycle.generate_otp(job_id))


@router.post(
    "/{job_id}/start-trip",
    response_model=JobResponse,
    summary="Start the trip",
    description="Checks the customer's OTP and records the start odometer "
    "reading with an optional photo.  A wrong OTP changes nothing.",
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def start_trip(
    request: Request,
    job_id: str,
    start_odometer: float = Form(...),
    otp: str = Form(...),
    odometer_photo: Optional[UploadFile] = File(None),
    lifecycle: TripLifecycle = Depends(get_lifecycle),
):
    photo = await read_media(odometer_photo, "image", MAX_IMAGE_BYTES)
    job = await lifecycle.start_trip(job_id, start_odometer, otp, photo)
    return JobResponse.from_job(job)


@router.patch("/{job_id}/waiting-time", response_model=JobResponse)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def add_waiting_time(
    request: Request,
    job_id: str,
    body: WaitingTimeRequest,
    lifecycle: TripLifecycle = Depends(get_lifecycle),
):
    return JobResponse.from_job(
        await lifecycle.add_waiting_time(job_id, body.additional_minutes)
    )


@router.post(
    "/{job_id}/complete",
    response_model=JobResponse,
    summary="Complete the trip",
    description="Records the end odometer, settles the fare, and blocks the "
    "driver until the commission is paid.",
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def complete_trip(
    request: Request,
    job_id: str,
    end_odometer: float = Form(...),
    payment_method: PaymentMethod = Form(...),
    extra_charges: Optional[str] = Form(None),
    odometer_photo: Optional[UploadFile] = File(None),
    lifecycle: TripLifecycle = Depends(get_lifecycle),
):
    photo = await read_media(odometer_photo, "image", MAX_IMAGE_BYTES)
    job = await lifecycle.complete_trip(
        job_id,
        end_odometer,
        payment_method.value,
        photo=photo,
        extra_charges=extra_charges,
    )
    return JobResponse.from_job(job)


@router.post("/{job_id}/cancel", response_model=JobResponse)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def cancel_job(
    request: Request,
    job_id: str,
    lifecycle: TripLifecycle = Depends(get_lifecycle),
):
    return JobResponse.from_job(await lifecycle.cancel(job_id))


@router.get("/{job_id}/quote", response_model=QuoteResponse)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def quote(
    request: Request,
    job_id: str,
    lifecycle: TripLifecycle = Depends(get_lifecycle),
):
    return QuoteResponse(job_id=job_id, estimated_fare=await lifecycle.quote(job_id))


@tracking_router.get("/{tracking_id}", response_model=TrackingResponse)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def track(
    request: Request,
    tracking_id: str,
    lifecycle: TripLifecycle = Depends(get_lifecycle),
):
    return TrackingResponse.from_job(await lifecycle.track(tracking_id))
