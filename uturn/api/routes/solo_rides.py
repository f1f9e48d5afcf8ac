"""
Solo ride endpoints (driver-created jobs)
=========================================

POST /api/v1/solo-rides                     -- driver books their own customer
GET  /api/v1/solo-rides/driver/{driver_id}  -- a driver's solo rides, newest first
"""

from fastapi import APIRouter, Depends, Request

from uturn.api.dependencies import get_lifecycle
from uturn.api.middleware import DEFAULT_RATE_LIMIT, limiter
from uturn.api.schemas import ErrorResponse, JobResponse, SoloRideCreateRequest
from uturn.services.lifecycle import TripLifecycle

router = APIRouter(prefix="/solo-rides", tags=["solo rides"])


@router.post(
    "",
    status_code=201,
    response_model=JobResponse,
    summary="Create a solo ride",
    description="Creates a confirmed ride for the driver.  Fails with 409 "
    "when it overlaps another committed job of the same driver.",
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def create_solo_ride(
    request: Request,
    body: SoloRideCreateRequest,
    lifecycle: TripLifecycle = Depends(get_lifecycle),
):
    ride = await lifecycle.create_solo_ride(body.driver_id, body.to_job())
    return JobResponse.from_job(ride)


@router.get("/driver/{driver_id}", response_model=list[JobResponse])
@limiter.limit(DEFAULT_RATE_LIMIT)
async def driver_solo_rides(
    request: Request,
    driver_id: str,
    lifecycle: TripLifecycle = Depends(get_lifecycle),
):
    return [JobResponse.from_job(r) for r in await lifecycle.solo_rides(driver_id)]
