"""
Driver directory endpoints
==========================

POST /api/v1/drivers               -- register a driver
GET  /api/v1/drivers/blocked       -- drivers blocked for unpaid commission
GET  /api/v1/drivers/{id}          -- fetch a driver
POST /api/v1/drivers/{id}/unblock  -- vendor clears a payment block
"""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from uturn.api.dependencies import get_commission, get_db
from uturn.api.middleware import DEFAULT_RATE_LIMIT, limiter
from uturn.api.schemas import DriverCreateRequest, DriverResponse, ErrorResponse
from uturn.domain.entities import Driver
from uturn.domain.errors import DriverNotFound
from uturn.infrastructure.repositories import DriverRepository
from uturn.services.commission import CommissionSettlement

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drivers", tags=["drivers"])


@router.post(
    "",
    status_code=201,
    response_model=DriverResponse,
    responses={409: {"model": ErrorResponse}},
)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def register_driver(
    request: Request,
    body: DriverCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    repo = DriverRepository(db)
    if await repo.get_by_phone(body.phone):
        raise HTTPException(status_code=409, detail="Phone number already registered")

    driver = await repo.add(
        Driver(
            id=str(uuid.uuid4()),
            name=body.name,
            phone=body.phone,
            vehicle_number=body.vehicle_number,
            vehicle_type=body.vehicle_type,
            profile_photo_url=body.profile_photo_url,
        )
    )
    logger.info("Driver %s registered", driver.id)
    return DriverResponse.from_driver(driver)


# Declared before /{driver_id} so "blocked" is not taken for an id.
@router.get("/blocked", response_model=list[DriverResponse])
@limiter.limit(DEFAULT_RATE_LIMIT)
async def blocked_drivers(
    request: Request,
    commission: CommissionSettlement = Depends(get_commission),
):
    return [DriverResponse.from_driver(d) for d in await commission.list_blocked_drivers()]


@router.get("/{driver_id}", response_model=DriverResponse, responses={404: {"model": ErrorResponse}})
@limiter.limit(DEFAULT_RATE_LIMIT)
async def get_driver(
    request: Request,
    driver_id: str,
    db: AsyncSession = Depends(get_db),
):
    driver = await DriverRepository(db).get_by_id(driver_id)
    if driver is None:
        raise DriverNotFound(driver_id)
    return DriverResponse.from_driver(driver)


@router.post("/{driver_id}/unblock", response_model=DriverResponse)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def unblock_driver(
    request: Request,
    driver_id: str,
    commission: CommissionSettlement = Depends(get_commission),
):
    return DriverResponse.from_driver(await commission.unblock_driver(driver_id))
