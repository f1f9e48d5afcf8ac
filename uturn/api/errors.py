"""Map domain exceptions onto HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from uturn.domain.errors import (
    DriverNotFound,
    DriverUnavailable,
    InvalidOTP,
    InvalidStateTransition,
    InvalidTripData,
    JobNotFound,
    ScheduleConflict,
    TripError,
)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[TripError], int] = {
    JobNotFound: 404,
    DriverNotFound: 404,
    InvalidOTP: 400,
    InvalidTripData: 422,
    InvalidStateTransition: 409,
    DriverUnavailable: 409,
    ScheduleConflict: 409,
}


def status_code_for(exc: TripError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return 400


async def trip_error_handler(request: Request, exc: TripError) -> JSONResponse:
    code = status_code_for(exc)
    logger.info("%s %s -> %d: %s", request.method, request.url.path, code, exc)
    body = {"detail": str(exc)}
    if isinstance(exc, ScheduleConflict):
        body["conflict_id"] = exc.conflict_id
    return JSONResponse(status_code=code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TripError, trip_error_handler)
