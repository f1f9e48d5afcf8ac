"""
FastAPI application factory.

* Registers routes for bookings, solo rides, trips, tracking, drivers and admin.
* Builds the long-lived collaborators (DB engine, Redis, HTTP client,
  notifier, file storage) in the lifespan and disposes of them on shutdown.
* Applies rate-limiting middleware and maps domain errors to HTTP codes.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging
from typing import Optional

import httpx
from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from uturn.api.errors import register_error_handlers
from uturn.api.middleware import limiter
from uturn.api.routes import admin, bookings, drivers, jobs, solo_rides
from uturn.config import Settings
from uturn.infrastructure.database import build_engine, build_session_factory
from uturn.infrastructure.messaging import WhatsAppNotifier
from uturn.infrastructure.redis_client import build_redis
from uturn.infrastructure.storage import LocalFileStorage

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open shared clients on startup; close them on shutdown."""
    settings: Settings = app.state.settings

    engine = build_engine(settings.database_url)
    http = httpx.AsyncClient(timeout=settings.notification_timeout_seconds)
    app.state.session_factory = build_session_factory(engine)
    app.state.redis = build_redis(settings.redis_url)
    app.state.notifier = WhatsAppNotifier(
        http,
        account_sid=settings.twilio_account_sid,
        auth_token=settings.twilio_auth_token,
        from_number=settings.twilio_whatsapp_number,
        app_base_url=settings.app_base_url,
    )
    app.state.storage = LocalFileStorage(
        settings.upload_dir, settings.public_upload_base_url
    )
    if app.state.notifier.simulated:
        logger.info("Twilio credentials not configured; WhatsApp sends are simulated")

    yield

    await http.aclose()
    await app.state.redis.aclose()
    await engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(
        title="UTurn Trip Lifecycle API",
        description=(
            "Vendor bookings and driver solo rides from publication to "
            "settlement: driver acceptance and approval, OTP-verified trip "
            "start, waiting time, fare calculation and commission blocking."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Rate limiter
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_error_handlers(app)

    # Routers
    app.include_router(bookings.router, prefix="/api/v1")
    app.include_router(solo_rides.router, prefix="/api/v1")
    app.include_router(jobs.router, prefix="/api/v1")
    app.include_router(jobs.tracking_router, prefix="/api/v1")
    app.include_router(drivers.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
