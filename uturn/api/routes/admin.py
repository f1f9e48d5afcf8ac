"""
Admin / observability endpoints
===============================

GET /api/v1/admin/health -- liveness plus database and Redis reachability
"""

import logging

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Request
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from uturn.api.dependencies import get_db, get_redis
from uturn.api.middleware import DEFAULT_RATE_LIMIT, limiter
from uturn.api.schemas import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
@limiter.limit(DEFAULT_RATE_LIMIT)
async def health(
    request: Request,
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
):
    database = "ok"
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Database health check failed")
        database = "unavailable"
        await db.rollback()

    cache = "ok"
    try:
        await redis.ping()
    except (RedisError, OSError):
        logger.exception("Redis health check failed")
        cache = "unavailable"

    status = "ok" if database == cache == "ok" else "degraded"
    return HealthResponse(status=status, database=database, redis=cache)
