import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis
from fastapi import FastAPI

from app.utils.config import settings


logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None


def get_redis() -> redis.Redis:
    """Shared client; also used as a FastAPI dependency so tests can override it."""
    assert _redis_client is not None, "Redis not initialized"
    return _redis_client


def init_redis() -> None:
    global _redis_client
    _redis_client = redis.Redis(
        db=settings.redis_db,
        port=settings.redis_port,
        host=settings.redis_host,
        password=settings.redis_password,
        decode_responses=True,
        socket_timeout=2.0,
    )
    logger.info("Redis client configured for %s:%s", settings.redis_host, settings.redis_port)


def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        try:
            _redis_client.close()
        finally:
            _redis_client = None


@asynccontextmanager
async def redis_lifespan(app: FastAPI) -> AsyncIterator[None]:
    init_redis()
    try:
        yield
    finally:
        close_redis()
