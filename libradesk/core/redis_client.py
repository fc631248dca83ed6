from __future__ import annotations

import logging
from functools import lru_cache

import redis
import redis.asyncio as redis_async
from libradesk.core.config import settings
from redis import Redis

logger = logging.getLogger(__name__)


@lru_cache
def get_redis() -> Redis | None:
    if not settings.redis_url:
        return None
    try:
        client: Redis = redis.from_url(settings.redis_url, decode_responses=True)
        client.ping()
        return client
    except Exception as exc:
        logger.warning("Redis unavailable; event forwarding/stats cache disabled: %s", exc)
        return None


def get_redis_async(url: str) -> redis_async.Redis:
    return redis_async.Redis.from_url(url, decode_responses=False)
