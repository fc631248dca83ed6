from __future__ import annotations

import json
import logging
from datetime import date

from libradesk.core.config import settings
from libradesk.core.redis_client import get_redis
from libradesk.services.events import ChangeEvent
from redis import RedisError

logger = logging.getLogger(__name__)

_KEY_PREFIX = "dashboard:stats:"
# Bumped on every change; entries are keyed by the generation they were
# computed under, so a store that races an invalidation is never read back.
_GENERATION_KEY = "dashboard:generation"


def _stats_key(as_of: date, generation: str) -> str:
    return f"{_KEY_PREFIX}{generation}:{as_of.isoformat()}"


def current_generation() -> str | None:
    """Generation to read and store under, or None when caching is off."""
    r = get_redis()
    if r is None:
        return None
    try:
        return str(r.get(_GENERATION_KEY) or "0")
    except RedisError as exc:
        logger.warning("Stats cache unavailable: %s", exc)
        return None


def get_cached_stats(as_of: date, generation: str | None = None) -> dict | None:
    """Cached dashboard payload for ``as_of``; any Redis trouble counts as a miss."""
    r = get_redis()
    gen = generation if generation is not None else current_generation()
    if r is None or gen is None:
        return None
    key = _stats_key(as_of, gen)
    try:
        raw = r.get(key)
    except RedisError as exc:
        logger.warning("Stats cache read failed for %s: %s", as_of, exc)
        return None
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Discarding unreadable cached stats for %s", as_of)
        try:
            r.delete(key)
        except RedisError as exc:
            logger.warning("Stats cache delete failed for %s: %s", as_of, exc)
        return None


def store_stats(as_of: date, payload: dict, generation: str | None = None) -> None:
    r = get_redis()
    gen = generation if generation is not None else current_generation()
    if r is None or gen is None:
        return
    try:
        r.setex(
            _stats_key(as_of, gen),
            int(settings.dashboard_cache_ttl_secs),
            json.dumps(payload),
        )
    except RedisError as exc:
        logger.warning("Stats cache write failed for %s: %s", as_of, exc)


def invalidate_stats() -> int:
    r = get_redis()
    if r is None:
        return 0
    r.incr(_GENERATION_KEY)
    keys = list(r.scan_iter(match=f"{_KEY_PREFIX}*"))
    if not keys:
        return 0
    return int(r.delete(*keys))


def invalidate_on_change(event: ChangeEvent) -> None:
    # Every entity feeds the dashboard, so any change drops every cached day.
    invalidate_stats()
