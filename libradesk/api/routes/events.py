from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, AsyncGenerator

from libradesk.core.config import settings
from libradesk.core.redis_client import get_redis_async
from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["events"])

KEEPALIVE_SECS = 25


def change_frame(message: dict[str, Any] | None, now: datetime) -> str | None:
    """Turn one pub/sub message into an SSE ``data:`` frame, or None to skip it."""
    if not message or message.get("type") != "message":
        return None
    raw = message.get("data")
    if raw is None:
        return None
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Skipping unreadable change event on %s", settings.events_channel)
        return None
    if not isinstance(payload, dict):
        return None
    payload.setdefault("ts", now.isoformat())
    return f"data: {json.dumps(payload)}\n\n"


@router.get("/api-events")
async def stream_change_events() -> StreamingResponse:
    """Server-sent stream of committed changes, for clients refreshing cached views."""
    if not settings.redis_url:
        raise HTTPException(status_code=503, detail="Event stream unavailable")

    redis_client = get_redis_async(settings.redis_url)
    channel = settings.events_channel

    async def frames() -> AsyncGenerator[str, None]:
        pubsub = redis_client.pubsub()
        await pubsub.subscribe(channel)
        last_keepalive = datetime.now(timezone.utc)
        try:
            async for message in pubsub.listen():
                now = datetime.now(timezone.utc)
                if (now - last_keepalive).total_seconds() > KEEPALIVE_SECS:
                    yield ": keepalive\n\n"
                    last_keepalive = now
                frame = change_frame(message, now)
                if frame is not None:
                    yield frame
        finally:
            await pubsub.unsubscribe(channel)
            await pubsub.close()

    return StreamingResponse(frames(), media_type="text/event-stream")
