from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Callable

from libradesk.core.config import settings
from libradesk.core.redis_client import get_redis

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ChangeEvent:
    # books | members | borrowings
    entity: str
    # created | updated | deleted | borrowed | returned
    action: str
    ids: tuple[str, ...]
    ts: datetime = field(default_factory=utcnow)

    def to_payload(self) -> dict:
        body = asdict(self)
        body["ids"] = list(self.ids)
        body["ts"] = self.ts.isoformat()
        return body


Listener = Callable[[ChangeEvent], None]

_listeners: list[Listener] = []


def subscribe(listener: Listener) -> None:
    if listener not in _listeners:
        _listeners.append(listener)


def unsubscribe(listener: Listener) -> None:
    if listener in _listeners:
        _listeners.remove(listener)


def publish(*events: ChangeEvent) -> None:
    """Deliver events to every listener.

    Call only after the mutation is committed. Delivery is best-effort: a
    failing listener is logged and does not affect the others.
    """
    for ev in events:
        for listener in list(_listeners):
            try:
                listener(ev)
            except Exception:
                logger.exception(
                    "change listener failed",
                    extra={"entity": ev.entity, "action": ev.action},
                )


def emit(entity: str, action: str, *ids: str) -> None:
    publish(ChangeEvent(entity=entity, action=action, ids=tuple(ids)))


def forward_to_redis(event: ChangeEvent) -> None:
    r = get_redis()
    if r is None:
        return
    r.publish(settings.events_channel, json.dumps(event.to_payload()))
