from __future__ import annotations

from libradesk.api.errors import register_exception_handlers
from libradesk.api.router import api_router
from libradesk.core.config import settings
from libradesk.core.logging_config import configure_logging
from libradesk.core.otel import init_otel
from libradesk.db.session import engine
from libradesk.middleware.request_id import RequestIdMiddleware
from libradesk.services import events
from libradesk.services.stats_cache import invalidate_on_change
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

configure_logging()

# Mutations announce themselves; these listeners keep derived views fresh.
events.subscribe(invalidate_on_change)
events.subscribe(events.forward_to_redis)

app = FastAPI(title=settings.api_name)

app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-Id"],
)

register_exception_handlers(app)

app.include_router(api_router)

init_otel(app, engine)
