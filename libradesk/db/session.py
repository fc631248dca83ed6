from __future__ import annotations

from typing import Any, Generator

from libradesk.core.config import settings
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker


def _connect_args(url: str) -> dict[str, Any]:
    # FastAPI runs sync endpoints in a threadpool.
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.database_url),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
