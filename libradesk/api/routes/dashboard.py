from __future__ import annotations

from dataclasses import asdict
from datetime import date

from libradesk.db.session import get_db
from libradesk.schemas.dashboard import DashboardStatsOut
from libradesk.services.dashboard import load_dashboard_stats
from libradesk.services.stats_cache import (
    current_generation,
    get_cached_stats,
    store_stats,
)
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

router = APIRouter(tags=["dashboard"])


@router.get("/api-dashboard", response_model=DashboardStatsOut)
def get_dashboard(
    *,
    as_of: date | None = Query(default=None),
    db: Session = Depends(get_db),
) -> DashboardStatsOut:
    day = as_of or date.today()

    # Read the generation before loading so a change committed mid-request
    # leaves our entry under a generation nobody reads any more.
    generation = current_generation()
    cached = get_cached_stats(day, generation)
    if cached is not None:
        return DashboardStatsOut.model_validate(cached)

    stats = load_dashboard_stats(db, as_of=day)
    out = DashboardStatsOut.model_validate(asdict(stats))
    store_stats(day, out.model_dump(mode="json", by_alias=True), generation)
    return out
