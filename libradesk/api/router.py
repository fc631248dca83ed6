from __future__ import annotations

import importlib

from fastapi import APIRouter

api_router = APIRouter()


def _include(module_path: str) -> None:
    mod = importlib.import_module(module_path)
    api_router.include_router(getattr(mod, "router"))


# Keep this list in the order you want routes registered.
for _mod in (
    "libradesk.api.routes.health",
    "libradesk.api.routes.books",
    "libradesk.api.routes.members",
    "libradesk.api.routes.borrowings",
    "libradesk.api.routes.dashboard",
    "libradesk.api.routes.events",
):
    _include(_mod)
