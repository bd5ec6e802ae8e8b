"""
API v1 Router Aggregator
========================

    from app.api.v1.routers import build_v1_router
    app.include_router(build_v1_router(), prefix="/api/v1")

Auth and rate limits live in the child routers.
"""

from fastapi import APIRouter

from .downloads import router as downloads_router
from .admin import router as admin_router


def build_v1_router() -> APIRouter:
    """Downloads at the root of v1; admin endpoints under `/admin`."""
    r = APIRouter()
    r.include_router(downloads_router)
    r.include_router(admin_router, prefix="/admin")
    return r


router = build_v1_router()

__all__ = ["router", "build_v1_router", "downloads_router", "admin_router"]
