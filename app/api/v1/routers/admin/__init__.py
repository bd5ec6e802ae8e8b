"""
Admin router package (v1)
=========================

Each submodule defines its own `APIRouter`; this package aggregates them.
Mount under `/api/v1/admin`.
"""

from typing import Any, Dict

from fastapi import APIRouter, status

from .rate_limits import router as rate_limits_router

COMMON_ADMIN_RESPONSES: Dict[int, Dict[str, Any]] = {
    status.HTTP_401_UNAUTHORIZED: {"description": "Unauthenticated"},
    status.HTTP_403_FORBIDDEN: {"description": "Admin access required"},
    status.HTTP_429_TOO_MANY_REQUESTS: {"description": "Too many requests"},
}

router = APIRouter()
router.include_router(rate_limits_router, responses=COMMON_ADMIN_RESPONSES)

__all__ = ["router", "rate_limits_router"]
