from __future__ import annotations

"""
HTTP request throttling (SlowAPI)
=================================

Coarse per-client protection for the HTTP surface. This is *not* the free-tier
download quota (see `app.services.download_limiter`); it only shields the
endpoints from request floods.

- Keyed per user when `request.state.user_id` is set, else per client IP.
- Health, metrics and docs paths are exempt.
- `RATE_LIMIT_TEST_BYPASS` disables throttling (re-read per request).

Environment
-----------
RATE_LIMIT_ENABLED        default: "true"
RATE_LIMIT_NAMESPACE      default: "" (key prefix, handy for parallel CI runs)
RATE_LIMIT_TEST_BYPASS    default: ""
RATE_LIMIT_SKIP_PATHS     default: "/healthz,/readyz,/metrics,/docs,/openapi.json"

Usage
-----
    @router.post("/url")
    @rate_limit("30/minute")
    async def create_url(request: Request, ...): ...
"""

import os
from typing import Callable, List, Optional

from loguru import logger
from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware
from starlette.requests import Request

from app.api.http_utils import get_client_ip
from app.core.config import settings

_TRUTHY = {"1", "true", "yes", "on"}

NAMESPACE = os.getenv("RATE_LIMIT_NAMESPACE", "").strip()
SKIP_PATHS: List[str] = [
    p.strip()
    for p in os.getenv("RATE_LIMIT_SKIP_PATHS", "/healthz,/readyz,/metrics,/docs,/openapi.json").split(",")
    if p.strip()
]


def _enabled() -> bool:
    return os.getenv("RATE_LIMIT_ENABLED", "true").strip().lower() == "true"


def get_rate_limit_key(request: Request) -> str:
    """`user:<id>` when authenticated, otherwise `ip:<addr>`; namespaced when configured."""
    user_id = getattr(request.state, "user_id", None)
    key = f"user:{user_id}" if user_id else f"ip:{get_client_ip(request)}"
    return f"{NAMESPACE}:{key}" if NAMESPACE else key


def should_exempt_request(request: Optional[Request]) -> bool:
    if not _enabled():
        return True
    if os.getenv("RATE_LIMIT_TEST_BYPASS", "").strip().lower() in _TRUTHY:
        return True
    if request is None:
        return False
    path = request.url.path
    return any(path == p or path.startswith(p) for p in SKIP_PATHS)


def _default_limits() -> List[str]:
    raw = settings.DEFAULT_RATE_LIMIT or "100/minute"
    return [chunk.strip() for chunk in raw.split(",") if chunk.strip()]


limiter = Limiter(
    key_func=get_rate_limit_key,
    default_limits=_default_limits(),
    headers_enabled=False,
    storage_uri=settings.ratelimit_storage,
)


def _exempt_when(request: Optional[Request] = None) -> bool:
    # older SlowAPI releases call this without the request
    return should_exempt_request(request)


def rate_limit(*limits: str) -> Callable:
    """Apply one or more per-route limits, honoring the exemptions above."""
    selected = list(limits) if limits else _default_limits()

    def _apply(fn: Callable) -> Callable:
        for limit_value in reversed(selected):
            fn = limiter.limit(limit_value, exempt_when=_exempt_when)(fn)
        return fn

    return _apply


def install_rate_limiter(app) -> None:
    """Attach the limiter to app state and mount SlowAPI's middleware."""
    if not _enabled():
        logger.info("HTTP rate limiter disabled by env; middleware not installed")
        return
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    logger.info("SlowAPI middleware installed | default={} | storage={}", _default_limits(), settings.ratelimit_storage)


__all__ = ["limiter", "rate_limit", "install_rate_limiter", "get_rate_limit_key", "should_exempt_request"]
