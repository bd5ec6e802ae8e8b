# app/main.py
from __future__ import annotations

"""
# Wallpaper Downloads API - Application Entrypoint (FastAPI)

ASGI application factory and lifecycle.

## Middleware order
  request id (outermost) → HTTP throttle (SlowAPI) → gzip → CORS

## Probes
- `/healthz` - liveness (process up).
- `/readyz` - readiness (DB + Redis checks).
- `/metrics` - Prometheus exposition.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator
import os

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from slowapi.errors import RateLimitExceeded as ThrottleExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware
from starlette.responses import JSONResponse, Response

from app.core import logger as _logsetup  # noqa: F401  (configures sinks on import)
from app.core.config import settings
from app.core.exception_handlers import (
    app_exception_handler,
    global_exception_handler,
    http_exception_handler,
    throttle_exception_handler,
    validation_exception_handler,
)
from app.core.exceptions import AppException
from app.core.limiter import install_rate_limiter
from app.core.redis_client import redis_wrapper
from app.db.session import async_engine, db_healthcheck
from app.middleware.request_id import RequestIDMiddleware


# ─────────────────────────────────────────────────────────────────────────────
# 🔄 Lifespan: startup & shutdown
# ─────────────────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Startup:
        - Best-effort connect to Redis (the usage outbox degrades to log-and-drop without it).

    Shutdown:
        - Dispose the DB engine and close Redis.
    """
    logger.info("Wallpaper Downloads API starting up | env={}", settings.ENV)
    try:
        await redis_wrapper.connect()
    except RuntimeError:
        logger.exception("Redis connect failed (continuing without usage outbox)")

    try:
        yield
    finally:
        await async_engine.dispose()
        await redis_wrapper.close()
        logger.info("Wallpaper Downloads API shutting down")


# ─────────────────────────────────────────────────────────────────────────────
# 🏗️ App factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app() -> FastAPI:
    """Build the FastAPI app with middleware, handlers, routers and probes."""
    enable_docs = settings.ENABLE_DOCS

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url="/docs" if enable_docs else None,
        redoc_url="/redoc" if enable_docs else None,
        openapi_url="/openapi.json" if enable_docs else None,
        lifespan=lifespan,
    )

    # ── Middlewares (added inside-out; request id ends up outermost) ───────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1024)
    install_rate_limiter(app)
    app.add_middleware(RequestIDMiddleware)

    # ── Exception handlers ──────────────────────────────────────────────────
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ThrottleExceeded, throttle_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)  # type: ignore[arg-type]

    # ── Routers (versioned API) ─────────────────────────────────────────────
    from app.api.v1.routers import build_v1_router

    app.include_router(build_v1_router(), prefix=settings.API_V1_STR)

    # ── Meta endpoints ──────────────────────────────────────────────────────
    @app.get("/healthz", tags=["meta"])
    async def healthz() -> dict[str, bool]:
        """Liveness probe; no external checks."""
        return {"ok": True}

    @app.get("/readyz", tags=["meta"])
    async def readyz() -> dict[str, object]:
        """Readiness probe with per-dependency flags."""
        db_ok = await db_healthcheck()
        redis_ok = await redis_wrapper.is_connected()
        return {"ready": bool(db_ok and redis_ok), "checks": {"db": db_ok, "redis": redis_ok}}

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        return JSONResponse({"name": settings.PROJECT_NAME, "docs": app.docs_url or "", "version": settings.VERSION})

    return app


# ─────────────────────────────────────────────────────────────────────────────
# 🚀 Module-level ASGI app for Uvicorn
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()
__all__ = ["create_app", "app"]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "1") == "1",
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
