from __future__ import annotations

"""
Error-envelope exception handlers.

FastAPI integrates these via app/main.py. Every failure, typed or not, is
rendered as ``{"error": {"code", "message"}}`` so clients parse one shape.
"""

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import UNEXPECTED_FAILURE, AppException
from app.middleware.request_id import get_request_id

_STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHENTICATED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    410: "GONE",
    429: "TOO_MANY_REQUESTS",
}


def _envelope(request: Request, code: str, message: str, status_code: int, **extra) -> JSONResponse:
    body = {"error": {"code": code, "message": message, **extra}}
    rid = get_request_id(request)
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=status_code, content=body)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:  # type: ignore
    resp = JSONResponse(status_code=exc.status_code, content=exc.to_body(request_id=get_request_id(request) or None))
    if exc.headers:
        for k, v in exc.headers.items():
            resp.headers[k] = v
    return resp


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # type: ignore
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    code = _STATUS_CODES.get(exc.status_code, UNEXPECTED_FAILURE)
    return _envelope(request, code, detail, exc.status_code)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # type: ignore
    return _envelope(
        request,
        "VALIDATION_ERROR",
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        details=jsonable_errors(exc),
    )


async def throttle_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore
    """SlowAPI request throttle (HTTP 429), distinct from the download quota."""
    return _envelope(request, "TOO_MANY_REQUESTS", f"Too many requests: {getattr(exc, 'detail', '')}".rstrip(": "), 429)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore
    logger.opt(exception=exc).error("Unhandled error on {} {}", request.method, request.url.path)
    return _envelope(
        request,
        UNEXPECTED_FAILURE,
        "An unexpected error occurred.",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Strip non-serializable context (e.g. exception objects) from pydantic errors."""
    out = []
    for err in exc.errors():
        out.append({k: v for k, v in err.items() if k in {"loc", "msg", "type"}})
    return out


__all__ = [
    "app_exception_handler",
    "http_exception_handler",
    "validation_exception_handler",
    "throttle_exception_handler",
    "global_exception_handler",
]
