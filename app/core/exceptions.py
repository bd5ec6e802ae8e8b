# app/core/exceptions.py
from __future__ import annotations

"""
Wallpaper Downloads - Application Exceptions
============================================
A small, consistent layer on top of FastAPI/Starlette's `HTTPException` that
attaches a stable string `error_code` and renders the public error envelope
used by every endpoint:

    {"error": {"code": "RATE_LIMIT_EXCEEDED", "message": "..."}}

Each error kind maps to its own HTTP status; only genuinely unexpected
failures surface as 500.

Usage
-----
    raise EntitlementRequired(constraint="resolution", resolution=Resolution.ULTRA)
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

__all__ = [
    "AppException",
    "MissingInput",
    "Unauthenticated",
    "AdminRequired",
    "ResourceNotFound",
    "EntitlementRequired",
    "RateLimitExceeded",
    "ResolutionUnavailable",
    "InvalidGrant",
    "GrantExpired",
    "UNEXPECTED_FAILURE",
]

UNEXPECTED_FAILURE = "UNEXPECTED_FAILURE"


# ──────────────────────────────────────────────────────────────
# 📦 Core: AppException
# ──────────────────────────────────────────────────────────────
class AppException(HTTPException):
    """Base application-level exception with a machine-readable code.

    Attributes
    -----------
    status_code : int
        HTTP status code.
    message : str
        Human-readable error message (also exposed as `detail`).
    error_code : str
        Stable identifier clients can branch on.
    details : dict | None
        Non-sensitive structured context (e.g. which constraint triggered).
    """

    default_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code: str = UNEXPECTED_FAILURE

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        code = status_code or self.default_status
        super().__init__(status_code=code, detail=message, headers=headers)
        self.message: str = message
        self.error_code: str = error_code or self.default_code
        self.details: Optional[Dict[str, Any]] = details

    def to_body(self, *, request_id: Optional[str] = None) -> Dict[str, Any]:
        """Return the public error envelope."""
        err: Dict[str, Any] = {"code": self.error_code, "message": self.message}
        if self.details:
            err["details"] = self.details
        body: Dict[str, Any] = {"error": err}
        if request_id:
            body["request_id"] = request_id
        return body


# ──────────────────────────────────────────────────────────────
# 🧾 Input / identity
# ──────────────────────────────────────────────────────────────
class MissingInput(AppException):
    default_status = status.HTTP_400_BAD_REQUEST
    default_code = "MISSING_INPUT"


class Unauthenticated(AppException):
    """No bearer credential, or the identity service rejected it."""

    default_status = status.HTTP_401_UNAUTHORIZED
    default_code = "UNAUTHENTICATED"

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class AdminRequired(AppException):
    default_status = status.HTTP_403_FORBIDDEN
    default_code = "ADMIN_REQUIRED"

    def __init__(self, message: str = "Admin access required") -> None:
        super().__init__(message)


# ──────────────────────────────────────────────────────────────
# 🖼️ Download authorization
# ──────────────────────────────────────────────────────────────
class ResourceNotFound(AppException):
    default_status = status.HTTP_404_NOT_FOUND
    default_code = "RESOURCE_NOT_FOUND"

    def __init__(self, message: str = "Wallpaper not found") -> None:
        super().__init__(message)


class EntitlementRequired(AppException):
    """Raised when a premium resource or resolution is requested without entitlement.

    `constraint` is ``"resource"`` when the wallpaper itself is premium and
    ``"resolution"`` when the requested quality tier is premium-gated.
    """

    default_status = status.HTTP_403_FORBIDDEN
    default_code = "ENTITLEMENT_REQUIRED"

    def __init__(self, message: str, *, constraint: str) -> None:
        super().__init__(message, details={"constraint": constraint})
        self.constraint = constraint


class RateLimitExceeded(AppException):
    default_status = status.HTTP_403_FORBIDDEN
    default_code = "RATE_LIMIT_EXCEEDED"


class ResolutionUnavailable(AppException):
    default_status = status.HTTP_404_NOT_FOUND
    default_code = "RESOLUTION_UNAVAILABLE"

    def __init__(self, message: str = "Download URL not available for this resolution") -> None:
        super().__init__(message)


# ──────────────────────────────────────────────────────────────
# 🔑 Grant redemption
# ──────────────────────────────────────────────────────────────
class InvalidGrant(AppException):
    default_status = status.HTTP_403_FORBIDDEN
    default_code = "INVALID_SIGNATURE"

    def __init__(self, message: str = "Invalid download signature") -> None:
        super().__init__(message)


class GrantExpired(AppException):
    default_status = status.HTTP_410_GONE
    default_code = "GRANT_EXPIRED"

    def __init__(self, message: str = "Download link has expired") -> None:
        super().__init__(message)
