# app/core/jwt.py
from __future__ import annotations

"""
Access-token verification
=========================
Callers authenticate with the platform auth service (Supabase-style HS256
access tokens). This module only *verifies* those tokens:

- Case-insensitive Bearer extraction from the `Authorization` header
- Signature, expiry and audience checks via python-jose
- `sub` is the caller's user id

Token creation lives with the auth provider and is out of scope here.
"""

from typing import Any, Dict

from fastapi import Request
from jose import ExpiredSignatureError, JWTError, jwt
from loguru import logger

from app.core.config import settings
from app.core.exceptions import Unauthenticated


# ─────────────────────────────────────────────────────────────
# 🔓 Decode
# ─────────────────────────────────────────────────────────────
def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate an access token.

    Raises
    ------
    Unauthenticated
        Bad signature, wrong audience, expired, or no subject.
    """
    try:
        payload = jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET.get_secret_value(),
            algorithms=[settings.SUPABASE_JWT_ALGORITHM],
            audience=settings.SUPABASE_JWT_AUDIENCE,
        )
    except ExpiredSignatureError:
        logger.info("Access token expired")
        raise Unauthenticated("Token has expired")
    except JWTError as e:
        logger.warning("JWT decoding failed: {}", e)
        raise Unauthenticated("Invalid token")

    if not payload.get("sub"):
        logger.warning("Access token missing subject")
        raise Unauthenticated("Token missing user ID")
    return payload


# ─────────────────────────────────────────────────────────────
# 📥 Extract Bearer Token from Authorization Header
# ─────────────────────────────────────────────────────────────
def get_bearer_token(request: Request) -> str:
    """Extract a Bearer token from the `Authorization` header (case-insensitive)."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise Unauthenticated("Missing Authorization header")

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.warning("Malformed Authorization header")
        raise Unauthenticated("Invalid Authorization scheme")

    return parts[1].strip()


def get_token_payload(request: Request) -> Dict[str, Any]:
    """Decode the caller's token straight from a `Request`."""
    return decode_token(get_bearer_token(request))


__all__ = ["decode_token", "get_bearer_token", "get_token_payload"]
