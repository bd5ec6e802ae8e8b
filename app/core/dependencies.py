# app/core/dependencies.py
from __future__ import annotations

"""
Caller identity dependencies
============================

Bearer parsing and token decoding live in `app.core.jwt`; this module only
*uses* them and exposes the caller's user id to routes. The id is also put on
`request.state.user_id` so the HTTP throttle keys per user.
"""

from uuid import UUID

from fastapi import Request

from app.core.exceptions import Unauthenticated
from app.core.jwt import get_token_payload


def parse_uuid(value: str) -> UUID:
    """Parse the token subject; a non-UUID subject is treated as an invalid token."""
    try:
        return UUID(str(value))
    except ValueError:
        raise Unauthenticated("Invalid user ID in token")


async def get_current_user_id(request: Request) -> str:
    """Authenticated caller's user id (canonical UUID string)."""
    payload = get_token_payload(request)
    user_id = str(parse_uuid(payload["sub"]))
    request.state.user_id = user_id
    return user_id


__all__ = ["parse_uuid", "get_current_user_id"]
