from __future__ import annotations

"""
Admin guard
-----------
Admin status comes from the caller's profile (`profiles.is_admin`); the
access token itself carries no role claim we trust.
"""

from fastapi import Depends

from app.core.dependencies import get_current_user_id
from app.core.exceptions import AdminRequired
from app.dependencies.services import get_profile_repository


async def admin_user_id(
    user_id: str = Depends(get_current_user_id),
    profiles=Depends(get_profile_repository),
) -> str:
    """Authenticated caller's id, provided they are an administrator."""
    if not await profiles.is_admin(user_id):
        raise AdminRequired()
    return user_id


__all__ = ["admin_user_id"]
