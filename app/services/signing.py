from __future__ import annotations

"""
Signing utilities for time-limited wallpaper download URLs.

A grant binds resource id, resolution, user id and expiry (epoch seconds):

    sig = HMAC-SHA256(DOWNLOAD_SIGNING_SECRET, "{resource_id}-{resolution}-{user_id}-{expires}")

truncated to `DOWNLOAD_SIGNATURE_LENGTH` hex chars (16 by default). The
truncation narrows the forgery margin to 64 bits; combined with the short TTL
this is accepted. There is no revocation: a grant stays valid until it expires.
"""

from datetime import datetime
import hashlib
import hmac
from typing import Optional
from urllib.parse import urlencode

from pydantic import BaseModel

from app.core.config import settings
from app.core.exceptions import GrantExpired, InvalidGrant
from app.schemas.enums import Resolution


class SignedGrant(BaseModel):
    """A freshly issued download grant (never persisted).

    - url: Redemption URL carrying resolution, expires, signature and user.
    - expires_at: Epoch seconds after which redemption is refused.
    - signature: Truncated hex HMAC.
    """

    resource_id: int
    resolution: Resolution
    user_id: str
    expires_at: int
    signature: str
    url: str


def _secret() -> bytes:
    return settings.DOWNLOAD_SIGNING_SECRET.get_secret_value().encode("utf-8")


def compute_signature(resource_id: int, resolution: Resolution, user_id: str, expires_at: int) -> str:
    to_sign = f"{resource_id}-{resolution.value}-{user_id}-{int(expires_at)}".encode("utf-8")
    digest = hmac.new(_secret(), to_sign, hashlib.sha256).hexdigest()
    return digest[: settings.DOWNLOAD_SIGNATURE_LENGTH]


def redemption_path(resource_id: int) -> str:
    return f"{settings.API_V1_STR}/downloads/{resource_id}/file"


def sign(
    resource_id: int,
    resolution: Resolution,
    user_id: str,
    now: datetime,
    *,
    ttl_seconds: Optional[int] = None,
) -> SignedGrant:
    """Issue a grant valid for `ttl_seconds` (default `DOWNLOAD_URL_TTL_SECONDS`)."""
    ttl = settings.DOWNLOAD_URL_TTL_SECONDS if ttl_seconds is None else ttl_seconds
    expires_at = int(now.timestamp()) + int(ttl)
    sig = compute_signature(resource_id, resolution, user_id, expires_at)
    query = urlencode(
        {
            "resolution": resolution.value,
            "expires": expires_at,
            "signature": sig,
            "user": user_id,
        }
    )
    url = f"{settings.public_base_url_str}{redemption_path(resource_id)}?{query}"
    return SignedGrant(
        resource_id=resource_id,
        resolution=resolution,
        user_id=user_id,
        expires_at=expires_at,
        signature=sig,
        url=url,
    )


def verify(
    resource_id: int,
    resolution: Resolution,
    user_id: str,
    expires_at: int,
    signature: str,
    now: datetime,
) -> None:
    """Check a presented grant.

    Raises `InvalidGrant` when the signature does not match and
    `GrantExpired` when it matches but `now` is past the expiry.
    """
    expected = compute_signature(resource_id, resolution, user_id, expires_at)
    presented = (signature or "").lower().encode("utf-8")
    if not hmac.compare_digest(expected.encode("utf-8"), presented):
        raise InvalidGrant()
    if int(now.timestamp()) > int(expires_at):
        raise GrantExpired()


__all__ = ["SignedGrant", "compute_signature", "redemption_path", "sign", "verify"]
