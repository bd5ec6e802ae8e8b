from __future__ import annotations

"""
Download grant service
======================

Request-path orchestration for `POST /downloads/url`:

    validate → entitlement → resource → gate → quota (free only)
      → source location → sign → (event to record)

Every step either raises an `AppException` subclass or continues; there are
no retries in the request path. The returned `DownloadEvent` is recorded
after the response by the caller, so a denied request never produces one.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from loguru import logger

from app.core.exceptions import MissingInput, ResolutionUnavailable, ResourceNotFound
from app.core.metrics import inc_grant
from app.repositories.downloads import DownloadEvent, Resource
from app.schemas.enums import Resolution
from app.services import signing
from app.services.download_limiter import DownloadLimiter
from app.services.entitlements import check_download_entitlement


_BIGINT_MAX = 2**63 - 1


@dataclass(frozen=True)
class GrantResult:
    grant: signing.SignedGrant
    source_url: str
    resource: Resource
    event: DownloadEvent


def parse_resource_id(raw: Union[int, str, None]) -> int:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise MissingInput("Wallpaper ID is required")
    if isinstance(raw, bool):
        raise ResourceNotFound()
    try:
        value = int(str(raw).strip())
    except ValueError:
        raise ResourceNotFound()
    if value <= 0 or value > _BIGINT_MAX:
        raise ResourceNotFound()
    return value


def parse_resolution(raw: Optional[str]) -> Resolution:
    if raw is None or not str(raw).strip():
        return Resolution.STANDARD
    resolution = Resolution.parse(raw)
    if resolution is None:
        raise ResolutionUnavailable(f"Unsupported resolution '{raw}'")
    return resolution


class DownloadGrantService:
    """Issue signed download grants.

    Collaborators are injected so the HTTP layer can wire SQL repositories and
    tests can pass in-memory fakes.
    """

    def __init__(self, *, profiles, wallpapers, limiter: DownloadLimiter):
        self.profiles = profiles
        self.wallpapers = wallpapers
        self.limiter = limiter

    async def issue(
        self,
        *,
        user_id: str,
        resource_id: Union[int, str, None],
        resolution: Optional[str],
        now: datetime,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> GrantResult:
        rid = parse_resource_id(resource_id)
        tier = parse_resolution(resolution)

        entitlement = await self.profiles.get_entitlement(user_id)
        resource = await self.wallpapers.get(rid)
        if resource is None:
            inc_grant("not_found")
            raise ResourceNotFound()

        try:
            check_download_entitlement(entitlement, resource.is_premium, tier, now)
            if not entitlement.is_entitled(now):
                await self.limiter.check(user_id, now)
        except Exception:
            inc_grant("denied")
            raise

        source = resource.source_for(tier)
        if not source:
            inc_grant("unavailable")
            raise ResolutionUnavailable()

        grant = signing.sign(rid, tier, user_id, now)
        inc_grant("issued")
        logger.info("Download grant issued | user={} | resource={} | resolution={}", user_id, rid, tier.value)

        event = DownloadEvent(
            user_id=user_id,
            resource_id=rid,
            resolution=tier,
            ip_address=ip_address,
            user_agent=user_agent,
            occurred_at=now,
        )
        return GrantResult(grant=grant, source_url=source, resource=resource, event=event)


__all__ = ["DownloadGrantService", "GrantResult", "parse_resource_id", "parse_resolution"]
