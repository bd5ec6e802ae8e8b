"""
Wallpaper Downloads (signed, time-limited)
==========================================

Route Index
-----------
- POST /downloads/url                       → Issue a signed download URL for a wallpaper
- GET  /downloads/{resource_id}/file        → Redeem a signed URL (307 to the stored file)

Security
--------
- Issuance requires a bearer access token; redemption is authorized by the
  signature alone and stops working once `expires` has passed.
- Premium wallpapers and 4K/8K tiers require an active premium plan.
- Free callers are held to `FREE_DOWNLOADS_PER_HOUR` grants per hour.
- All responses are **no-store** so signed URLs are never cached.

The usage event is written after the response is sent; its outcome never
changes what the caller receives.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import RedirectResponse
from loguru import logger

from app.api.http_utils import get_client_ip, json_no_store
from app.core.dependencies import get_current_user_id
from app.core.exceptions import InvalidGrant, MissingInput, ResolutionUnavailable, ResourceNotFound
from app.core.limiter import rate_limit
from app.core.metrics import inc_redemption
from app.db.models.download import USER_AGENT_MAX_LENGTH
from app.dependencies.services import get_download_service, get_usage_recorder, get_wallpaper_repository
from app.schemas.downloads import DownloadGrant, DownloadUrlRequest, DownloadUrlResponse
from app.schemas.enums import Resolution
from app.services import signing
from app.services.download_service import DownloadGrantService
from app.services.usage_recorder import UsageRecorder

router = APIRouter(prefix="/downloads", tags=["Downloads"])
__all__ = ["router"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ─────────────────────────────────────────────────────────────────────────────
# 🔏 Issue
# ─────────────────────────────────────────────────────────────────────────────
@router.post(
    "/url",
    response_model=DownloadUrlResponse,
    summary="Issue a signed, time-limited download URL",
)
@rate_limit("30/minute")
async def create_download_url(
    request: Request,
    background_tasks: BackgroundTasks,
    payload: Optional[DownloadUrlRequest] = None,
    user_id: str = Depends(get_current_user_id),
    service: DownloadGrantService = Depends(get_download_service),
    recorder: UsageRecorder = Depends(get_usage_recorder),
):
    if payload is None:
        raise MissingInput("Wallpaper ID is required")
    ip = get_client_ip(request)
    result = await service.issue(
        user_id=user_id,
        resource_id=payload.resource_id,
        resolution=payload.resolution,
        now=_now(),
        ip_address=None if ip == "unknown" else ip,
        user_agent=request.headers.get("user-agent", "")[:USER_AGENT_MAX_LENGTH] or None,
    )
    background_tasks.add_task(recorder.record, result.event)

    body = DownloadUrlResponse(
        data=DownloadGrant(
            signed_url=result.grant.url,
            download_url=result.source_url,
            expires_at=result.grant.expires_at,
            resource_title=result.resource.title,
            resolution=result.grant.resolution,
        )
    )
    return json_no_store(body)


# ─────────────────────────────────────────────────────────────────────────────
# 📥 Redeem
# ─────────────────────────────────────────────────────────────────────────────
@router.get(
    "/{resource_id}/file",
    status_code=307,
    summary="Redeem a signed download URL",
)
@rate_limit("120/minute")
async def redeem_download(
    request: Request,
    resource_id: int,
    resolution: Optional[str] = None,
    expires: Optional[int] = None,
    signature: Optional[str] = None,
    user: Optional[str] = None,
    wallpapers=Depends(get_wallpaper_repository),
):
    if not (resolution and expires is not None and signature and user):
        raise MissingInput("resolution, expires, signature and user are required")

    tier = Resolution.parse(resolution)
    if tier is None:
        inc_redemption("invalid")
        raise InvalidGrant()

    try:
        signing.verify(resource_id, tier, user, expires, signature, _now())
    except Exception as exc:
        inc_redemption(getattr(exc, "error_code", "error").lower())
        raise

    resource = await wallpapers.get(resource_id)
    if resource is None:
        inc_redemption("not_found")
        raise ResourceNotFound()
    source = resource.source_for(tier)
    if not source:
        inc_redemption("unavailable")
        raise ResolutionUnavailable()

    inc_redemption("redirected")
    logger.info("Download redeemed | user={} | resource={} | resolution={}", user, resource_id, tier.value)
    resp = RedirectResponse(url=source, status_code=307)
    resp.headers["Cache-Control"] = "no-store"
    resp.headers["Pragma"] = "no-cache"
    return resp
