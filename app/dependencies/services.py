from __future__ import annotations

"""
Service wiring
==============

FastAPI dependencies that build repositories over the request's
`AsyncSession` and assemble the services routers use. Tests replace any of
these with `app.dependency_overrides[...]`.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_async_db
from app.repositories.downloads import DownloadRepository, ProfileRepository, WallpaperRepository
from app.repositories.rate_limits import AdminAuditRepository, RateLimitConfigRepository
from app.services.download_limiter import DownloadLimiter
from app.services.download_service import DownloadGrantService
from app.services.usage_recorder import UsageRecorder


def get_profile_repository(db: AsyncSession = Depends(get_async_db)) -> ProfileRepository:
    return ProfileRepository(db)


def get_wallpaper_repository(db: AsyncSession = Depends(get_async_db)) -> WallpaperRepository:
    return WallpaperRepository(db)


def get_download_repository(db: AsyncSession = Depends(get_async_db)) -> DownloadRepository:
    return DownloadRepository(db)


def get_rate_limit_repository(db: AsyncSession = Depends(get_async_db)) -> RateLimitConfigRepository:
    return RateLimitConfigRepository(db)


def get_admin_audit_repository(db: AsyncSession = Depends(get_async_db)) -> AdminAuditRepository:
    return AdminAuditRepository(db)


def get_download_limiter(downloads=Depends(get_download_repository)) -> DownloadLimiter:
    return DownloadLimiter(downloads)


def get_download_service(
    profiles=Depends(get_profile_repository),
    wallpapers=Depends(get_wallpaper_repository),
    limiter: DownloadLimiter = Depends(get_download_limiter),
) -> DownloadGrantService:
    return DownloadGrantService(profiles=profiles, wallpapers=wallpapers, limiter=limiter)


def get_usage_recorder() -> UsageRecorder:
    return UsageRecorder()


__all__ = [
    "get_profile_repository",
    "get_wallpaper_repository",
    "get_download_repository",
    "get_rate_limit_repository",
    "get_admin_audit_repository",
    "get_download_limiter",
    "get_download_service",
    "get_usage_recorder",
]
