from __future__ import annotations

"""Download-path repositories: profiles, wallpapers and download events."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.download import USER_AGENT_MAX_LENGTH, Download
from app.db.models.profile import Profile
from app.db.models.wallpaper import Wallpaper
from app.db.session import transactional_async_session
from app.schemas.enums import PlanType, Resolution
from app.services.entitlements import Entitlement


# ─────────────────────────────────────────────────────────────
# Records
# ─────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Resource:
    id: int
    title: str
    is_premium: bool = False
    download_url: Optional[str] = None
    resolution_1080p: Optional[str] = None
    resolution_4k: Optional[str] = None
    resolution_8k: Optional[str] = None

    def source_for(self, resolution: Resolution) -> Optional[str]:
        """Stored location for a tier, falling back to coarser variants and the original."""
        if resolution is Resolution.ULTRA:
            candidates = (self.resolution_8k, self.resolution_4k, self.download_url)
        elif resolution is Resolution.HIGH:
            candidates = (self.resolution_4k, self.download_url)
        else:
            candidates = (self.resolution_1080p, self.download_url)
        return next((c for c in candidates if c), None)


@dataclass(frozen=True)
class DownloadEvent:
    user_id: str
    resource_id: int
    resolution: Resolution
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_payload(self) -> Dict[str, Any]:
        data = asdict(self)
        data["resolution"] = self.resolution.value
        data["occurred_at"] = self.occurred_at.isoformat()
        return data

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "DownloadEvent":
        return cls(
            user_id=str(data["user_id"]),
            resource_id=int(data["resource_id"]),
            resolution=Resolution(data["resolution"]),
            ip_address=data.get("ip_address"),
            user_agent=data.get("user_agent"),
            occurred_at=datetime.fromisoformat(data["occurred_at"]),
        )


# ─────────────────────────────────────────────────────────────
# Repositories
# ─────────────────────────────────────────────────────────────
class ProfileRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get(self, user_id: str) -> Optional[Profile]:
        result = await self.db.execute(select(Profile).where(Profile.user_id == UUID(str(user_id))))
        return result.scalars().first()

    async def get_entitlement(self, user_id: str) -> Entitlement:
        """Caller's plan; users without a profile row are free tier."""
        profile = await self._get(user_id)
        if profile is None:
            return Entitlement.free()
        return Entitlement(
            plan_type=PlanType(profile.plan_type),
            premium_expires_at=profile.premium_expires_at,
        )

    async def is_admin(self, user_id: str) -> bool:
        profile = await self._get(user_id)
        return bool(profile and profile.is_admin)


class WallpaperRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, resource_id: int) -> Optional[Resource]:
        row = await self.db.get(Wallpaper, resource_id)
        if row is None:
            return None
        return Resource(
            id=row.id,
            title=row.title,
            is_premium=bool(row.is_premium),
            download_url=row.download_url,
            resolution_1080p=row.resolution_1080p,
            resolution_4k=row.resolution_4k,
            resolution_8k=row.resolution_8k,
        )


class DownloadRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def count_since(self, user_id: str, since: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(Download)
            .where(Download.user_id == UUID(str(user_id)), Download.created_at >= since)
        )
        return int((await self.db.execute(stmt)).scalar_one())


async def write_download_event(event: DownloadEvent) -> None:
    """Insert the event and bump the wallpaper counter in one transaction.

    The counter is incremented server-side (`download_count + 1`) so concurrent
    writers never lose updates.
    """
    async with transactional_async_session() as session:
        await session.execute(
            insert(Download).values(
                user_id=UUID(event.user_id),
                wallpaper_id=event.resource_id,
                resolution=event.resolution.value,
                ip_address=event.ip_address,
                user_agent=(event.user_agent or "")[:USER_AGENT_MAX_LENGTH] or None,
                created_at=event.occurred_at,
            )
        )
        await session.execute(
            update(Wallpaper)
            .where(Wallpaper.id == event.resource_id)
            .values(download_count=Wallpaper.download_count + 1)
        )


__all__ = [
    "Resource",
    "DownloadEvent",
    "ProfileRepository",
    "WallpaperRepository",
    "DownloadRepository",
    "write_download_event",
]
