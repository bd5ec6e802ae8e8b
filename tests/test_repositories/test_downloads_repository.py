# tests/test_repositories/test_downloads_repository.py

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.db.models.download import Download
from app.db.models.profile import Profile
from app.db.models.wallpaper import Wallpaper
from app.repositories.downloads import (
    DownloadEvent,
    DownloadRepository,
    ProfileRepository,
    WallpaperRepository,
    write_download_event,
)
from app.schemas.enums import PlanType, Resolution

pytestmark = pytest.mark.anyio

USER = "7d8f0a3e-1b2c-4d5e-8f90-a1b2c3d4e5f6"
NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


async def _wallpaper(db, **kw) -> Wallpaper:
    row = Wallpaper(title=kw.pop("title", "Aurora"), **kw)
    db.add(row)
    await db.commit()
    await db.refresh(row)
    return row


async def _download(db, wallpaper_id: int, at: datetime, user_id: str = USER) -> None:
    db.add(Download(user_id=uuid.UUID(user_id), wallpaper_id=wallpaper_id, resolution="standard", created_at=at))
    await db.commit()


# ─────────────────────────────────────────────────────────────
# Profiles
# ─────────────────────────────────────────────────────────────

async def test_missing_profile_is_free_and_not_admin(db_session):
    repo = ProfileRepository(db_session)
    ent = await repo.get_entitlement(USER)
    assert ent.plan_type is PlanType.FREE
    assert ent.premium_expires_at is None
    assert await repo.is_admin(USER) is False


async def test_premium_admin_profile(db_session):
    expires = NOW + timedelta(days=30)
    db_session.add(
        Profile(user_id=uuid.UUID(USER), plan_type="premium", premium_expires_at=expires, is_admin=True)
    )
    await db_session.commit()

    repo = ProfileRepository(db_session)
    ent = await repo.get_entitlement(USER)
    assert ent.plan_type is PlanType.PREMIUM
    assert ent.premium_expires_at == expires
    assert await repo.is_admin(USER) is True


# ─────────────────────────────────────────────────────────────
# Wallpapers
# ─────────────────────────────────────────────────────────────

async def test_wallpaper_get_maps_row_and_missing_is_none(db_session):
    row = await _wallpaper(
        db_session,
        title="Nebula",
        is_premium=True,
        download_url="https://cdn.example/o.jpg",
        resolution_4k="https://cdn.example/4k.jpg",
    )
    repo = WallpaperRepository(db_session)

    resource = await repo.get(row.id)
    assert resource.title == "Nebula"
    assert resource.is_premium is True
    assert resource.source_for(Resolution.HIGH) == "https://cdn.example/4k.jpg"
    assert await repo.get(row.id + 1000) is None


# ─────────────────────────────────────────────────────────────
# Download events
# ─────────────────────────────────────────────────────────────

async def test_count_since_covers_window_including_boundary(db_session):
    wp = await _wallpaper(db_session)
    since = NOW - timedelta(hours=1)
    await _download(db_session, wp.id, since - timedelta(seconds=1))  # outside
    await _download(db_session, wp.id, since)                         # boundary counts
    await _download(db_session, wp.id, NOW - timedelta(minutes=5))
    await _download(db_session, wp.id, NOW, user_id=str(uuid.uuid4()))  # other user

    assert await DownloadRepository(db_session).count_since(USER, since) == 2


async def test_write_event_inserts_row_and_bumps_counter(db_session, db_transactions):
    wp = await _wallpaper(db_session)
    event = DownloadEvent(
        user_id=USER,
        resource_id=wp.id,
        resolution=Resolution.HIGH,
        ip_address="203.0.113.7",
        user_agent="u" * 2000,
        occurred_at=NOW,
    )

    await write_download_event(event)
    await write_download_event(event)

    async with db_transactions() as s:
        count = (await s.execute(select(Wallpaper.download_count).where(Wallpaper.id == wp.id))).scalar_one()
        rows = (await s.execute(select(Download).where(Download.wallpaper_id == wp.id))).scalars().all()
    assert count == 2
    assert len(rows) == 2
    assert rows[0].resolution == "high"
    assert rows[0].created_at == NOW
    assert len(rows[0].user_agent) == 1024


async def test_write_event_for_missing_wallpaper_leaves_nothing_behind(db_session, db_transactions):
    event = DownloadEvent(user_id=USER, resource_id=424242, resolution=Resolution.STANDARD, occurred_at=NOW)

    with pytest.raises(IntegrityError):
        await write_download_event(event)

    async with db_transactions() as s:
        assert (await s.execute(select(func.count()).select_from(Download))).scalar_one() == 0
