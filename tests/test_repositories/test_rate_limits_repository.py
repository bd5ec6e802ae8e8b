# tests/test_repositories/test_rate_limits_repository.py

import uuid

import pytest
from sqlalchemy import select

from app.db.models.admin_audit_log import AdminAuditLog
from app.repositories.rate_limits import AdminAuditRepository, DuplicateSetting, RateLimitConfigRepository

pytestmark = pytest.mark.anyio


async def test_create_list_and_update(db_session):
    repo = RateLimitConfigRepository(db_session)
    await repo.create(setting_name="free_downloads_per_hour", setting_value=10, description="Free tier")
    await repo.create(setting_name="bulk_exports_per_hour", setting_value=-1, is_active=False)

    assert [r.setting_name for r in await repo.list()] == ["bulk_exports_per_hour", "free_downloads_per_hour"]

    row = await repo.update("free_downloads_per_hour", {"setting_value": 20})
    assert row.setting_value == 20
    assert row.description == "Free tier"
    assert await repo.update("missing", {"setting_value": 1}) is None
    assert await repo.get("missing") is None


async def test_duplicate_setting_raises_and_session_stays_usable(db_session):
    repo = RateLimitConfigRepository(db_session)
    await repo.create(setting_name="free_downloads_per_hour", setting_value=10)

    with pytest.raises(DuplicateSetting):
        await repo.create(setting_name="free_downloads_per_hour", setting_value=5)

    row = await repo.get("free_downloads_per_hour")
    assert row.setting_value == 10


async def test_audit_entry_is_persisted(db_session):
    admin = str(uuid.uuid4())
    await AdminAuditRepository(db_session).add(
        admin_user_id=admin,
        action="rate_limit_test",
        resource_type="rate_limit_config",
        resource_id="free_downloads_per_hour",
        details={"current_usage": 3},
    )

    entry = (await db_session.execute(select(AdminAuditLog))).scalars().one()
    assert str(entry.admin_user_id) == admin
    assert entry.details == {"current_usage": 3}
