# tests/fixtures/fakes.py

"""
In-memory stand-ins for the repositories and the Redis outbox.

Each fake mirrors the async surface the services call and records what it
was asked so tests can assert on it.
"""

from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Dict, List, Optional

from app.db.models.download import USER_AGENT_MAX_LENGTH
from app.repositories.downloads import Resource
from app.repositories.rate_limits import DuplicateSetting
from app.schemas.enums import PlanType
from app.services.entitlements import Entitlement


class FakeProfiles:
    def __init__(self, *, premium: Optional[Dict[str, Optional[datetime]]] = None, admins=()):
        # user_id -> premium_expires_at (None = no expiry)
        self.premium = dict(premium or {})
        self.admins = set(admins)

    async def get_entitlement(self, user_id: str) -> Entitlement:
        if user_id in self.premium:
            return Entitlement(plan_type=PlanType.PREMIUM, premium_expires_at=self.premium[user_id])
        return Entitlement.free()

    async def is_admin(self, user_id: str) -> bool:
        return user_id in self.admins


class FakeWallpapers:
    def __init__(self, *resources: Resource):
        self.rows = {r.id: r for r in resources}
        self.calls: List[int] = []

    async def get(self, resource_id: int) -> Optional[Resource]:
        self.calls.append(resource_id)
        return self.rows.get(resource_id)


class FakeDownloads:
    """Event store: `count_since` counts recorded events inside the window."""

    def __init__(self):
        self.events: Dict[str, List[datetime]] = {}

    def add(self, user_id: str, at: datetime, n: int = 1) -> None:
        self.events.setdefault(user_id, []).extend([at] * n)

    async def count_since(self, user_id: str, since: datetime) -> int:
        return sum(1 for t in self.events.get(user_id, []) if t >= since)


class FailingDownloads:
    async def count_since(self, user_id: str, since: datetime) -> int:
        raise ConnectionError("event store unreachable")


class FakeAudit:
    def __init__(self):
        self.entries: List[dict] = []

    async def add(self, **entry) -> None:
        self.entries.append(entry)


class FakeConfigs:
    def __init__(self, *rows):
        self.rows = {r.setting_name: r for r in rows}

    async def list(self):
        return [self.rows[k] for k in sorted(self.rows)]

    async def get(self, setting_name: str):
        return self.rows.get(setting_name)

    async def create(self, *, setting_name, setting_value, description=None, is_active=True):
        if setting_name in self.rows:
            raise DuplicateSetting(setting_name)
        row = config_row(setting_name, setting_value, description=description, is_active=is_active)
        self.rows[setting_name] = row
        return row

    async def update(self, setting_name: str, changes: dict):
        row = self.rows.get(setting_name)
        if row is None:
            return None
        for k, v in changes.items():
            setattr(row, k, v)
        return row


class FakeOutbox:
    def __init__(self, *, fail: bool = False):
        self.fail = fail
        self.items: List[dict] = []

    async def outbox_push(self, key: str, payload: dict) -> int:
        if self.fail:
            raise ConnectionError("redis down")
        self.items.append(payload)
        return len(self.items)

    async def outbox_pop_batch(self, key: str, limit: int = 100) -> List[dict]:
        batch, self.items = self.items[:limit], self.items[limit:]
        return batch


class RecordingWriter:
    """Event writer that fails the first `failures` calls.

    Like the `downloads.user_agent` column, it rejects a user agent longer
    than `max_user_agent`.
    """

    def __init__(self, failures: int = 0, *, max_user_agent: int = USER_AGENT_MAX_LENGTH):
        self.failures = failures
        self.max_user_agent = max_user_agent
        self.calls = 0
        self.written = []

    async def __call__(self, event) -> None:
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError("db unavailable")
        if event.user_agent and len(event.user_agent) > self.max_user_agent:
            raise ValueError("value too long for type character varying")
        self.written.append(event)


def config_row(setting_name: str, setting_value: int, *, description=None, is_active=True):
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    return SimpleNamespace(
        setting_name=setting_name,
        setting_value=setting_value,
        description=description,
        is_active=is_active,
        created_at=now,
        updated_at=now,
    )


def wallpaper(
    resource_id: int = 1,
    *,
    title: str = "Aurora",
    is_premium: bool = False,
    original: Optional[str] = "https://cdn.example/orig/1.jpg",
    r1080: Optional[str] = None,
    r4k: Optional[str] = None,
    r8k: Optional[str] = None,
) -> Resource:
    return Resource(
        id=resource_id,
        title=title,
        is_premium=is_premium,
        download_url=original,
        resolution_1080p=r1080,
        resolution_4k=r4k,
        resolution_8k=r8k,
    )
