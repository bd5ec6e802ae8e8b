from __future__ import annotations

"""Admin-side repositories: rate-limit settings and the admin audit log."""

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.admin_audit_log import AdminAuditLog
from app.db.models.rate_limit_config import RateLimitConfig


class DuplicateSetting(Exception):
    pass


class RateLimitConfigRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self) -> List[RateLimitConfig]:
        result = await self.db.execute(select(RateLimitConfig).order_by(RateLimitConfig.setting_name))
        return list(result.scalars().all())

    async def get(self, setting_name: str) -> Optional[RateLimitConfig]:
        result = await self.db.execute(
            select(RateLimitConfig).where(RateLimitConfig.setting_name == setting_name)
        )
        return result.scalars().first()

    async def create(
        self,
        *,
        setting_name: str,
        setting_value: int,
        description: Optional[str] = None,
        is_active: bool = True,
    ) -> RateLimitConfig:
        row = RateLimitConfig(
            setting_name=setting_name,
            setting_value=setting_value,
            description=description,
            is_active=is_active,
        )
        self.db.add(row)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateSetting(setting_name) from e
        await self.db.refresh(row)
        return row

    async def update(self, setting_name: str, changes: Dict[str, Any]) -> Optional[RateLimitConfig]:
        row = await self.get(setting_name)
        if row is None:
            return None
        for key, value in changes.items():
            setattr(row, key, value)
        await self.db.commit()
        await self.db.refresh(row)
        return row


class AdminAuditRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(
        self,
        *,
        admin_user_id: str,
        action: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.db.add(
            AdminAuditLog(
                admin_user_id=UUID(str(admin_user_id)),
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                details=details,
            )
        )
        await self.db.commit()


__all__ = ["DuplicateSetting", "RateLimitConfigRepository", "AdminAuditRepository"]
