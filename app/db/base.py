# app/db/base.py
"""
SQLAlchemy Base registry
========================

Import all ORM models so their tables are registered on `Base.metadata`
(Alembic autogeneration reads it from here).

Keep this file import-only; no runtime logic.
"""

from app.db.base_class import Base

from app.db.models.profile import Profile
from app.db.models.wallpaper import Wallpaper
from app.db.models.download import Download
from app.db.models.rate_limit_config import RateLimitConfig
from app.db.models.admin_audit_log import AdminAuditLog

__all__ = ["Base", "Profile", "Wallpaper", "Download", "RateLimitConfig", "AdminAuditLog"]
