from app.db.models.profile import Profile
from app.db.models.wallpaper import Wallpaper
from app.db.models.download import Download
from app.db.models.rate_limit_config import RateLimitConfig
from app.db.models.admin_audit_log import AdminAuditLog

__all__ = ["Profile", "Wallpaper", "Download", "RateLimitConfig", "AdminAuditLog"]
