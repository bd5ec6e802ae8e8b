from __future__ import annotations

"""
Rate-limit setting diagnostics for the admin console.

`evaluate_setting` measures the calling admin's own download activity in the
current window against a stored setting and records the check in the admin
audit log. It never changes quota state.
"""

from datetime import datetime

from loguru import logger

from app.schemas.rate_limits import RateLimitTestResult
from app.services.download_limiter import DownloadLimiter

UNLIMITED = -1


async def evaluate_setting(
    config,
    *,
    admin_user_id: str,
    limiter: DownloadLimiter,
    audit,
    now: datetime,
) -> RateLimitTestResult:
    """Evaluate `config` (a `RateLimitConfig`-shaped object) for `admin_user_id`."""
    limit = int(config.setting_value)
    is_active = bool(config.is_active)
    enforced = is_active and limit != UNLIMITED

    count, _, remaining = await limiter.usage(admin_user_id, now, limit=max(limit, 0))
    within = (not enforced) or count < limit

    if not is_active:
        status = "DISABLED - Setting inactive"
    elif not enforced:
        status = "DISABLED - Unlimited access"
    else:
        status = "ACTIVE - Within limit" if within else "ACTIVE - Would block"

    result = RateLimitTestResult(
        setting_name=config.setting_name,
        setting_value=limit,
        current_limit="Unlimited" if limit == UNLIMITED else f"{limit} per {limiter.window_label}",
        is_active=is_active,
        is_enforced=enforced,
        current_usage=count,
        remaining=remaining if enforced else None,
        is_within_limit=within,
        enforcement_status=status,
        window_seconds=limiter.window_seconds,
        tested_at=now,
    )

    await audit.add(
        admin_user_id=admin_user_id,
        action="rate_limit_test",
        resource_type="rate_limit_config",
        resource_id=config.setting_name,
        details={
            "setting_name": config.setting_name,
            "current_usage": count,
            "limit": limit,
            "is_within_limit": within,
            "test_timestamp": now.isoformat(),
        },
    )
    logger.info("Rate limit setting tested | setting={} | admin={} | status={}", config.setting_name, admin_user_id, status)
    return result


__all__ = ["evaluate_setting", "UNLIMITED"]
