from __future__ import annotations

"""
Download entitlement gate
=========================

Pure decision logic; no I/O and no side effects.

A caller is *entitled* when their plan is premium and the premium period has
not lapsed (a NULL expiry never lapses). Non-entitled callers may only fetch
non-premium wallpapers at standard resolution.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from app.core.exceptions import EntitlementRequired
from app.schemas.enums import PlanType, Resolution


@dataclass(frozen=True)
class Entitlement:
    plan_type: PlanType = PlanType.FREE
    premium_expires_at: Optional[datetime] = None

    def is_entitled(self, now: datetime) -> bool:
        if self.plan_type != PlanType.PREMIUM:
            return False
        return self.premium_expires_at is None or self.premium_expires_at > now

    @classmethod
    def free(cls) -> "Entitlement":
        return cls()


def check_download_entitlement(
    entitlement: Entitlement,
    resource_is_premium: bool,
    resolution: Resolution,
    now: datetime,
) -> None:
    """Raise `EntitlementRequired` when the caller may not fetch this variant.

    The resource check runs before the resolution check, so a premium
    wallpaper is reported as such even when a premium tier was also asked for.
    """
    if entitlement.is_entitled(now):
        return
    if resource_is_premium:
        raise EntitlementRequired(
            "Premium subscription required for this wallpaper",
            constraint="resource",
        )
    if resolution.is_premium:
        raise EntitlementRequired(
            f"Premium subscription required for {resolution.label} downloads",
            constraint="resolution",
        )


__all__ = ["Entitlement", "check_download_entitlement"]
