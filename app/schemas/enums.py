from __future__ import annotations

"""
Central enum definitions.

• All enums subclass `str, PyEnum` for JSON-friendly serialization.
• VALUE STRINGS are **stable** once deployed (stored in `downloads.resolution`).
"""

from enum import Enum as PyEnum
from typing import Optional


class PlanType(str, PyEnum):
    FREE = "free"
    PREMIUM = "premium"


class Resolution(str, PyEnum):
    """Download quality tier. Anything above STANDARD is premium-gated."""
    STANDARD = "standard"
    HIGH = "high"
    ULTRA = "ultra"

    @property
    def is_premium(self) -> bool:
        return self is not Resolution.STANDARD

    @property
    def label(self) -> str:
        """Marketing label used in user-facing messages."""
        return _LABELS[self]

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Resolution"]:
        """Accept canonical names and the web client's legacy labels; None if unknown."""
        if value is None:
            return None
        key = str(value).strip().lower()
        if key in _ALIASES:
            return _ALIASES[key]
        try:
            return cls(key)
        except ValueError:
            return None


_LABELS = {
    Resolution.STANDARD: "1080p",
    Resolution.HIGH: "4K",
    Resolution.ULTRA: "8K",
}

_ALIASES = {
    "1080p": Resolution.STANDARD,
    "4k": Resolution.HIGH,
    "8k": Resolution.ULTRA,
}


__all__ = ["PlanType", "Resolution"]
