from __future__ import annotations

"""Admin-editable rate-limit settings (`setting_value = -1` means unlimited)."""

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, String, Text, text

from app.db.base_class import Base, PKMixin, TimestampMixin


class RateLimitConfig(PKMixin, TimestampMixin, Base):
    __tablename__ = "rate_limit_config"

    setting_name = Column(String(100), nullable=False, unique=True)
    setting_value = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, server_default=text("true"))

    __table_args__ = (
        CheckConstraint("setting_value >= -1", name="value_range"),
        CheckConstraint("length(btrim(setting_name)) > 0", name="name_not_blank"),
    )
