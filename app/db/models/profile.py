from __future__ import annotations

"""
👤 Profiles - plan & role per platform user
===========================================

One row per auth-service user (`user_id` = token `sub`). Holds the plan tier
that drives download entitlement and the admin flag used by the admin API.

A user with no row is treated as free tier.
"""

import uuid

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String, func, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID

from app.db.base_class import Base


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        PG_UUID(as_uuid=True),
        unique=True,
        nullable=False,
        index=True,
        comment="Auth-service user id (token subject)",
    )
    email = Column(String(320), nullable=True)

    # ── Plan ─────────────────────────────────────────────────────────────────
    plan_type = Column(String(16), nullable=False, server_default=text("'free'"))
    premium_expires_at = Column(DateTime(timezone=True), nullable=True, comment="NULL = no expiry")

    is_admin = Column(Boolean, nullable=False, server_default=text("false"))

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint("plan_type IN ('free','premium')", name="plan_type"),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Profile user_id={self.user_id} plan={self.plan_type} admin={self.is_admin}>"
