from __future__ import annotations

"""
🧾 Admin audit log
==================

Immutable record of an administrator action (e.g. testing a rate-limit
setting). `details` is free-form JSONB context.
"""

from sqlalchemy import CheckConstraint, Column, DateTime, Index, String, func, text
from sqlalchemy.dialects.postgresql import JSONB, UUID

from app.db.base_class import Base, PKMixin


class AdminAuditLog(PKMixin, Base):
    __tablename__ = "admin_audit_log"

    admin_user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    action = Column(String(64), nullable=False)
    resource_type = Column(String(64), nullable=True)
    resource_id = Column(String(128), nullable=True)
    details = Column(JSONB, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint("length(btrim(action)) > 0", name="action_not_blank"),
        Index("ix_admin_audit_log_admin_ts_desc", "admin_user_id", text("created_at DESC")),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<AdminAuditLog admin={self.admin_user_id} action='{self.action}' resource={self.resource_id}>"
