from __future__ import annotations

"""
⬇️ Download events (append-only)
================================

One row per issued download grant. Rows are never updated or deleted; the
free-tier quota counts rows per user inside the rolling window, hence the
`(user_id, created_at DESC)` index.
"""

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Index, String, func, text
from sqlalchemy.dialects.postgresql import INET, UUID

from app.db.base_class import Base, PKMixin

USER_AGENT_MAX_LENGTH = 1024


class Download(PKMixin, Base):
    __tablename__ = "downloads"

    user_id = Column(UUID(as_uuid=True), nullable=False)
    wallpaper_id = Column(
        BigInteger,
        ForeignKey("wallpapers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    resolution = Column(String(16), nullable=False)
    ip_address = Column(INET, nullable=True)
    user_agent = Column(String(USER_AGENT_MAX_LENGTH), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        Index("ix_downloads_user_created_desc", "user_id", text("created_at DESC")),
    )
