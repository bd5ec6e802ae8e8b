from __future__ import annotations

"""
🖼️ Wallpapers - downloadable resources
======================================

Only the columns the download path reads are mapped here; the catalog owns
the rest of the row.

Source locations
----------------
`download_url` is the original upload; `resolution_1080p`, `resolution_4k`
and `resolution_8k` are optional pre-rendered variants. `download_count` is
only ever changed through an atomic `download_count + 1` update.
"""

from sqlalchemy import BigInteger, Boolean, CheckConstraint, Column, String, Text, text

from app.db.base_class import Base, PKMixin, TimestampMixin


class Wallpaper(PKMixin, TimestampMixin, Base):
    __tablename__ = "wallpapers"

    title = Column(String(255), nullable=False)
    is_premium = Column(Boolean, nullable=False, server_default=text("false"), index=True)

    download_url = Column(Text, nullable=True)
    resolution_1080p = Column(Text, nullable=True)
    resolution_4k = Column(Text, nullable=True)
    resolution_8k = Column(Text, nullable=True)

    download_count = Column(BigInteger, nullable=False, server_default=text("0"))

    __table_args__ = (
        CheckConstraint("download_count >= 0", name="download_count_non_negative"),
    )
