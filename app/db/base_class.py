# app/db/base_class.py
from __future__ import annotations

"""
SQLAlchemy Base & Mixins

SQLAlchemy 2.0 declarative **Base** with:
- Global **naming conventions** (Alembic-friendly)
- Automatic **snake_case `__tablename__`** (models may override)
- `PKMixin` - BIGINT surrogate primary key
- `TimestampMixin` - `created_at` / `updated_at` (UTC, server-side)
"""

from datetime import datetime
import re

from sqlalchemy import BigInteger, DateTime, MetaData, func
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def _to_snake(name: str) -> str:
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


class Base(DeclarativeBase):
    """Global declarative base."""
    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    @declared_attr.directive
    def __tablename__(cls) -> str:  # type: ignore[override]
        return _to_snake(cls.__name__)

    def __repr__(self) -> str:  # pragma: no cover
        key = getattr(self, "id", None)
        return f"{self.__class__.__name__}(id={key!r})"


class PKMixin:
    """Surrogate BIGINT primary key (auto-increment)."""
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)


class TimestampMixin:
    """`created_at` set once at insert; `updated_at` refreshed on change."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


__all__ = ["Base", "PKMixin", "TimestampMixin", "NAMING_CONVENTION"]
