"""Shared ORM building blocks: timestamp mixin and portable enum columns."""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def str_enum(enum_cls: type[enum.Enum], name: str) -> sa.Enum:
    """VARCHAR-backed enum column storing member *values* (e.g. ``"hr"``).

    Non-native so the same schema works on SQLite and PostgreSQL.
    """
    return sa.Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        validate_strings=True,
        values_callable=lambda members: [m.value for m in members],
    )


class TimestampMixin:
    """
    Add ``created_at`` / ``updated_at`` to any model via::

        class Department(Base, TimestampMixin):
            ...
    """

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utcnow,
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True), onupdate=utcnow,
    )
