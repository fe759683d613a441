"""
db/base.py

Declarative base and column mixins for the competitor inventory tables.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import DateTime, Numeric, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """
    Declarative base shared by every ORM model in `db.models`.

    Plain annotations map to timezone-aware timestamps, UUIDs and money columns.
    """

    type_annotation_map: dict[type, Any] = {
        datetime: DateTime(timezone=True),
        uuid.UUID: Uuid(as_uuid=True),
        Decimal: Numeric(12, 2),
    }


class UUIDPrimaryKeyMixin:
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)


class CreatedAtMixin:
    created_at: Mapped[datetime] = mapped_column(nullable=False, server_default=func.now())


class TimestampMixin(CreatedAtMixin):
    """
    Row bookkeeping columns; `updated_at` is refreshed by the ORM on every UPDATE.
    """

    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        onupdate=_utc_now,
    )
