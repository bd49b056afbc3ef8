"""
Module: inventory_kernel.db.base
Responsibility: Declarative base for every inventory table: uuid4 primary
    keys stored as text, exact quantity columns, and the TrackedBase audit
    columns used by catalog rows.
Architecture position: Kernel > DB.  Lowest import target in the kernel;
    MUST NOT import from models/, services/, selectors/, domain/, or outer
    layers.

Invariants enforced:
    - Every row has a uuid4 ``id``; ids are generated client-side, so a
      booking knows its row ids before the flush.
    - ``Mapped[Decimal]`` always becomes QuantityType.  Floats never reach
      a quantity column.
    - Catalog rows record who created and last changed them.  Journal rows
      do not use TrackedBase: they carry their own ``user_id`` and
      ``created_at`` and are never updated.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import Date, DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from inventory_kernel.db.types import QuantityType


class UUIDString(TypeDecorator):
    """UUID stored as its 36-character text form (same on PostgreSQL and SQLite)."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        Decimal: QuantityType(),
        datetime: DateTime(timezone=True),
        date: Date,
        UUID: UUIDString(),
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """Abstract base adding created/updated timestamps and actor ids."""

    __abstract__ = True

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

    # The acting user; users live outside the inventory store
    created_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    updated_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
