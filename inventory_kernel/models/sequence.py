"""
Module: inventory_kernel.models.sequence
Responsibility: Named counter rows backing SequenceService.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - One row per sequence name; current_value only grows, and only under a
      row lock (see services/sequence_service.py).
"""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row represents a named sequence with its current value.
    Row-level locking ensures monotonicity under concurrency.
    """

    __tablename__ = "sequence_counters"

    # Sequence name (e.g., "stock_transaction")
    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
    )

    current_value: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )


__all__ = ["SequenceCounter"]
