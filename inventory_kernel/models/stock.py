"""
Module: inventory_kernel.models.stock
Responsibility: ORM persistence for the append-only stock journal
    (StockTransaction) and its materialized per-pair cache (StockBalance).
Architecture position: Kernel > Models.  May import from db/ only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Journal rows are immutable after insert (ORM listeners in
      db/immutability.py reject UPDATE and DELETE).
    - quantity is signed: positive for ``in``, negative for ``out``; never 0.
    - seq is unique and strictly increasing in commit order (allocated from
      the locked sequence counter).
    - A journal row is reversed at most once (uq_stock_transaction_reversal).
    - One StockBalance row per (product, location) (uq_stock_balance_pair);
      its quantity equals the sum of the journal for that pair and is never
      negative (conditional decrement in StockJournal + CHECK constraint).

Failure modes:
    - IntegrityError on duplicate seq, duplicate reversal, duplicate balance
      pair, or a balance going below zero.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import Base, UUIDString
from inventory_kernel.models.catalog import Location, Product


class TransactionType(str, Enum):
    """Direction of a stock movement."""

    IN = "in"
    OUT = "out"

    @property
    def sign(self) -> int:
        return 1 if self is TransactionType.IN else -1

    @property
    def opposite(self) -> "TransactionType":
        return TransactionType.OUT if self is TransactionType.IN else TransactionType.IN


class StockTransaction(Base):
    """
    One immutable journal row: a signed quantity change of one product at
    one location.

    Entries written by the same booking or append call share batch_id.
    Compensating entries (deletes) point at the row they cancel through
    reversal_of_id.
    """

    __tablename__ = "stock_transactions"

    __table_args__ = (
        UniqueConstraint("seq", name="uq_stock_transaction_seq"),
        UniqueConstraint("reversal_of_id", name="uq_stock_transaction_reversal"),
        CheckConstraint("quantity <> 0", name="chk_stock_transaction_nonzero"),
        Index("idx_stock_tx_pair", "product_id", "location_id"),
        Index("idx_stock_tx_created", "created_at"),
        Index("idx_stock_tx_effective", "effective_date"),
        Index("idx_stock_tx_project", "project_id"),
        Index("idx_stock_tx_batch", "batch_id"),
    )

    # Monotonic journal sequence (commit ordering)
    seq: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # Set from the injected clock, never server_default
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Business date of the movement; import rows carry their own
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    location_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("locations.id"),
        nullable=False,
    )

    # Owned by the Projects collaborator; no FK so the directory can be external
    project_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    # Actor
    user_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    transaction_type: Mapped[str] = mapped_column(String(3), nullable=False)

    # Signed: negative for out
    quantity: Mapped[Decimal] = mapped_column(nullable=False)

    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    batch_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    reversal_of_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("stock_transactions.id"),
        nullable=True,
    )

    product: Mapped[Product] = relationship(lazy="joined", innerjoin=True)
    location: Mapped[Location] = relationship(lazy="joined", innerjoin=True)

    @property
    def type(self) -> TransactionType:
        return TransactionType(self.transaction_type)

    @property
    def is_reversal(self) -> bool:
        return self.reversal_of_id is not None

    def __repr__(self) -> str:
        return (
            f"<StockTransaction #{self.seq} {self.transaction_type} "
            f"{self.quantity} product={self.product_id} location={self.location_id}>"
        )


class StockBalance(Base):
    """
    Materialized on-hand quantity of one product at one location.

    Written only by StockJournal, in the same transaction as the journal
    rows that explain the change.
    """

    __tablename__ = "stock_balances"

    __table_args__ = (
        UniqueConstraint("product_id", "location_id", name="uq_stock_balance_pair"),
        CheckConstraint("quantity >= 0", name="chk_stock_balance_non_negative"),
        Index("idx_stock_balance_location", "location_id"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    location_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("locations.id"),
        nullable=False,
    )

    quantity: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<StockBalance product={self.product_id} location={self.location_id}: {self.quantity}>"


__all__ = ["TransactionType", "StockTransaction", "StockBalance"]
