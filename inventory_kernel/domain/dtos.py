"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that cross the service boundary:
    booking input (BookingLine, BookingRequest), journal input
    (TransactionEntry), journal output (TransactionBatch, TransactionView,
    ReversalBatch), query input (TransactionFilter, DateRange), and ledger
    read models (LocationStock, LowStockAlert, BalanceDiscrepancy,
    Shortfall, ProjectInfo).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Holds no ORM rows (only the TransactionType enum is shared with
    models/stock.py); services convert ORM rows to these DTOs before
    returning them, so callers never hold a session-bound object.

Invariants enforced:
    - Every DTO is a frozen dataclass.
    - Quantities are Decimal.  BookingLine.quantity is positive once
      validated by BookingService; TransactionEntry.quantity is signed.

Data flow:
    BookingRequest -> TransactionEntry* -> StockTransaction rows -> TransactionBatch
    TransactionFilter -> TransactionView* -> ExportRow*
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from inventory_kernel.db.types import ZERO
from inventory_kernel.models.stock import TransactionType


# Booking input


@dataclass(frozen=True)
class BookingLine:
    """One requested consumption: ``quantity`` of a product at a location."""

    product_id: UUID | None
    location_id: UUID | None
    quantity: Decimal

    @property
    def pair(self) -> tuple[UUID | None, UUID | None]:
        return (self.product_id, self.location_id)


@dataclass(frozen=True)
class BookingRequest:
    """
    A multi-line booking of stock against a project.

    effective_date defaults to the clock's date when None; bulk import sets
    it from the row.
    """

    project_id: UUID | None
    actor_id: UUID
    lines: tuple[BookingLine, ...]
    notes: str | None = None
    effective_date: date | None = None

    def __post_init__(self) -> None:
        # Accept any sequence, store a tuple
        if not isinstance(self.lines, tuple):
            object.__setattr__(self, "lines", tuple(self.lines))


# Journal input / output


@dataclass(frozen=True)
class TransactionEntry:
    """
    A journal row about to be written.

    quantity is signed and its sign must agree with transaction_type.
    """

    product_id: UUID
    location_id: UUID
    transaction_type: TransactionType
    quantity: Decimal
    user_id: UUID
    project_id: UUID | None = None
    notes: str | None = None
    effective_date: date | None = None
    reversal_of_id: UUID | None = None

    @classmethod
    def stock_in(
        cls,
        product_id: UUID,
        location_id: UUID,
        quantity: Decimal,
        user_id: UUID,
        **kwargs,
    ) -> TransactionEntry:
        return cls(
            product_id=product_id,
            location_id=location_id,
            transaction_type=TransactionType.IN,
            quantity=abs(quantity),
            user_id=user_id,
            **kwargs,
        )

    @classmethod
    def stock_out(
        cls,
        product_id: UUID,
        location_id: UUID,
        quantity: Decimal,
        user_id: UUID,
        **kwargs,
    ) -> TransactionEntry:
        return cls(
            product_id=product_id,
            location_id=location_id,
            transaction_type=TransactionType.OUT,
            quantity=-abs(quantity),
            user_id=user_id,
            **kwargs,
        )


@dataclass(frozen=True)
class TransactionBatch:
    """Result of a successful booking or append: the rows that were written."""

    batch_id: UUID
    transaction_ids: tuple[UUID, ...]
    created_at: datetime
    effective_date: date
    project_id: UUID | None = None

    def __len__(self) -> int:
        return len(self.transaction_ids)


@dataclass(frozen=True)
class ReversalBatch:
    """Result of deleting journal rows: one compensating row per original."""

    batch_id: UUID
    reversed_ids: tuple[UUID, ...]
    compensating_ids: tuple[UUID, ...]
    reason: str


@dataclass(frozen=True)
class TransactionView:
    """
    Read model of one journal row, denormalized with display names.

    Used by journal queries, the reporting filter and the CSV export.
    """

    id: UUID
    seq: int
    created_at: datetime
    effective_date: date
    transaction_type: TransactionType
    quantity: Decimal
    product_id: UUID
    product_name: str
    product_sku: str
    product_category: str
    product_unit: str
    location_id: UUID
    location_name: str
    user_id: UUID
    batch_id: UUID
    project_id: UUID | None = None
    project_name: str | None = None
    project_number: str | None = None
    notes: str | None = None
    reversal_of_id: UUID | None = None
    is_reversed: bool = False

    @property
    def search_fields(self) -> tuple[str, ...]:
        """Values matched by free-text search."""
        return tuple(
            value
            for value in (
                self.project_name,
                self.project_number,
                self.product_name,
                self.product_sku,
                self.product_category,
                self.location_name,
                self.notes,
            )
            if value
        )

    def matches_text(self, search_text: str) -> bool:
        needle = search_text.strip().lower()
        if not needle:
            return True
        return any(needle in value.lower() for value in self.search_fields)


# Query input


@dataclass(frozen=True)
class DateRange:
    """Inclusive date range; either bound may be open."""

    start: date | None = None
    end: date | None = None

    def __post_init__(self) -> None:
        if self.start and self.end and self.start > self.end:
            raise ValueError(f"DateRange start {self.start} is after end {self.end}")

    def contains(self, value: date | datetime) -> bool:
        if isinstance(value, datetime):
            value = value.date()
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True


@dataclass(frozen=True)
class TransactionFilter:
    """Criteria for JournalSelector.query(); all criteria are AND-ed."""

    date_range: DateRange | None = None
    product_id: UUID | None = None
    location_id: UUID | None = None
    project_id: UUID | None = None
    user_id: UUID | None = None
    transaction_type: TransactionType | None = None
    search_text: str | None = None
    include_reversed: bool = False
    limit: int | None = None


# Ledger read models


@dataclass(frozen=True)
class Shortfall:
    """One (product, location) pair that could not cover the request."""

    product_id: UUID
    location_id: UUID
    available: Decimal
    requested: Decimal
    product_name: str | None = None
    location_name: str | None = None
    unit: str | None = None

    @property
    def missing(self) -> Decimal:
        return self.requested - self.available


@dataclass(frozen=True)
class LocationStock:
    """A product on hand at one location (stock browse row)."""

    product_id: UUID
    location_id: UUID
    sku: str
    name: str
    category: str
    unit: str
    quantity: Decimal
    minimum_stock: Decimal = ZERO
    location_name: str | None = None

    @property
    def is_low(self) -> bool:
        return self.quantity < self.minimum_stock


@dataclass(frozen=True)
class LowStockAlert:
    """A pair whose on-hand quantity is below the product's minimum_stock."""

    product_id: UUID
    location_id: UUID
    sku: str
    product_name: str
    location_name: str
    unit: str
    quantity: Decimal
    minimum_stock: Decimal

    @property
    def missing(self) -> Decimal:
        return self.minimum_stock - self.quantity


@dataclass(frozen=True)
class BalanceDiscrepancy:
    """Materialized balance disagrees with the journal sum for a pair."""

    product_id: UUID
    location_id: UUID
    materialized: Decimal
    journal: Decimal

    @property
    def difference(self) -> Decimal:
        return self.materialized - self.journal


# Collaborators


@dataclass(frozen=True)
class ProjectInfo:
    """What the inventory core knows about an externally owned project."""

    id: UUID
    name: str
    project_number: str | None = None
    is_active: bool = True

    @property
    def display_name(self) -> str:
        if self.project_number:
            return f"{self.name} (#{self.project_number})"
        return self.name


