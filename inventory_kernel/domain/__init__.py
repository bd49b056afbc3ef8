"""
Pure domain layer.

Immutable DTOs, quantity rules and the injectable clock.  No sessions, no
database access, no I/O (except SystemClock).
"""

from inventory_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SystemClock,
)
from inventory_kernel.domain.dtos import (
    BalanceDiscrepancy,
    BookingLine,
    BookingRequest,
    DateRange,
    LocationStock,
    LowStockAlert,
    ProjectInfo,
    ReversalBatch,
    Shortfall,
    TransactionBatch,
    TransactionEntry,
    TransactionFilter,
    TransactionView,
)
from inventory_kernel.domain.quantities import sum_lines, validate_positive_quantity

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "BalanceDiscrepancy",
    "BookingLine",
    "BookingRequest",
    "DateRange",
    "LocationStock",
    "LowStockAlert",
    "ProjectInfo",
    "ReversalBatch",
    "Shortfall",
    "TransactionBatch",
    "TransactionEntry",
    "TransactionFilter",
    "TransactionView",
    "sum_lines",
    "validate_positive_quantity",
]
