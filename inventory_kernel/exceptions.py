"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A booking screen has to tell the user *which* product ran short at *which*
location, and by how much. Parsing that out of an error message is fragile,
so every error here:
  1. Has its own class (catch by type, not by message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (not just a message string)

Example:
    try:
        engine.book(project_id, actor_id, lines)
    except InsufficientStockError as e:
        for s in e.shortfalls:
            show(f"{s.product_name} @ {s.location_name}: "
                 f"{s.available} available, {s.requested} requested")

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- NotFoundError
    |   +-- ProductNotFoundError
    |   +-- LocationNotFoundError
    |   +-- ProjectNotFoundError
    |   +-- TransactionNotFoundError
    |   +-- InactiveReferenceError
    |
    +-- ValidationError
    |
    +-- InsufficientStockError
    |
    +-- ImportRowError
    |
    +-- ConcurrencyConflictError
    |
    +-- ReversalError
    |   +-- TransactionAlreadyReversedError
    |
    +-- ImmutabilityViolationError
    |
    +-- DuplicateReferenceError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                      | When Raised
--------------------------|-----------------------------------------------------
PRODUCT_NOT_FOUND         | Unknown product id / SKU / EAN
LOCATION_NOT_FOUND        | Unknown location id / name
PROJECT_NOT_FOUND         | Unknown project id
TRANSACTION_NOT_FOUND     | Unknown journal entry id (delete)
INACTIVE_REFERENCE        | Product or location is soft-disabled
VALIDATION_ERROR          | Empty lines, zero/negative quantity, missing project
INSUFFICIENT_STOCK        | One or more lines exceed the on-hand balance
IMPORT_ROW_ERROR          | A single import row could not be used
CONCURRENCY_CONFLICT      | Store-level lock failure; retry the whole call
TRANSACTION_ALREADY_REVERSED | Entry was already deleted (reversed)
IMMUTABILITY_VIOLATION    | UPDATE/DELETE attempted on a journal row
DUPLICATE_REFERENCE       | SKU / EAN / location name already in use

===============================================================================
HANDLING PATTERNS
===============================================================================

- NotFoundError / ValidationError: surface to the caller, nothing was written.
- InsufficientStockError: show every shortfall, let the user adjust quantities
  or pick another location.
- ConcurrencyConflictError: retry the whole booking once; never merge.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from inventory_kernel.domain.dtos import Shortfall


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


# Not-found exceptions


class NotFoundError(InventoryKernelError):
    """Base exception for unknown references."""

    code: str = "NOT_FOUND"


class ProductNotFoundError(NotFoundError):
    """Product with the given id, SKU or EAN does not exist."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, reference: str, field: str = "id"):
        self.reference = reference
        self.field = field
        super().__init__(f"Product not found: {field}={reference}")


class LocationNotFoundError(NotFoundError):
    """Location with the given id or name does not exist."""

    code: str = "LOCATION_NOT_FOUND"

    def __init__(self, reference: str, field: str = "id"):
        self.reference = reference
        self.field = field
        super().__init__(f"Location not found: {field}={reference}")


class ProjectNotFoundError(NotFoundError):
    """Project is unknown to the project directory."""

    code: str = "PROJECT_NOT_FOUND"

    def __init__(self, reference: str, field: str = "id"):
        self.reference = reference
        self.field = field
        super().__init__(f"Project not found: {field}={reference}")


class TransactionNotFoundError(NotFoundError):
    """Journal entry with the given id does not exist."""

    code: str = "TRANSACTION_NOT_FOUND"

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Stock transaction not found: {transaction_id}")


class InactiveReferenceError(NotFoundError):
    """
    Product or location exists but is soft-disabled.

    Disabled catalog entries stay in place for the audit trail but can no
    longer be booked against.
    """

    code: str = "INACTIVE_REFERENCE"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} {entity_id} is inactive")


# Validation


class ValidationError(InventoryKernelError):
    """Request is malformed; rejected before touching the store."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.message = message
        self.field = field
        super().__init__(message)


# Stock


class InsufficientStockError(InventoryKernelError):
    """
    One or more lines request more than the on-hand balance.

    Carries every failing (product, location) pair, not just the first one.
    None of the lines of the request were applied.
    """

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, shortfalls: Sequence[Shortfall]):
        self.shortfalls = tuple(shortfalls)
        parts = [
            f"{s.product_name or s.product_id} @ {s.location_name or s.location_id}: "
            f"available {s.available}, requested {s.requested}"
            for s in self.shortfalls
        ]
        super().__init__("Insufficient stock: " + "; ".join(parts))

    @property
    def total_missing(self) -> Decimal:
        return sum((s.missing for s in self.shortfalls), Decimal("0"))


# Import


class ImportRowError(InventoryKernelError):
    """A single import row could not be turned into a booking line."""

    code: str = "IMPORT_ROW_ERROR"

    def __init__(self, row_number: int, reason: str, reason_code: str = "INVALID_ROW"):
        self.row_number = row_number
        self.reason = reason
        self.reason_code = reason_code
        super().__init__(f"Row {row_number}: {reason}")


# Concurrency


class ConcurrencyConflictError(InventoryKernelError):
    """
    The store detected a concurrent writer (deadlock, serialization failure,
    lock timeout). Nothing was committed; retry the whole call.
    """

    code: str = "CONCURRENCY_CONFLICT"

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        super().__init__(
            f"Concurrent modification during {operation}"
            + (f": {detail}" if detail else "")
        )


# Reversal


class ReversalError(InventoryKernelError):
    """Base exception for reversal (delete) errors."""

    code: str = "REVERSAL_ERROR"


class TransactionAlreadyReversedError(ReversalError):
    """Entry was already reversed, or is itself a compensating entry."""

    code: str = "TRANSACTION_ALREADY_REVERSED"

    def __init__(self, transaction_id: str, reason: str = "already reversed"):
        self.transaction_id = transaction_id
        self.reason = reason
        super().__init__(f"Cannot reverse stock transaction {transaction_id}: {reason}")


# Immutability


class ImmutabilityViolationError(InventoryKernelError):
    """Attempted to modify or delete a journal row."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Catalog


class DuplicateReferenceError(InventoryKernelError):
    """A unique catalog reference (SKU, EAN, location name) is already in use."""

    code: str = "DUPLICATE_REFERENCE"

    def __init__(self, entity_type: str, field: str, value: str):
        self.entity_type = entity_type
        self.field = field
        self.value = value
        super().__init__(f"{entity_type} with {field}={value!r} already exists")
