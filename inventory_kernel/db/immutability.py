"""
ORM-Level Immutability Enforcement for the stock journal.

===============================================================================
WHY THIS EXISTS
===============================================================================

The stock journal is the source of truth for every balance.  If a journal row
could be edited or removed in place, the materialized StockBalance would no
longer equal the sum of the journal and nobody could tell why.  Corrections
are therefore always new rows (compensating entries written by
ReversalService), never UPDATE or DELETE.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events:

    session.flush()
         |
         v
    [before_update] --> _check_transaction_immutability() --> ImmutabilityViolationError
         |
    [before_delete] --> _check_transaction_delete() --------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity              | When Immutable        | Why
--------------------|-----------------------|--------------------------------------
StockTransaction    | ALWAYS (from insert)  | Journal rows are the audit trail
Product / Location  | never deleted         | Referenced by journal rows; use
                    | (soft-disable only)   | is_active=False instead

Bulk ``update()``/``delete()`` statements bypass ORM events; kernel code never
issues them against the journal.
"""

from sqlalchemy import event

from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.models.catalog import Location, Product
from inventory_kernel.models.stock import StockTransaction

_registered = False


def _check_transaction_immutability(mapper, connection, target):
    raise ImmutabilityViolationError(
        entity_type="StockTransaction",
        entity_id=str(target.id),
        reason="journal rows cannot be modified; write a compensating entry",
    )


def _check_transaction_delete(mapper, connection, target):
    raise ImmutabilityViolationError(
        entity_type="StockTransaction",
        entity_id=str(target.id),
        reason="journal rows cannot be deleted; use ReversalService.delete()",
    )


def _check_catalog_delete(mapper, connection, target):
    raise ImmutabilityViolationError(
        entity_type=type(target).__name__,
        entity_id=str(target.id),
        reason="catalog entries are soft-disabled (is_active=False), never deleted",
    )


def register_immutability_listeners() -> None:
    """Register all ORM immutability listeners (idempotent)."""
    global _registered
    if _registered:
        return
    event.listen(StockTransaction, "before_update", _check_transaction_immutability)
    event.listen(StockTransaction, "before_delete", _check_transaction_delete)
    event.listen(Product, "before_delete", _check_catalog_delete)
    event.listen(Location, "before_delete", _check_catalog_delete)
    _registered = True


def unregister_immutability_listeners() -> None:
    """Remove all ORM immutability listeners. FOR TESTING ONLY."""
    global _registered
    if not _registered:
        return
    event.remove(StockTransaction, "before_update", _check_transaction_immutability)
    event.remove(StockTransaction, "before_delete", _check_transaction_delete)
    event.remove(Product, "before_delete", _check_catalog_delete)
    event.remove(Location, "before_delete", _check_catalog_delete)
    _registered = False
