"""Services for the inventory kernel (write side)."""

from inventory_kernel.services.booking_service import BookingService
from inventory_kernel.services.catalog_service import CatalogService
from inventory_kernel.services.project_directory import (
    InMemoryProjectDirectory,
    ProjectDirectory,
    SqlProjectDirectory,
)
from inventory_kernel.services.reversal_service import ReversalService
from inventory_kernel.services.sequence_service import SequenceService
from inventory_kernel.services.stock_journal import StockJournal

__all__ = [
    "BookingService",
    "CatalogService",
    "InMemoryProjectDirectory",
    "ProjectDirectory",
    "ReversalService",
    "SequenceService",
    "SqlProjectDirectory",
    "StockJournal",
]
