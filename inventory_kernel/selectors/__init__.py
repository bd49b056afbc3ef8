"""Read-only query selectors for the inventory kernel."""

from inventory_kernel.selectors.base import BaseSelector
from inventory_kernel.selectors.journal_selector import JournalSelector, to_view
from inventory_kernel.selectors.stock_selector import StockLedgerSelector

__all__ = [
    "BaseSelector",
    "JournalSelector",
    "StockLedgerSelector",
    "to_view",
]
