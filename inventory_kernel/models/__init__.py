"""ORM models for the inventory kernel."""

from inventory_kernel.models.catalog import Location, LocationType, Product, ProjectRef
from inventory_kernel.models.sequence import SequenceCounter
from inventory_kernel.models.stock import StockBalance, StockTransaction, TransactionType

__all__ = [
    "Product",
    "Location",
    "LocationType",
    "ProjectRef",
    "SequenceCounter",
    "StockTransaction",
    "StockBalance",
    "TransactionType",
]
