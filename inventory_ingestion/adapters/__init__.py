"""Source adapters for bulk import (file I/O only, no DB)."""

from inventory_ingestion.adapters.base import SourceAdapter, SourceProbe
from inventory_ingestion.adapters.csv_adapter import CsvSourceAdapter

__all__ = [
    "SourceAdapter",
    "SourceProbe",
    "CsvSourceAdapter",
]
