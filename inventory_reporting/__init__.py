"""
inventory_reporting -- read-only projections of the stock journal.

filters.py narrows a stream of TransactionView by date range and search
text; export.py turns views into spreadsheet-friendly CSV rows.  Nothing
here touches the database.
"""

from inventory_reporting.export import (
    EXPORT_HEADERS,
    ExportRow,
    format_decimal,
    to_export_rows,
    write_export_csv,
)
from inventory_reporting.filters import filter_transactions

__all__ = [
    "EXPORT_HEADERS",
    "ExportRow",
    "filter_transactions",
    "format_decimal",
    "to_export_rows",
    "write_export_csv",
]
