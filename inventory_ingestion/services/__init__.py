"""Import services: bookings, stock and products from CSV."""

from inventory_ingestion.services.import_service import (
    DEFAULT_IMPORT_NOTE,
    BookingImportService,
    ProductImportService,
    StockImportService,
    check_header,
    read_csv_rows,
)
from inventory_ingestion.services.reference_resolver import ReferenceResolver, pick_unambiguous
from inventory_ingestion.services.templates import write_booking_template

__all__ = [
    "DEFAULT_IMPORT_NOTE",
    "BookingImportService",
    "ProductImportService",
    "StockImportService",
    "check_header",
    "ReferenceResolver",
    "pick_unambiguous",
    "read_csv_rows",
    "write_booking_template",
]
