"""Pure import domain: row/report DTOs, column layouts, value parsing."""

from inventory_ingestion.domain.parsing import (
    DEFAULT_DATE_FORMAT,
    decimal_separator_for,
    parse_date,
    parse_decimal,
)
from inventory_ingestion.domain.types import (
    BOOKING_COLUMNS,
    PRODUCT_COLUMNS,
    ImportReport,
    RawRow,
    RowRejection,
    canonical_record,
)

__all__ = [
    "BOOKING_COLUMNS",
    "DEFAULT_DATE_FORMAT",
    "PRODUCT_COLUMNS",
    "ImportReport",
    "RawRow",
    "RowRejection",
    "canonical_record",
    "decimal_separator_for",
    "parse_date",
    "parse_decimal",
]
