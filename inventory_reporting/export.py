"""
Transaction export: TransactionView -> CSV.

Layout:
    Date;Project;Product;Category;Quantity;Unit;Location;User;Notes

Dates are dd-mm-yyyy, quantities are absolute with the decimal separator
that pairs with the field separator (``;`` -> ``3,5``), and the file starts
with a UTF-8 byte-order mark so spreadsheet programs pick the right
encoding.  A value containing the separator, a double quote or a line
break is quoted, with embedded quotes doubled.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import astuple, dataclass
from decimal import Decimal
from typing import TextIO
from uuid import UUID

from inventory_kernel.domain.dtos import TransactionView

EXPORT_HEADERS = (
    "Date",
    "Project",
    "Product",
    "Category",
    "Quantity",
    "Unit",
    "Location",
    "User",
    "Notes",
)

BOM = "\ufeff"


@dataclass(frozen=True)
class ExportRow:
    """One export line, every value already rendered as text."""

    date: str
    project: str
    product: str
    category: str
    quantity: str
    unit: str
    location: str
    user: str
    notes: str


def format_decimal(value: Decimal, decimal_separator: str = ",") -> str:
    """Render a quantity without exponent or trailing zeros: 2.500000 -> '2,5'."""
    if value == value.to_integral_value():
        text = str(value.quantize(Decimal(1)))
    else:
        text = format(value.normalize(), "f")
    return text.replace(".", decimal_separator) if decimal_separator != "." else text


def _project_label(view: TransactionView) -> str:
    if not view.project_name:
        return ""
    if view.project_number:
        return f"{view.project_name} (#{view.project_number})"
    return view.project_name


def to_export_row(
    view: TransactionView,
    user_names: Mapping[UUID, str] | None = None,
    decimal_separator: str = ",",
) -> ExportRow:
    user = (user_names or {}).get(view.user_id) or str(view.user_id)
    return ExportRow(
        date=view.effective_date.strftime("%d-%m-%Y"),
        project=_project_label(view),
        product=f"{view.product_name} ({view.product_sku})",
        category=view.product_category or "",
        quantity=format_decimal(abs(view.quantity), decimal_separator),
        unit=view.product_unit or "",
        location=view.location_name,
        user=user,
        notes=view.notes or "",
    )


def to_export_rows(
    views: Iterable[TransactionView],
    user_names: Mapping[UUID, str] | None = None,
    decimal_separator: str = ",",
) -> Iterator[ExportRow]:
    for view in views:
        yield to_export_row(view, user_names, decimal_separator)


def write_export_csv(
    rows: Iterable[ExportRow],
    stream: TextIO,
    separator: str = ";",
    include_bom: bool = True,
) -> int:
    """
    Write header and rows; return the number of data rows written.

    Open file streams with newline="" so the writer controls line endings.
    """
    if include_bom:
        stream.write(BOM)
    writer = csv.writer(
        stream,
        delimiter=separator,
        quotechar='"',
        doublequote=True,
        quoting=csv.QUOTE_MINIMAL,
        lineterminator="\r\n",
    )
    writer.writerow(EXPORT_HEADERS)
    count = 0
    for row in rows:
        writer.writerow(astuple(row))
        count += 1
    return count
