"""Downloadable import template for bulk bookings."""

from __future__ import annotations

import csv
from typing import TextIO

TEMPLATE_HEADERS = ("Datum", "Project", "Product SKU", "Aantal", "Locatie", "Opmerkingen")

TEMPLATE_EXAMPLES = (
    ("14-10-2025", "J. Raaijmakers", "CEM-25KG", "3", "Magazijn Moordrecht", "Afgeboekt naar project"),
    ("14-10-2025", "A.S. Schuch", "AFD-FOL-45", "5", "Bus 2", "Materiaal gebruikt"),
)


def write_booking_template(stream: TextIO, separator: str = ";") -> None:
    """
    Write the import template: header plus two example rows.

    The headers are accepted as-is by BookingImportService.  Open the
    stream with newline="" (and encoding="utf-8-sig" for spreadsheets).
    """
    writer = csv.writer(stream, delimiter=separator, lineterminator="\r\n")
    writer.writerow(TEMPLATE_HEADERS)
    writer.writerows(TEMPLATE_EXAMPLES)
