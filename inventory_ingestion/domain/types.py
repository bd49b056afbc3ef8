"""
inventory_ingestion.domain.types -- Pure frozen dataclasses for the import system.

ZERO I/O. Imports only from the standard library.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping
from uuid import UUID


# =============================================================================
# Column layouts (canonical field -> accepted header names, case-insensitive)
# =============================================================================

BOOKING_COLUMNS: dict[str, tuple[str, ...]] = {
    "date": ("Date", "Datum"),
    "project": ("Project", "Projectnaam"),
    "sku": ("Product SKU", "SKU", "Product"),
    "quantity": ("Quantity", "Aantal", "Hoeveelheid"),
    "location": ("Location", "Locatie"),
    "notes": ("Notes", "Opmerkingen", "Opmerking", "Notities"),
}

BOOKING_REQUIRED = ("date", "project", "sku", "quantity", "location")

PRODUCT_COLUMNS: dict[str, tuple[str, ...]] = {
    "sku": ("sku", "Product SKU"),
    "name": ("name", "Naam"),
    "category": ("category", "Categorie"),
    "unit": ("unit", "Eenheid"),
    "minimum_stock": ("minimum_stock", "Min. Voorraad", "Minimum voorraad"),
    "ean": ("ean",),
    "description": ("description", "Omschrijving", "Beschrijving"),
    "supplier": ("supplier", "Leverancier"),
    "price": ("price", "Prijs"),
}

PRODUCT_REQUIRED = ("sku", "name", "category", "unit")

# Stock import into one location; extra columns (Naam, Categorie, ...) of a
# stock export are ignored
STOCK_COLUMNS: dict[str, tuple[str, ...]] = {
    "sku": ("SKU", "Product SKU"),
    "quantity": ("Voorraad", "Aantal", "Quantity", "Hoeveelheid"),
    "notes": ("Notes", "Opmerkingen", "Opmerking", "Notities"),
}

STOCK_REQUIRED = ("sku", "quantity")


def canonical_record(
    record: Mapping[str, Any],
    columns: Mapping[str, tuple[str, ...]],
) -> dict[str, str]:
    """
    Map a raw record onto canonical field names.

    Header matching ignores case and surrounding whitespace.  Missing
    columns map to "".  Values are stripped strings.
    """
    by_header = {
        str(key).strip().lower(): value for key, value in record.items() if key is not None
    }
    result: dict[str, str] = {}
    for canonical, aliases in columns.items():
        value = ""
        for alias in (canonical, *aliases):
            hit = by_header.get(alias.lower())
            if hit is not None:
                value = hit
                break
        result[canonical] = "" if value is None else str(value).strip()
    return result


# =============================================================================
# Rows and reports
# =============================================================================


@dataclass(frozen=True)
class RawRow:
    """One source record and its row number (file line; header is line 1)."""

    row_number: int
    values: Mapping[str, Any]


@dataclass(frozen=True)
class RowRejection:
    """A row that was not imported, with a human-readable reason."""

    row_number: int
    reason: str
    code: str
    row: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ImportReport:
    """Outcome of one import run."""

    accepted: int
    rejected: tuple[RowRejection, ...] = ()
    transaction_ids: tuple[UUID, ...] = ()
    import_batch_id: UUID | None = None

    @property
    def total(self) -> int:
        return self.accepted + len(self.rejected)

    @property
    def rejected_count(self) -> int:
        return len(self.rejected)

    def summary(self) -> str:
        lines = [
            f"Import voltooid: {self.accepted} geaccepteerd, "
            f"{len(self.rejected)} afgewezen (van {self.total} rijen)"
        ]
        for rejection in self.rejected:
            lines.append(f"  rij {rejection.row_number}: {rejection.reason}")
        return "\n".join(lines)
