"""
Import services: CSV rows -> resolved bookings / stock receipts / catalog
upserts.

Orchestrates the CSV adapter, row parsing and reference resolution, and
hands every accepted booking row to the same BookingService used by
interactive bookings, and every stock row to StockJournal.receive.  Uses
structured logging (LogContext, get_logger("ingestion.*")).

Invariants enforced:
    - A bad row never aborts the batch: it becomes a RowRejection.
    - Each booking or stock row runs in its own savepoint; a rejected row
      leaves no journal entries and no balance change behind.
    - Rows are not de-duplicated: importing the same row twice books twice.
    - import_file checks the header first: a file missing a required column
      is rejected as a whole (one MISSING_COLUMNS rejection for line 1) and
      no row is read.

Failure modes:
    - OSError / UnicodeDecodeError when the file cannot be read (whole call).
    - Database errors other than kernel errors propagate to the caller.
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Union
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import BookingLine, BookingRequest
from inventory_kernel.domain.quantities import validate_positive_quantity
from inventory_kernel.exceptions import ImportRowError, InventoryKernelError, ValidationError
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.services.booking_service import BookingService
from inventory_kernel.services.catalog_service import CatalogService
from inventory_kernel.services.project_directory import ProjectDirectory, SqlProjectDirectory
from inventory_kernel.services.stock_journal import StockJournal

from inventory_ingestion.adapters.csv_adapter import CsvSourceAdapter
from inventory_ingestion.domain.parsing import (
    DEFAULT_DATE_FORMAT,
    decimal_separator_for,
    parse_date,
    parse_decimal,
)
from inventory_ingestion.domain.types import (
    BOOKING_COLUMNS,
    BOOKING_REQUIRED,
    PRODUCT_COLUMNS,
    PRODUCT_REQUIRED,
    STOCK_COLUMNS,
    STOCK_REQUIRED,
    ImportReport,
    RawRow,
    RowRejection,
    canonical_record,
)
from inventory_ingestion.services.reference_resolver import ReferenceResolver

logger = get_logger("ingestion.import_service")

DEFAULT_IMPORT_NOTE = "Geïmporteerd via CSV"

RowSource = Iterable[Union[RawRow, Mapping[str, Any]]]


def read_csv_rows(source_path: Path, separator: str = ";") -> list[RawRow]:
    """Read a CSV file into numbered rows (file line numbers, header = 1)."""
    adapter = CsvSourceAdapter()
    return [
        RawRow(line, record)
        for line, record in adapter.read_numbered(Path(source_path), {"delimiter": separator})
    ]


def check_header(
    source_path: Path,
    layout: Mapping[str, tuple[str, ...]],
    required: tuple[str, ...],
    separator: str = ";",
) -> RowRejection | None:
    """
    Reject a file whose header lacks a required column.

    Returns one file-level rejection for line 1 naming every missing field
    and its accepted header names, or None when the header is usable.
    """
    probe = CsvSourceAdapter().probe(Path(source_path), {"delimiter": separator})
    missing = probe.missing_columns(layout, required)
    logger.info(
        "import_file_probed",
        extra={"row_count": probe.row_count, "columns": list(probe.columns)},
    )
    if not missing:
        return None
    described = "; ".join(f"{name} ({' / '.join(layout[name])})" for name in missing)
    return RowRejection(
        1,
        f"Missing column(s): {described}",
        "MISSING_COLUMNS",
        {"columns": ", ".join(probe.columns)},
    )


def _rejected_file(rejection: RowRejection) -> ImportReport:
    logger.warning(
        "import_file_rejected",
        extra={"reason_code": rejection.code, "reason": rejection.reason},
    )
    return ImportReport(accepted=0, rejected=(rejection,), import_batch_id=uuid4())


def _as_raw_rows(rows: RowSource) -> Iterator[RawRow]:
    for index, row in enumerate(rows):
        yield row if isinstance(row, RawRow) else RawRow(index + 2, row)


def _require(record: dict[str, str], required: tuple[str, ...], row_number: int) -> None:
    missing = [name for name in required if not record.get(name)]
    if missing:
        raise ImportRowError(
            row_number, f"Missing value for {', '.join(missing)}", "MISSING_FIELD"
        )


def _row_quantity(text: str, decimal_separator: str, row_number: int) -> Decimal:
    """Parse a positive quantity cell that fits the stock columns."""
    try:
        return validate_positive_quantity(parse_decimal(text, decimal_separator))
    except (ValueError, ValidationError) as exc:
        raise ImportRowError(row_number, str(exc), "INVALID_QUANTITY") from exc


class BookingImportService:
    """
    Bulk booking import.

    Contract:
        ``import_batch(rows, actor_id)`` returns an ImportReport.  It flushes
        accepted rows but never commits; the caller owns the transaction.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        projects: ProjectDirectory | None = None,
        booking_service: BookingService | None = None,
        catalog: CatalogService | None = None,
        field_separator: str = ";",
        date_format: str = DEFAULT_DATE_FORMAT,
        default_note: str = DEFAULT_IMPORT_NOTE,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._projects = projects or SqlProjectDirectory(session)
        self._catalog = catalog or CatalogService(session)
        self._booking = booking_service or BookingService(
            session, clock=self._clock, projects=self._projects, catalog=self._catalog
        )
        self._decimal_separator = decimal_separator_for(field_separator)
        self._field_separator = field_separator
        self._date_format = date_format
        self._default_note = default_note

    def import_file(self, source_path: Path, actor_id: UUID) -> ImportReport:
        """Check the header, then import every row of a CSV file."""
        rejection = check_header(source_path, BOOKING_COLUMNS, BOOKING_REQUIRED, self._field_separator)
        if rejection is not None:
            return _rejected_file(rejection)
        return self.import_batch(read_csv_rows(source_path, self._field_separator), actor_id)

    def _to_request(
        self, raw: RawRow, actor_id: UUID, resolver: ReferenceResolver
    ) -> BookingRequest:
        number = raw.row_number
        record = canonical_record(raw.values, BOOKING_COLUMNS)
        _require(record, BOOKING_REQUIRED, number)

        try:
            effective_date = parse_date(record["date"], self._date_format)
        except ValueError as exc:
            raise ImportRowError(number, str(exc), "INVALID_DATE") from exc
        quantity = _row_quantity(record["quantity"], self._decimal_separator, number)

        project = resolver.project(record["project"], number)
        product_id = resolver.product(record["sku"], number)
        location_id = resolver.location(record["location"], number)
        return BookingRequest(
            project_id=project.id,
            actor_id=actor_id,
            lines=(BookingLine(product_id, location_id, quantity),),
            notes=record["notes"] or self._default_note,
            effective_date=effective_date,
        )

    def import_batch(self, rows: RowSource, actor_id: UUID) -> ImportReport:
        """
        Book every valid row; collect a rejection for every other row.

        Accepts RawRow objects (row numbers kept) or plain dicts (numbered
        from 2, as if they followed a header line).
        """
        import_batch_id = uuid4()
        resolver = ReferenceResolver(self._projects, self._catalog)
        accepted = 0
        rejected: list[RowRejection] = []
        transaction_ids: list[UUID] = []

        with LogContext.bind(import_batch_id=str(import_batch_id), actor_id=str(actor_id)):
            logger.info("import_started")
            for raw in _as_raw_rows(rows):
                try:
                    request = self._to_request(raw, actor_id, resolver)
                    with self._session.begin_nested():
                        batch = self._booking.book(request)
                except ImportRowError as exc:
                    rejection = RowRejection(raw.row_number, exc.reason, exc.reason_code, dict(raw.values))
                except InventoryKernelError as exc:
                    rejection = RowRejection(raw.row_number, str(exc), exc.code, dict(raw.values))
                else:
                    accepted += 1
                    transaction_ids.extend(batch.transaction_ids)
                    continue
                rejected.append(rejection)
                logger.warning(
                    "import_row_rejected",
                    extra={
                        "row_number": rejection.row_number,
                        "reason_code": rejection.code,
                        "reason": rejection.reason,
                    },
                )

            logger.info(
                "import_completed",
                extra={"accepted": accepted, "rejected": len(rejected)},
            )
        return ImportReport(
            accepted=accepted,
            rejected=tuple(rejected),
            transaction_ids=tuple(transaction_ids),
            import_batch_id=import_batch_id,
        )


class ProductImportService:
    """Catalog import: create or update products by SKU, row by row."""

    def __init__(
        self,
        session: Session,
        catalog: CatalogService | None = None,
        field_separator: str = ";",
    ):
        self._session = session
        self._catalog = catalog or CatalogService(session)
        self._field_separator = field_separator
        self._decimal_separator = decimal_separator_for(field_separator)

    def import_file(self, source_path: Path, actor_id: UUID) -> ImportReport:
        rejection = check_header(source_path, PRODUCT_COLUMNS, PRODUCT_REQUIRED, self._field_separator)
        if rejection is not None:
            return _rejected_file(rejection)
        return self.import_batch(read_csv_rows(source_path, self._field_separator), actor_id)

    def _amount(self, record: dict[str, str], name: str, number: int):
        if not record[name]:
            return None
        try:
            return parse_decimal(record[name], self._decimal_separator)
        except ValueError as exc:
            raise ImportRowError(number, f"{name}: {exc}", "INVALID_NUMBER") from exc

    def import_batch(self, rows: RowSource, actor_id: UUID) -> ImportReport:
        import_batch_id = uuid4()
        created = updated = 0
        rejected: list[RowRejection] = []

        with LogContext.bind(import_batch_id=str(import_batch_id), actor_id=str(actor_id)):
            for raw in _as_raw_rows(rows):
                number = raw.row_number
                try:
                    record = canonical_record(raw.values, PRODUCT_COLUMNS)
                    _require(record, PRODUCT_REQUIRED, number)
                    fields = {
                        "name": record["name"],
                        "category": record["category"],
                        "unit": record["unit"],
                        "minimum_stock": self._amount(record, "minimum_stock", number),
                        "price": self._amount(record, "price", number),
                        "ean": record["ean"] or None,
                        "description": record["description"] or None,
                        "supplier": record["supplier"] or None,
                    }
                    with self._session.begin_nested():
                        _, was_created = self._catalog.upsert_product(
                            record["sku"], actor_id, **fields
                        )
                except ImportRowError as exc:
                    rejected.append(
                        RowRejection(number, exc.reason, exc.reason_code, dict(raw.values))
                    )
                except InventoryKernelError as exc:
                    rejected.append(RowRejection(number, str(exc), exc.code, dict(raw.values)))
                else:
                    if was_created:
                        created += 1
                    else:
                        updated += 1
                    continue
                logger.warning(
                    "import_row_rejected",
                    extra={"row_number": number, "reason_code": rejected[-1].code},
                )

            logger.info(
                "product_import_completed",
                extra={"created": created, "updated": updated, "rejected": len(rejected)},
            )
        return ImportReport(
            accepted=created + updated,
            rejected=tuple(rejected),
            import_batch_id=import_batch_id,
        )


class StockImportService:
    """
    Stock import into one location: every row is goods in.

    Contract:
        ``import_batch(rows, location_id, actor_id)`` receives each row's
        quantity of the SKU's product at ``location_id`` and returns an
        ImportReport.  Never commits.

    Guarantees:
        - Each row goes through StockJournal.receive in its own savepoint,
          so the journal explains every imported unit.
        - SKUs match exactly; inactive products are rejected per row.

    Non-goals:
        - Does NOT set balances to the file's figure (that is a stock count,
          see StockJournal.adjust_to_count); quantities are added.
    """

    def __init__(
        self,
        session: Session,
        journal: StockJournal,
        catalog: CatalogService | None = None,
        projects: ProjectDirectory | None = None,
        field_separator: str = ";",
        default_note: str = DEFAULT_IMPORT_NOTE,
    ):
        self._session = session
        self._journal = journal
        self._catalog = catalog or CatalogService(session)
        self._projects = projects or SqlProjectDirectory(session)
        self._field_separator = field_separator
        self._decimal_separator = decimal_separator_for(field_separator)
        self._default_note = default_note

    def import_file(self, source_path: Path, location_id: UUID, actor_id: UUID) -> ImportReport:
        rejection = check_header(source_path, STOCK_COLUMNS, STOCK_REQUIRED, self._field_separator)
        if rejection is not None:
            return _rejected_file(rejection)
        return self.import_batch(
            read_csv_rows(source_path, self._field_separator), location_id, actor_id
        )

    def import_batch(self, rows: RowSource, location_id: UUID, actor_id: UUID) -> ImportReport:
        """
        Receive every valid row at ``location_id``.

        Raises:
            LocationNotFoundError / InactiveReferenceError: the target
                location cannot take stock; no row is read.
        """
        location = self._catalog.require_active_location(location_id)
        import_batch_id = uuid4()
        resolver = ReferenceResolver(self._projects, self._catalog)
        accepted = 0
        rejected: list[RowRejection] = []
        transaction_ids: list[UUID] = []

        with LogContext.bind(import_batch_id=str(import_batch_id), actor_id=str(actor_id)):
            logger.info("stock_import_started", extra={"location_id": str(location.id)})
            for raw in _as_raw_rows(rows):
                number = raw.row_number
                try:
                    record = canonical_record(raw.values, STOCK_COLUMNS)
                    _require(record, STOCK_REQUIRED, number)
                    quantity = _row_quantity(record["quantity"], self._decimal_separator, number)
                    product_id = resolver.product(record["sku"], number)
                    with self._session.begin_nested():
                        batch = self._journal.receive(
                            product_id,
                            location.id,
                            quantity,
                            actor_id,
                            notes=record["notes"] or self._default_note,
                        )
                except ImportRowError as exc:
                    rejection = RowRejection(number, exc.reason, exc.reason_code, dict(raw.values))
                except InventoryKernelError as exc:
                    rejection = RowRejection(number, str(exc), exc.code, dict(raw.values))
                else:
                    accepted += 1
                    transaction_ids.extend(batch.transaction_ids)
                    continue
                rejected.append(rejection)
                logger.warning(
                    "import_row_rejected",
                    extra={
                        "row_number": number,
                        "reason_code": rejection.code,
                        "reason": rejection.reason,
                    },
                )

            logger.info(
                "stock_import_completed",
                extra={"accepted": accepted, "rejected": len(rejected)},
            )
        return ImportReport(
            accepted=accepted,
            rejected=tuple(rejected),
            transaction_ids=tuple(transaction_ids),
            import_batch_id=import_batch_id,
        )
