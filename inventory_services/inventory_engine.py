"""
inventory_services.inventory_engine -- the synchronous engine API.

Responsibility:
    One method per external operation (booking, stock browse, bulk import,
    export, delete-as-reversal, goods in, transfer, count, low stock,
    journal queries, integrity check).  Each call opens its own session,
    commits on success and rolls back on any exception.

Architecture position:
    Services -- outermost layer.  Callers (UI handlers, the operator CLI)
    hold one InventoryEngine; they never see a Session.

Invariants enforced:
    - One call, one transaction: a failed call leaves nothing behind.
    - Store-level lock failures surface as ConcurrencyConflictError so the
      caller can retry the whole call.
    - Values returned are DTOs or rows loaded before commit; no lazy
      loading happens after the session closes.

Failure modes:
    - Every kernel exception propagates unchanged.
    - ConcurrencyConflictError for deadlocks, serialization failures and
      lock timeouts.

Usage:
    settings = get_active_config()
    engine = InventoryEngine.from_settings(settings)
    engine.book(project_id, actor_id, [BookingLine(product_id, location_id, Decimal("3"))])
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, TextIO
from uuid import UUID, uuid4

from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session, sessionmaker

from inventory_config.schema import InventorySettings
from inventory_ingestion.domain.types import ImportReport, RawRow
from inventory_kernel.db.engine import (
    get_session_factory,
    init_engine_from_url,
    is_concurrency_failure,
    session_scope,
)
from inventory_kernel.db.immutability import register_immutability_listeners
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import (
    BalanceDiscrepancy,
    BookingLine,
    BookingRequest,
    LocationStock,
    LowStockAlert,
    ProjectInfo,
    ReversalBatch,
    TransactionBatch,
    TransactionFilter,
    TransactionView,
)
from inventory_kernel.exceptions import ConcurrencyConflictError
from inventory_kernel.logging_config import LogContext, configure_logging, get_logger
from inventory_kernel.models.catalog import Location, Product
from inventory_kernel.services.project_directory import ProjectDirectory, SqlProjectDirectory
from inventory_reporting.export import to_export_rows, write_export_csv
from inventory_services.orchestrator import InventoryOrchestrator

logger = get_logger("services.engine")

ProjectsFactory = Callable[[Session], ProjectDirectory]


class InventoryEngine:
    """
    Facade over the inventory services.

    Contract:
        Every public method is one unit of work.  Arguments and return
        values are plain values and DTOs.

    Guarantees:
        - Commit on success, rollback on any exception.
        - DBAPIError lock failures become ConcurrencyConflictError.

    Non-goals:
        - Does NOT retry; the caller decides whether to retry a conflict.
        - Does NOT authenticate; actor_id is trusted.
    """

    def __init__(
        self,
        settings: InventorySettings,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
        projects_factory: ProjectsFactory | None = None,
    ):
        self._settings = settings
        self._session_factory = session_factory or get_session_factory()
        self._clock = clock or SystemClock()
        self._projects_factory = projects_factory or SqlProjectDirectory

    @classmethod
    def from_settings(cls, settings: InventorySettings, clock: Clock | None = None) -> InventoryEngine:
        """Initialize the database engine from settings and build the facade."""
        register_immutability_listeners()
        configure_logging(level=settings.log_level)
        init_engine_from_url(
            settings.database_url,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            sqlite_busy_timeout=settings.sqlite_busy_timeout,
        )
        return cls(settings, session_factory=get_session_factory(), clock=clock)

    @property
    def settings(self) -> InventorySettings:
        return self._settings

    @contextmanager
    def _unit(self, operation: str) -> Iterator[InventoryOrchestrator]:
        with LogContext.bind(correlation_id=str(uuid4())):
            try:
                with session_scope(self._session_factory) as session:
                    yield InventoryOrchestrator(
                        session,
                        self._settings,
                        clock=self._clock,
                        projects=self._projects_factory(session),
                    )
            except DBAPIError as exc:
                if not is_concurrency_failure(exc):
                    raise
                detail = str(exc.orig) if exc.orig is not None else str(exc)
                logger.warning(
                    "concurrency_conflict",
                    extra={"operation": operation, "detail": detail},
                )
                raise ConcurrencyConflictError(operation, detail) from exc

    # Bookings

    def book(
        self,
        project_id: UUID,
        actor_id: UUID,
        lines: Iterable[BookingLine],
        notes: str | None = None,
        effective_date: date | None = None,
    ) -> TransactionBatch:
        request = BookingRequest(
            project_id=project_id,
            actor_id=actor_id,
            lines=tuple(lines),
            notes=notes,
            effective_date=effective_date,
        )
        with self._unit("book") as services:
            return services.booking.book(request)

    def delete_transactions(
        self, transaction_ids: Iterable[UUID], actor_id: UUID, reason: str = ""
    ) -> ReversalBatch:
        with self._unit("delete_transactions") as services:
            return services.reversals.delete(transaction_ids, actor_id, reason)

    # Stock movements

    def receive(
        self,
        product_id: UUID,
        location_id: UUID,
        quantity: Decimal | int | str,
        actor_id: UUID,
        notes: str | None = None,
        effective_date: date | None = None,
    ) -> TransactionBatch:
        with self._unit("receive") as services:
            return services.journal.receive(
                product_id, location_id, quantity, actor_id, notes=notes, effective_date=effective_date
            )

    def transfer(
        self,
        product_id: UUID,
        from_location_id: UUID,
        to_location_id: UUID,
        quantity: Decimal | int | str,
        actor_id: UUID,
        notes: str | None = None,
    ) -> TransactionBatch:
        with self._unit("transfer") as services:
            return services.journal.transfer(
                product_id, from_location_id, to_location_id, quantity, actor_id, notes=notes
            )

    def adjust_to_count(
        self,
        product_id: UUID,
        location_id: UUID,
        counted: Decimal | int | str,
        actor_id: UUID,
        notes: str | None = None,
    ) -> TransactionBatch | None:
        with self._unit("adjust_to_count") as services:
            return services.journal.adjust_to_count(
                product_id, location_id, counted, actor_id, notes=notes
            )

    # Reads

    def browse_stock(self, location_id: UUID) -> list[LocationStock]:
        """Products with a positive balance at a location (pick-list)."""
        with self._unit("browse_stock") as services:
            return services.stock.balances_at_location(location_id)

    def stock_for_product(self, product_id: UUID) -> list[LocationStock]:
        with self._unit("stock_for_product") as services:
            return services.stock.balances_for_product(product_id)

    def balance(self, product_id: UUID, location_id: UUID) -> Decimal:
        with self._unit("balance") as services:
            return services.stock.balance(product_id, location_id)

    def low_stock(self, location_id: UUID | None = None) -> list[LowStockAlert]:
        with self._unit("low_stock") as services:
            return services.stock.low_stock(location_id)

    def query_transactions(self, criteria: TransactionFilter | None = None) -> list[TransactionView]:
        with self._unit("query_transactions") as services:
            return list(services.transactions.query(criteria))

    def verify_balances(self) -> list[BalanceDiscrepancy]:
        """Pairs whose materialized balance disagrees with the journal."""
        with self._unit("verify_balances") as services:
            discrepancies = services.stock.find_discrepancies()
        if discrepancies:
            logger.error("balance_discrepancies_found", extra={"count": len(discrepancies)})
        return discrepancies

    # Import / export

    def import_bookings(
        self,
        source: Path | str | Iterable[RawRow | Mapping[str, Any]],
        actor_id: UUID,
    ) -> ImportReport:
        """Import bookings from a CSV path or from already-read rows."""
        with self._unit("import_bookings") as services:
            if isinstance(source, (str, Path)):
                return services.booking_import.import_file(Path(source), actor_id)
            return services.booking_import.import_batch(source, actor_id)

    def import_stock(
        self,
        source: Path | str | Iterable[RawRow | Mapping[str, Any]],
        location_id: UUID,
        actor_id: UUID,
    ) -> ImportReport:
        """Receive SKU/quantity rows into one location as goods in."""
        with self._unit("import_stock") as services:
            if isinstance(source, (str, Path)):
                return services.stock_import.import_file(Path(source), location_id, actor_id)
            return services.stock_import.import_batch(source, location_id, actor_id)

    def import_products(
        self,
        source: Path | str | Iterable[RawRow | Mapping[str, Any]],
        actor_id: UUID,
    ) -> ImportReport:
        with self._unit("import_products") as services:
            if isinstance(source, (str, Path)):
                return services.product_import.import_file(Path(source), actor_id)
            return services.product_import.import_batch(source, actor_id)

    def export_transactions(
        self,
        stream: TextIO,
        criteria: TransactionFilter | None = None,
        user_names: Mapping[UUID, str] | None = None,
    ) -> int:
        """Write matching journal rows as CSV; returns the number of rows."""
        with self._unit("export_transactions") as services:
            views = services.transactions.query(criteria)
            count = write_export_csv(
                to_export_rows(views, user_names, self._settings.decimal_separator),
                stream,
                separator=self._settings.csv_separator,
            )
        logger.info("transactions_exported", extra={"row_count": count})
        return count

    # Catalog management

    def register_product(self, sku: str, name: str, actor_id: UUID, **fields: Any) -> Product:
        with self._unit("register_product") as services:
            return services.catalog.register_product(sku, name, actor_id, **fields)

    def register_location(self, name: str, actor_id: UUID, **fields: Any) -> Location:
        with self._unit("register_location") as services:
            return services.catalog.register_location(name, actor_id, **fields)

    def register_project(self, name: str, project_number: str | None = None) -> ProjectInfo:
        with self._unit("register_project") as services:
            return SqlProjectDirectory(services.session).register(name, project_number)

    def find_product(self, sku: str) -> Product:
        with self._unit("find_product") as services:
            return services.catalog.find_product(sku=sku)

    def find_location(self, name: str) -> Location:
        with self._unit("find_location") as services:
            return services.catalog.find_location(name=name)

    def deactivate_product(self, product_id: UUID, actor_id: UUID) -> Product:
        with self._unit("deactivate_product") as services:
            return services.catalog.deactivate_product(product_id, actor_id)

    def deactivate_location(self, location_id: UUID, actor_id: UUID) -> Location:
        with self._unit("deactivate_location") as services:
            return services.catalog.deactivate_location(location_id, actor_id)
