"""
BookingService -- validate and commit a multi-line stock booking.

Responsibility:
    Consumes ("books out") quantities of one or more products against a
    project.  Validates the request, resolves every reference, sums
    duplicate lines, then hands the lines to StockJournal which performs
    the conditional decrements and writes one ``out`` row per line.

Architecture position:
    Kernel > Services -- imperative shell.  Called by InventoryEngine and
    by the bulk import service (one single-line booking per CSV row).

Invariants enforced:
    - Nothing touches the store before the request is structurally valid.
    - A booking is all-or-nothing: on any shortfall InsufficientStockError
      is raised listing every failing pair, and the caller rolls back.
    - All rows of one booking share batch_id, created_at, effective_date,
      project_id and user_id.

Failure modes:
    - ValidationError: no lines, no project, a line without product or
      location, a quantity that is not a positive finite number with at
      most six decimals.
    - ProjectNotFoundError / ProductNotFoundError / LocationNotFoundError /
      InactiveReferenceError.
    - InsufficientStockError.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import (
    BookingLine,
    BookingRequest,
    TransactionBatch,
    TransactionEntry,
)
from inventory_kernel.domain.quantities import sum_lines, validate_positive_quantity
from inventory_kernel.exceptions import (
    InactiveReferenceError,
    InsufficientStockError,
    ProjectNotFoundError,
    ValidationError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.catalog_service import CatalogService
from inventory_kernel.services.project_directory import ProjectDirectory, SqlProjectDirectory
from inventory_kernel.services.stock_journal import StockJournal

logger = get_logger("services.booking")

DEFAULT_NOTE_TEMPLATE = "Afgeboekt naar project {project_name}"


class BookingService(BaseService):
    """
    Booking validator and commit protocol.

    Contract:
        ``book(request)`` returns the TransactionBatch that was written, or
        raises.  It flushes but never commits.

    Guarantees:
        - Lines for the same (product, location) are summed before stock is
          checked, so two lines cannot each pass against the same balance.
        - One ``out`` row per original line, in request order.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        projects: ProjectDirectory | None = None,
        catalog: CatalogService | None = None,
        journal: StockJournal | None = None,
        note_template: str = DEFAULT_NOTE_TEMPLATE,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._projects = projects or SqlProjectDirectory(session)
        self._catalog = catalog or CatalogService(session)
        self._journal = journal or StockJournal(session, clock=self._clock, catalog=self._catalog)
        self._note_template = note_template

    def validate(self, request: BookingRequest) -> list[BookingLine]:
        """
        Structural checks only; no database access.

        Returns the lines with quantities normalized to exact Decimals.
        """
        if request.project_id is None:
            raise ValidationError("A booking needs a project", field="project_id")
        if not request.lines:
            raise ValidationError("A booking needs at least one line", field="lines")
        lines = []
        for index, line in enumerate(request.lines, start=1):
            if line.product_id is None:
                raise ValidationError(f"Line {index} has no product", field="product_id")
            if line.location_id is None:
                raise ValidationError(f"Line {index} has no location", field="location_id")
            quantity = validate_positive_quantity(line.quantity, field=f"lines[{index}].quantity")
            lines.append(BookingLine(line.product_id, line.location_id, quantity))
        return lines

    def book(self, request: BookingRequest) -> TransactionBatch:
        lines = self.validate(request)

        project = self._projects.get(request.project_id)
        if project is None:
            raise ProjectNotFoundError(str(request.project_id))
        if not project.is_active:
            raise InactiveReferenceError("Project", str(request.project_id))

        totals = sum_lines(lines)
        for product_id, location_id in totals:
            self._catalog.require_active_product(product_id)
            self._catalog.require_active_location(location_id)

        notes = request.notes or self._note_template.format(
            project_name=project.name,
            project_number=project.project_number or "",
        )
        entries = [
            TransactionEntry.stock_out(
                line.product_id,
                line.location_id,
                line.quantity,
                request.actor_id,
                project_id=project.id,
                notes=notes,
                effective_date=request.effective_date,
            )
            for line in lines
        ]

        with LogContext.bind(project_id=str(project.id), actor_id=str(request.actor_id)):
            try:
                batch = self._journal.write_batch(entries)
            except InsufficientStockError as exc:
                logger.warning(
                    "booking_rejected_insufficient_stock",
                    extra={
                        "line_count": len(lines),
                        "shortfall_count": len(exc.shortfalls),
                        "shortfalls": [
                            {
                                "product_id": str(s.product_id),
                                "location_id": str(s.location_id),
                                "available": str(s.available),
                                "requested": str(s.requested),
                            }
                            for s in exc.shortfalls
                        ],
                    },
                )
                raise
            logger.info(
                "booking_committed",
                extra={
                    "batch_id": str(batch.batch_id),
                    "line_count": len(lines),
                    "pair_count": len(totals),
                },
            )
        return batch
