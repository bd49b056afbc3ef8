"""
inventory_services.orchestrator -- wires kernel and import services per session.

Responsibility:
    Creates every service exactly once for one Session and shares the same
    Clock, CatalogService, ProjectDirectory and StockJournal between them,
    so a booking, an import row and a reversal inside one transaction all
    see the same catalog cache and sequence allocator.

Architecture position:
    Services -- the only place where kernel services, import services and
    selectors are constructed together.

Non-goals:
    - Does NOT manage transaction boundaries (InventoryEngine does).
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from inventory_config.schema import InventorySettings
from inventory_ingestion.services.import_service import (
    BookingImportService,
    ProductImportService,
    StockImportService,
)
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.selectors.journal_selector import JournalSelector
from inventory_kernel.selectors.stock_selector import StockLedgerSelector
from inventory_kernel.services.booking_service import BookingService
from inventory_kernel.services.catalog_service import CatalogService
from inventory_kernel.services.project_directory import ProjectDirectory, SqlProjectDirectory
from inventory_kernel.services.reversal_service import ReversalService
from inventory_kernel.services.sequence_service import SequenceService
from inventory_kernel.services.stock_journal import StockJournal


class InventoryOrchestrator:
    """
    Service container for one unit of work.

    Contract:
        Receives a Session, Settings and optional Clock/ProjectDirectory.
        Exposes every service as a public attribute.

    Guarantees:
        - All services share the same Session and Clock instances.
    """

    def __init__(
        self,
        session: Session,
        settings: InventorySettings,
        clock: Clock | None = None,
        projects: ProjectDirectory | None = None,
    ):
        self.session = session
        self.settings = settings
        self.clock = clock or SystemClock()
        self.projects = projects or SqlProjectDirectory(session)

        self.sequences = SequenceService(session)
        self.catalog = CatalogService(session)
        self.journal = StockJournal(
            session,
            clock=self.clock,
            sequence_service=self.sequences,
            catalog=self.catalog,
        )
        self.booking = BookingService(
            session,
            clock=self.clock,
            projects=self.projects,
            catalog=self.catalog,
            journal=self.journal,
            note_template=settings.booking_note_template,
        )
        self.reversals = ReversalService(session, clock=self.clock, journal=self.journal)
        self.booking_import = BookingImportService(
            session,
            clock=self.clock,
            projects=self.projects,
            booking_service=self.booking,
            catalog=self.catalog,
            field_separator=settings.csv_separator,
            date_format=settings.import_date_format,
            default_note=settings.default_import_note,
        )
        self.product_import = ProductImportService(
            session,
            catalog=self.catalog,
            field_separator=settings.csv_separator,
        )
        self.stock_import = StockImportService(
            session,
            journal=self.journal,
            catalog=self.catalog,
            projects=self.projects,
            field_separator=settings.csv_separator,
            default_note=settings.default_import_note,
        )
        self.stock = StockLedgerSelector(session)
        self.transactions = JournalSelector(session, projects=self.projects)
