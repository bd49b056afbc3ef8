"""
Pytest fixtures for the inventory engine test suite.

Provides:
- A file-backed SQLite database per test (BEGIN IMMEDIATE, like production
  SQLite), or the PostgreSQL database named by INVENTORY_TEST_DATABASE_URL,
  with tables and immutability listeners installed
- A seeded catalog: two products, three locations, three projects
- Service fixtures sharing one session, and an InventoryEngine facade
- Captured structured logs

Session vs. engine fixtures:
    SQLite holds the write lock for the whole of an open transaction, so a
    test uses either the ``services``/``session`` fixtures or the
    ``inventory`` facade for writes, never both at once.
"""

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import UUID

import pytest

from inventory_config.schema import InventorySettings
from inventory_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from inventory_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from inventory_kernel.services.catalog_service import CatalogService
from inventory_kernel.services.project_directory import SqlProjectDirectory
from inventory_kernel.services.stock_journal import StockJournal
from inventory_services.inventory_engine import InventoryEngine
from inventory_services.orchestrator import InventoryOrchestrator

# Test actor ID for all test operations
TEST_ACTOR_ID = UUID("00000000-0000-4000-8000-000000000001")

FIXED_TIME = datetime(2025, 10, 14, 9, 0, tzinfo=timezone.utc)

# Set to a PostgreSQL URL to run the database tests against PostgreSQL;
# tables are dropped and recreated for every test.
TEST_DATABASE_URL = os.environ.get("INVENTORY_TEST_DATABASE_URL")


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture inventory_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, inventory):
            inventory.book(...)
            assert any(r["message"] == "booking_committed" for r in captured_logs())
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("inventory_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def settings(tmp_path) -> InventorySettings:
    url = TEST_DATABASE_URL or f"sqlite:///{tmp_path / 'inventory.db'}"
    return InventorySettings(database_url=url)


@pytest.fixture
def db_engine(settings):
    """Empty database with all tables for one test."""
    eng = init_engine_from_url(settings.database_url, sqlite_busy_timeout=30.0)
    if TEST_DATABASE_URL:
        drop_tables()
    create_tables()
    register_immutability_listeners()
    yield eng
    unregister_immutability_listeners()
    if TEST_DATABASE_URL:
        drop_tables()
    reset_engine()


@pytest.fixture
def session_factory(db_engine):
    return get_session_factory()


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(FIXED_TIME)


@pytest.fixture
def test_actor_id() -> UUID:
    return TEST_ACTOR_ID


# =============================================================================
# Seed data
# =============================================================================


@dataclass(frozen=True)
class Seed:
    cement: UUID
    foil: UUID
    warehouse: UUID
    van_2: UUID
    van_12: UUID
    raaijmakers: UUID
    schuch: UUID
    renovation: UUID


@pytest.fixture
def seed(session_factory, test_actor_id) -> Seed:
    """
    Committed catalog and projects; no stock yet.

    Products: CEM-25KG (min. 5 zak), AFD-FOL-45 (min. 2 rol).
    Locations: Magazijn Moordrecht, Bus 2, Bus 12.
    Projects: J. Raaijmakers (#2025-001), A.S. Schuch (#2025-002),
    Raaijmakers Renovatie (#2025-003).
    """
    with session_scope(session_factory) as session:
        catalog = CatalogService(session)
        projects = SqlProjectDirectory(session)
        cement = catalog.register_product(
            "CEM-25KG", "Cement 25kg", test_actor_id,
            category="Bouwmaterialen", unit="zak", minimum_stock=5,
        )
        foil = catalog.register_product(
            "AFD-FOL-45", "Afdekfolie 4x5m", test_actor_id,
            category="Afdekmaterialen", unit="rol", minimum_stock=2,
        )
        warehouse = catalog.register_location("Magazijn Moordrecht", test_actor_id)
        van_2 = catalog.register_location(
            "Bus 2", test_actor_id, location_type="vehicle", license_plate="VX-123-B"
        )
        van_12 = catalog.register_location("Bus 12", test_actor_id, location_type="vehicle")
        raaijmakers = projects.register("J. Raaijmakers", "2025-001")
        schuch = projects.register("A.S. Schuch", "2025-002")
        renovation = projects.register("Raaijmakers Renovatie", "2025-003")
        return Seed(
            cement=cement.id,
            foil=foil.id,
            warehouse=warehouse.id,
            van_2=van_2.id,
            van_12=van_12.id,
            raaijmakers=raaijmakers.id,
            schuch=schuch.id,
            renovation=renovation.id,
        )


@pytest.fixture
def put_stock(session_factory, clock, test_actor_id):
    """Commit goods-in for a pair: ``put_stock(product_id, location_id, qty)``."""

    def _put(product_id: UUID, location_id: UUID, quantity) -> None:
        with session_scope(session_factory) as session:
            StockJournal(session, clock=clock).receive(
                product_id, location_id, Decimal(str(quantity)), test_actor_id
            )

    return _put


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def session(session_factory, seed):
    """One session for service-level tests; rolled back afterwards."""
    s = session_factory()
    yield s
    s.rollback()
    s.close()


@pytest.fixture
def services(session, settings, clock) -> InventoryOrchestrator:
    return InventoryOrchestrator(session, settings, clock=clock)


@pytest.fixture
def inventory(session_factory, settings, clock, seed) -> InventoryEngine:
    return InventoryEngine(settings, session_factory=session_factory, clock=clock)
