"""
BookingService tests.

Tests cover:
- Scenario A: book 3 of 10, then 8 more is refused with available=7
- Scenario B: a two-line booking fails as a whole when one line is short
- Duplicate lines for one pair are summed before the stock check
- Structural validation before any store access, including quantities
  too large to store
- Project / product / location resolution and the default note
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from inventory_kernel.db.types import MAX_QUANTITY
from inventory_kernel.domain.dtos import BookingLine, BookingRequest
from inventory_kernel.exceptions import (
    InactiveReferenceError,
    InsufficientStockError,
    LocationNotFoundError,
    ProductNotFoundError,
    ProjectNotFoundError,
    ValidationError,
)
from inventory_kernel.models.stock import StockTransaction, TransactionType


def _request(seed, actor_id, *lines, project_id=None, notes=None):
    return BookingRequest(
        project_id=project_id or seed.raaijmakers,
        actor_id=actor_id,
        lines=[BookingLine(p, l, Decimal(str(q))) for p, l, q in lines],
        notes=notes,
    )


def _journal_count(session) -> int:
    return session.execute(select(func.count()).select_from(StockTransaction)).scalar_one()


class TestScenarioA:
    def test_book_three_of_ten_leaves_seven(self, put_stock, seed, services, test_actor_id):
        put_stock(seed.cement, seed.warehouse, 10)

        batch = services.booking.book(
            _request(seed, test_actor_id, (seed.cement, seed.warehouse, 3))
        )

        assert len(batch) == 1
        assert services.stock.balance(seed.cement, seed.warehouse) == Decimal("7")

    def test_second_booking_of_eight_is_refused(self, put_stock, seed, services, test_actor_id):
        put_stock(seed.cement, seed.warehouse, 10)
        services.booking.book(_request(seed, test_actor_id, (seed.cement, seed.warehouse, 3)))

        with pytest.raises(InsufficientStockError) as exc_info:
            services.booking.book(_request(seed, test_actor_id, (seed.cement, seed.warehouse, 8)))

        (shortfall,) = exc_info.value.shortfalls
        assert shortfall.available == Decimal("7")
        assert shortfall.requested == Decimal("8")
        assert shortfall.missing == Decimal("1")
        assert shortfall.product_name == "Cement 25kg"
        assert shortfall.location_name == "Magazijn Moordrecht"
        assert shortfall.unit == "zak"


class TestScenarioB:
    def test_whole_booking_fails_when_one_line_is_short(self, put_stock, seed, session_factory, test_actor_id, settings, clock):
        from inventory_kernel.db.engine import session_scope
        from inventory_services.orchestrator import InventoryOrchestrator

        put_stock(seed.cement, seed.warehouse, 10)
        put_stock(seed.foil, seed.warehouse, 2)

        with pytest.raises(InsufficientStockError) as exc_info:
            with session_scope(session_factory) as session:
                InventoryOrchestrator(session, settings, clock=clock).booking.book(
                    _request(
                        seed,
                        test_actor_id,
                        (seed.cement, seed.warehouse, 5),
                        (seed.foil, seed.warehouse, 3),
                    )
                )

        (shortfall,) = exc_info.value.shortfalls
        assert shortfall.product_id == seed.foil
        assert shortfall.available == Decimal("2")
        assert shortfall.requested == Decimal("3")

        with session_scope(session_factory) as session:
            services = InventoryOrchestrator(session, settings, clock=clock)
            assert services.stock.balance(seed.cement, seed.warehouse) == Decimal("10")
            assert services.stock.balance(seed.foil, seed.warehouse) == Decimal("2")
            # only the two goods-in rows
            assert _journal_count(session) == 2

    def test_every_failing_pair_is_reported(self, put_stock, seed, services, test_actor_id):
        put_stock(seed.cement, seed.warehouse, 1)

        with pytest.raises(InsufficientStockError) as exc_info:
            services.booking.book(
                _request(
                    seed,
                    test_actor_id,
                    (seed.cement, seed.warehouse, 5),
                    (seed.foil, seed.van_2, 3),
                )
            )

        by_product = {s.product_id: s for s in exc_info.value.shortfalls}
        assert by_product[seed.cement].available == Decimal("1")
        assert by_product[seed.foil].available == Decimal("0")
        assert exc_info.value.total_missing == Decimal("7")


class TestDuplicateLines:
    def test_lines_for_one_pair_are_summed(self, put_stock, seed, services, test_actor_id):
        put_stock(seed.cement, seed.warehouse, 5)

        with pytest.raises(InsufficientStockError) as exc_info:
            services.booking.book(
                _request(
                    seed,
                    test_actor_id,
                    (seed.cement, seed.warehouse, 3),
                    (seed.cement, seed.warehouse, 3),
                )
            )
        assert exc_info.value.shortfalls[0].requested == Decimal("6")

    def test_summed_lines_that_fit_write_one_row_per_line(self, put_stock, seed, services, test_actor_id):
        put_stock(seed.cement, seed.warehouse, 6)

        batch = services.booking.book(
            _request(
                seed,
                test_actor_id,
                (seed.cement, seed.warehouse, 3),
                (seed.cement, seed.warehouse, 3),
            )
        )
        assert len(batch) == 2
        assert services.stock.balance(seed.cement, seed.warehouse) == Decimal("0")


class TestValidation:
    @pytest.mark.parametrize("quantity", ["0", "-1", "0.0000001", "NaN", "Infinity"])
    def test_bad_quantities_rejected(self, seed, services, test_actor_id, quantity):
        request = BookingRequest(
            project_id=seed.raaijmakers,
            actor_id=test_actor_id,
            lines=[BookingLine(seed.cement, seed.warehouse, Decimal(quantity))],
        )
        with pytest.raises(ValidationError):
            services.booking.book(request)

    def test_float_quantity_rejected(self, seed, services, test_actor_id):
        request = BookingRequest(
            project_id=seed.raaijmakers,
            actor_id=test_actor_id,
            lines=[BookingLine(seed.cement, seed.warehouse, 1.5)],
        )
        with pytest.raises(ValidationError):
            services.booking.validate(request)

    def test_empty_lines_rejected(self, seed, services, test_actor_id):
        with pytest.raises(ValidationError) as exc_info:
            services.booking.book(BookingRequest(seed.raaijmakers, test_actor_id, []))
        assert exc_info.value.field == "lines"

    def test_missing_project_rejected(self, seed, services, test_actor_id):
        request = BookingRequest(None, test_actor_id, [BookingLine(seed.cement, seed.warehouse, Decimal("1"))])
        with pytest.raises(ValidationError) as exc_info:
            services.booking.book(request)
        assert exc_info.value.field == "project_id"

    def test_line_without_location_rejected(self, seed, services, test_actor_id):
        request = BookingRequest(seed.raaijmakers, test_actor_id, [BookingLine(seed.cement, None, Decimal("1"))])
        with pytest.raises(ValidationError):
            services.booking.validate(request)

    def test_validation_failure_writes_nothing(self, seed, services, test_actor_id):
        with pytest.raises(ValidationError):
            services.booking.book(BookingRequest(seed.raaijmakers, test_actor_id, []))
        assert _journal_count(services.session) == 0

    def test_quantity_above_storable_maximum_rejected(self, seed, services, test_actor_id):
        request = BookingRequest(
            project_id=seed.raaijmakers,
            actor_id=test_actor_id,
            lines=[BookingLine(seed.cement, seed.warehouse, Decimal("100000000000000"))],
        )
        with pytest.raises(ValidationError) as exc_info:
            services.booking.book(request)
        assert exc_info.value.field == "lines[0].quantity"
        assert _journal_count(services.session) == 0

    def test_summed_lines_above_storable_maximum_rejected(self, seed, services, test_actor_id):
        request = BookingRequest(
            project_id=seed.raaijmakers,
            actor_id=test_actor_id,
            lines=[
                BookingLine(seed.cement, seed.warehouse, MAX_QUANTITY),
                BookingLine(seed.cement, seed.warehouse, MAX_QUANTITY),
            ],
        )
        with pytest.raises(ValidationError):
            services.booking.book(request)
        assert _journal_count(services.session) == 0


class TestReferences:
    def test_unknown_project(self, seed, services, test_actor_id):
        with pytest.raises(ProjectNotFoundError):
            services.booking.book(
                _request(seed, test_actor_id, (seed.cement, seed.warehouse, 1), project_id=uuid4())
            )

    def test_unknown_product(self, seed, services, test_actor_id):
        with pytest.raises(ProductNotFoundError):
            services.booking.book(_request(seed, test_actor_id, (uuid4(), seed.warehouse, 1)))

    def test_unknown_location(self, seed, services, test_actor_id):
        with pytest.raises(LocationNotFoundError):
            services.booking.book(_request(seed, test_actor_id, (seed.cement, uuid4(), 1)))

    def test_inactive_location(self, put_stock, seed, services, test_actor_id):
        put_stock(seed.cement, seed.van_2, 4)
        services.catalog.deactivate_location(seed.van_2, test_actor_id)
        with pytest.raises(InactiveReferenceError) as exc_info:
            services.booking.book(_request(seed, test_actor_id, (seed.cement, seed.van_2, 1)))
        assert exc_info.value.entity_type == "Location"


class TestJournalRows:
    def test_rows_share_batch_metadata_and_default_note(self, put_stock, seed, services, test_actor_id, clock):
        put_stock(seed.cement, seed.warehouse, 10)
        put_stock(seed.foil, seed.van_2, 10)

        batch = services.booking.book(
            _request(
                seed,
                test_actor_id,
                (seed.cement, seed.warehouse, 2),
                (seed.foil, seed.van_2, Decimal("1.5")),
            )
        )

        rows = [services.session.get(StockTransaction, tx_id) for tx_id in batch.transaction_ids]
        assert {row.batch_id for row in rows} == {batch.batch_id}
        assert {row.project_id for row in rows} == {seed.raaijmakers}
        assert {row.user_id for row in rows} == {test_actor_id}
        assert {row.effective_date for row in rows} == {clock.now().date()}
        assert all(row.type is TransactionType.OUT for row in rows)
        assert [row.quantity for row in rows] == [Decimal("-2"), Decimal("-1.5")]
        assert all(row.notes == "Afgeboekt naar project J. Raaijmakers" for row in rows)
        assert rows[0].seq < rows[1].seq

    def test_explicit_notes_and_effective_date_kept(self, put_stock, seed, services, test_actor_id):
        put_stock(seed.cement, seed.warehouse, 10)
        request = BookingRequest(
            project_id=seed.schuch,
            actor_id=test_actor_id,
            lines=[BookingLine(seed.cement, seed.warehouse, Decimal("1"))],
            notes="Materiaal gebruikt",
            effective_date=date(2025, 10, 1),
        )
        batch = services.booking.book(request)
        row = services.session.get(StockTransaction, batch.transaction_ids[0])
        assert row.notes == "Materiaal gebruikt"
        assert row.effective_date == date(2025, 10, 1)
        assert batch.effective_date == date(2025, 10, 1)
