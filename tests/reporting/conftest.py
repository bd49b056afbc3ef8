"""Builders for pure reporting tests (no database)."""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from inventory_kernel.domain.dtos import TransactionView
from inventory_kernel.models.stock import TransactionType

USER_ID = UUID("00000000-0000-4000-8000-000000000001")


@pytest.fixture
def make_view():
    """``make_view(**overrides)`` -> TransactionView for a cement booking."""
    seq = iter(range(1, 1000))

    def _make(**overrides) -> TransactionView:
        values = dict(
            id=uuid4(),
            seq=next(seq),
            created_at=datetime(2025, 10, 14, 9, 0, tzinfo=timezone.utc),
            effective_date=date(2025, 10, 14),
            transaction_type=TransactionType.OUT,
            quantity=Decimal("-3"),
            product_id=uuid4(),
            product_name="Cement 25kg",
            product_sku="CEM-25KG",
            product_category="Bouwmaterialen",
            product_unit="zak",
            location_id=uuid4(),
            location_name="Magazijn Moordrecht",
            user_id=USER_ID,
            batch_id=uuid4(),
            project_id=uuid4(),
            project_name="J. Raaijmakers",
            project_number="2025-001",
            notes="Afgeboekt naar project J. Raaijmakers",
        )
        values.update(overrides)
        return TransactionView(**values)

    return _make
