"""
Module: inventory_kernel.db.types
Responsibility: Exact quantity column type and the helpers that normalize
    stock quantities.  Centralizes precision so that every model, service and
    selector stores and compares quantities identically.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats anywhere in the kernel.  Quantities are Decimal with at most
      QUANTITY_DECIMAL_PLACES fractional digits.
    - SQL arithmetic on quantities is exact on every backend: PostgreSQL uses
      NUMERIC(24, 6); SQLite, which has no exact decimal type, stores the
      quantity as a 64-bit integer count of 10^-6 units.  Conditional
      decrements (``quantity - :q``) and SUM() therefore never drift.

Failure modes:
    - ValueError when a quantity has more fractional digits than allowed
      or lies outside +/-MAX_QUANTITY.
    - TypeError when a float reaches the column.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from sqlalchemy import BigInteger, Numeric
from sqlalchemy.types import TypeDecorator

QUANTITY_DECIMAL_PLACES = 6
QUANTITY_PRECISION = 24
QUANTUM = Decimal(1).scaleb(-QUANTITY_DECIMAL_PLACES)
ZERO = Decimal("0")

# Largest magnitude both backends can hold: SQLite stores value * 10^6 in a
# signed 64-bit integer, PostgreSQL NUMERIC(24, 6) keeps 18 integer digits.
MAX_QUANTITY = min(
    Decimal(2**63 - 1).scaleb(-QUANTITY_DECIMAL_PLACES),
    Decimal(10) ** (QUANTITY_PRECISION - QUANTITY_DECIMAL_PLACES) - QUANTUM,
)


def normalize_quantity(value: Any) -> Decimal:
    """
    Convert a Decimal/int/str to a Decimal quantized to QUANTUM.

    Raises:
        TypeError: value is a float or another unsupported type.
        ValueError: value is not finite, carries more precision than
            QUANTITY_DECIMAL_PLACES, or exceeds MAX_QUANTITY in magnitude.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(f"Quantities must be Decimal, int or str, not {type(value).__name__}")
    if isinstance(value, (int, str)):
        value = Decimal(value)
    if not isinstance(value, Decimal):
        raise TypeError(f"Unsupported quantity type: {type(value).__name__}")
    if not value.is_finite():
        raise ValueError(f"Quantity must be finite, got {value}")
    if abs(value) > MAX_QUANTITY:
        raise ValueError(f"Quantity {value} exceeds the storable maximum of {MAX_QUANTITY}")
    quantized = value.quantize(QUANTUM, rounding=ROUND_HALF_UP)
    if quantized != value:
        raise ValueError(
            f"Quantity {value} has more than {QUANTITY_DECIMAL_PLACES} decimal places"
        )
    return quantized


class QuantityType(TypeDecorator):
    """
    Exact decimal quantity, portable across PostgreSQL and SQLite.

    Python side: always Decimal quantized to QUANTUM.
    PostgreSQL: NUMERIC(24, 6).
    SQLite: BIGINT holding value * 10^6.
    """

    impl = Numeric(QUANTITY_PRECISION, QUANTITY_DECIMAL_PLACES)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(BigInteger())
        return dialect.type_descriptor(
            Numeric(QUANTITY_PRECISION, QUANTITY_DECIMAL_PLACES, asdecimal=True)
        )

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        quantity = normalize_quantity(value)
        if dialect.name == "sqlite":
            return int(quantity.scaleb(QUANTITY_DECIMAL_PLACES))
        return quantity

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "sqlite":
            return Decimal(int(value)).scaleb(-QUANTITY_DECIMAL_PLACES).quantize(QUANTUM)
        return Decimal(value).quantize(QUANTUM)
