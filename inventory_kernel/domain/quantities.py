"""
Quantity rules for booking lines.

Responsibility:
    Turns caller-supplied quantities into validated Decimals and sums
    duplicate (product, location) lines before stock is checked.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  Raises the kernel ValidationError so
    BookingService can reject a request before touching the store.
"""

from collections.abc import Iterable
from decimal import Decimal, InvalidOperation
from uuid import UUID

from inventory_kernel.db.types import ZERO, normalize_quantity
from inventory_kernel.domain.dtos import BookingLine
from inventory_kernel.exceptions import ValidationError


def validate_positive_quantity(value, field: str = "quantity") -> Decimal:
    """
    Return ``value`` as an exact Decimal, or raise ValidationError.

    Rejects floats, non-numbers, NaN/Infinity, zero, negatives, values
    with more than QUANTITY_DECIMAL_PLACES fractional digits and values
    above MAX_QUANTITY.
    """
    try:
        quantity = normalize_quantity(value)
    except TypeError as exc:
        raise ValidationError(str(exc), field=field) from exc
    except InvalidOperation as exc:
        raise ValidationError(f"{field} must be a number, got {value!r}", field=field) from exc
    except ValueError as exc:
        raise ValidationError(f"{field}: {exc}", field=field) from exc
    if quantity <= ZERO:
        raise ValidationError(f"{field} must be greater than zero, got {quantity}", field=field)
    return quantity


def sum_lines(lines: Iterable[BookingLine]) -> dict[tuple[UUID, UUID], Decimal]:
    """
    Sum quantities per (product_id, location_id), keeping first-seen order.

    Two lines for the same pair must be checked against the balance as one
    request, otherwise each could pass on its own and together oversell.
    """
    totals: dict[tuple[UUID, UUID], Decimal] = {}
    for line in lines:
        key = (line.product_id, line.location_id)
        totals[key] = totals.get(key, ZERO) + line.quantity
    return totals
