"""
Value parsing for import rows: locale dates and locale decimals.

Architecture: inventory_ingestion/domain. ZERO I/O.

The decimal separator follows the CSV field separator: a ``;`` file uses a
decimal comma (``3,5``), a ``,`` file uses a decimal point (``3.5``).
Thousands separators are accepted only in well-formed groups of three, so a
stray point in a decimal-comma file is rejected instead of silently scaling
the quantity by ten.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

DEFAULT_DATE_FORMAT = "%d-%m-%Y"

_GROUPED = {
    ".": re.compile(r"[+-]?\d{1,3}(?:\.\d{3})+"),
    ",": re.compile(r"[+-]?\d{1,3}(?:,\d{3})+"),
}


def decimal_separator_for(field_separator: str) -> str:
    """The decimal separator that pairs with a CSV field separator."""
    return "," if field_separator == ";" else "."


def parse_date(text: str, date_format: str = DEFAULT_DATE_FORMAT) -> date:
    """
    Parse a locale date (default dd-mm-yyyy).

    Raises:
        ValueError: empty or malformed value.
    """
    text = (text or "").strip()
    if not text:
        raise ValueError("date is empty")
    try:
        return datetime.strptime(text, date_format).date()
    except ValueError as exc:
        raise ValueError(f"invalid date {text!r}, expected {date_format}") from exc


def parse_decimal(text: str, decimal_separator: str = ",") -> Decimal:
    """
    Parse a locale-formatted number into an exact Decimal.

    Raises:
        ValueError: empty, malformed or non-finite value.
    """
    raw = (text or "").strip().replace("\u00a0", "").replace(" ", "")
    if not raw:
        raise ValueError("value is empty")
    thousands = "." if decimal_separator == "," else ","

    integer_part, has_fraction, fraction = raw.partition(decimal_separator)
    if thousands in fraction:
        raise ValueError(f"invalid number {text!r}")
    if thousands in integer_part:
        if not _GROUPED[thousands].fullmatch(integer_part):
            raise ValueError(f"invalid number {text!r}")
        integer_part = integer_part.replace(thousands, "")
    normalized = integer_part + ("." + fraction if has_fraction else "")

    try:
        value = Decimal(normalized)
    except InvalidOperation as exc:
        raise ValueError(f"invalid number {text!r}") from exc
    if not value.is_finite():
        raise ValueError(f"invalid number {text!r}")
    return value

