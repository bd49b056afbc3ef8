"""
Pure transaction filter for reports and exports.

ZERO I/O.  ZERO hidden state: the same input sequence and criteria always
yield the same output, lazily and in input order.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from inventory_kernel.domain.dtos import DateRange, TransactionView


def filter_transactions(
    transactions: Iterable[TransactionView],
    date_range: DateRange | None = None,
    search_text: str | None = None,
) -> Iterator[TransactionView]:
    """
    Keep views whose effective date lies in ``date_range`` (inclusive) and
    that contain ``search_text`` in any searchable field.

    A blank search text and a missing range match everything.
    """
    needle = (search_text or "").strip()
    for view in transactions:
        if date_range is not None and not date_range.contains(view.effective_date):
            continue
        if needle and not view.matches_text(needle):
            continue
        yield view
