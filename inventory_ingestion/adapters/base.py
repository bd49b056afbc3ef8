"""
Row source protocol for bulk import files.

Contract:
    An adapter turns one import file into ``(line_number, record)`` pairs,
    where ``record`` maps the cleaned header names to raw cell text and
    ``line_number`` is the physical file line the row ends on (header = 1).
    Rejections in an ImportReport quote these numbers, so operators can find
    the offending line in a spreadsheet.

Architecture: inventory_ingestion/adapters. File I/O only, no DB or kernel imports.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Protocol, runtime_checkable


@runtime_checkable
class SourceAdapter(Protocol):
    """Reads an import file as numbered raw records."""

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        ...

    def read_numbered(
        self, source_path: Path, options: dict[str, Any]
    ) -> Iterator[tuple[int, dict[str, Any]]]:
        ...

    def probe(self, source_path: Path, options: dict[str, Any]) -> "SourceProbe":
        ...


@dataclass(frozen=True)
class SourceProbe:
    """
    Header and size of an import file, read before anything is booked.

    row_count counts data rows only; blank lines are not rows.
    """

    columns: tuple[str, ...]
    row_count: int

    def missing_columns(
        self,
        layout: Mapping[str, tuple[str, ...]],
        required: Iterable[str],
    ) -> tuple[str, ...]:
        """
        Required canonical fields without a header column.

        A field is present when its canonical name or any of its accepted
        header names in ``layout`` appears in the header (case-insensitive).
        """
        present = {c.strip().lower() for c in self.columns}
        return tuple(
            name
            for name in required
            if not any(alias.lower() in present for alias in (name, *layout.get(name, ())))
        )
