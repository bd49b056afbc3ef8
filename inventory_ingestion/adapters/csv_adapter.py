"""
CSV source adapter.

Uses csv.reader. Options: delimiter and encoding. Handles BOM via utf-8-sig
when encoding is utf-8. The first line is always the header; header names are
stripped of surrounding whitespace. Fully blank lines are skipped. Streams rows.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Iterator

from inventory_ingestion.adapters.base import SourceProbe


def _get_encoding(options: dict[str, Any]) -> str:
    enc = options.get("encoding", "utf-8")
    if enc.lower() in ("utf-8", "utf8"):
        return "utf-8-sig"  # Strip BOM if present
    return enc


def _is_blank(values) -> bool:
    return all(v is None or not str(v).strip() for v in values)


def _clean_header(fieldnames) -> list[str]:
    return [(name or "").strip() for name in fieldnames]


class CsvSourceAdapter:
    """Read CSV files as one dict per row. Streams; does not load entire file."""

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        for _, record in self.read_numbered(source_path, options):
            yield record

    def read_numbered(
        self, source_path: Path, options: dict[str, Any]
    ) -> Iterator[tuple[int, dict[str, Any]]]:
        """Like read(), paired with the physical line number the row ends on."""
        with Path(source_path).open("r", encoding=_get_encoding(options), newline="") as f:
            reader = csv.reader(f, delimiter=options.get("delimiter", ","))
            header = next(reader, None)
            if header is None:
                return
            columns = _clean_header(header)
            for row in reader:
                if _is_blank(row):
                    continue
                record = dict(zip(columns, row))
                # Short rows get empty trailing fields, like DictReader's restval
                for name in columns[len(row):]:
                    record[name] = ""
                yield reader.line_num, record

    def probe(self, source_path: Path, options: dict[str, Any]) -> SourceProbe:
        """Header columns and data row count; an empty file has no columns."""
        with Path(source_path).open("r", encoding=_get_encoding(options), newline="") as f:
            header = next(csv.reader(f, delimiter=options.get("delimiter", ",")), [])
        row_count = sum(1 for _ in self.read(source_path, options))
        return SourceProbe(columns=tuple(_clean_header(header)), row_count=row_count)
