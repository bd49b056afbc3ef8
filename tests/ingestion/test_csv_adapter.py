"""
CSV adapter tests.

Tests cover:
- UTF-8 BOM stripped from the first header
- Physical line numbers (header is line 1, multi-line fields counted)
- Blank and separator-only lines skipped
- Short rows padded, header names trimmed
- Probe header and missing required columns by any accepted header name
"""

from inventory_ingestion.adapters.base import SourceAdapter
from inventory_ingestion.adapters.csv_adapter import CsvSourceAdapter
from inventory_ingestion.domain.types import BOOKING_COLUMNS, BOOKING_REQUIRED

CONTENT = (
    "\ufeff Datum ;Project;Product SKU;Aantal;Locatie;Opmerkingen\r\n"
    "14-10-2025;J. Raaijmakers;CEM-25KG;3;Bus 2;\r\n"
    "\r\n"
    "14-10-2025;A.S. Schuch;AFD-FOL-45;1,5;Bus 12\r\n"
    ";;;;;\r\n"
    '"14-10-2025";"J. Raaijmakers";"CEM-25KG";"2";"Bus 2";"regel 1\r\nregel 2"\r\n'
)


def _write(tmp_path, content=CONTENT, name="boekingen.csv"):
    path = tmp_path / name
    path.write_bytes(content.encode("utf-8"))
    return path


def test_bom_and_padding_stripped_from_headers(tmp_path):
    rows = list(CsvSourceAdapter().read(_write(tmp_path), {"delimiter": ";"}))
    assert list(rows[0]) == ["Datum", "Project", "Product SKU", "Aantal", "Locatie", "Opmerkingen"]
    assert rows[0]["Datum"] == "14-10-2025"


def test_line_numbers_follow_the_file(tmp_path):
    numbered = list(CsvSourceAdapter().read_numbered(_write(tmp_path), {"delimiter": ";"}))
    assert [line for line, _ in numbered] == [2, 4, 7]


def test_blank_lines_skipped(tmp_path):
    rows = list(CsvSourceAdapter().read(_write(tmp_path), {"delimiter": ";"}))
    assert len(rows) == 3
    assert [r["Product SKU"] for r in rows] == ["CEM-25KG", "AFD-FOL-45", "CEM-25KG"]


def test_short_row_padded(tmp_path):
    rows = list(CsvSourceAdapter().read(_write(tmp_path), {"delimiter": ";"}))
    assert rows[1]["Opmerkingen"] == ""
    assert rows[1]["Aantal"] == "1,5"


def test_quoted_multiline_field(tmp_path):
    rows = list(CsvSourceAdapter().read(_write(tmp_path), {"delimiter": ";"}))
    assert rows[2]["Opmerkingen"] == "regel 1\r\nregel 2"


def test_header_only_file(tmp_path):
    path = _write(tmp_path, "Datum;Project\r\n")
    assert list(CsvSourceAdapter().read(path, {"delimiter": ";"})) == []


def test_empty_file(tmp_path):
    path = _write(tmp_path, "")
    assert list(CsvSourceAdapter().read(path, {"delimiter": ";"})) == []


def test_probe(tmp_path):
    probe = CsvSourceAdapter().probe(_write(tmp_path), {"delimiter": ";"})
    assert probe.row_count == 3
    assert probe.columns[0] == "Datum"
    assert probe.columns[-1] == "Opmerkingen"


def test_probe_of_empty_file(tmp_path):
    probe = CsvSourceAdapter().probe(_write(tmp_path, ""), {"delimiter": ";"})
    assert probe.columns == ()
    assert probe.row_count == 0


def test_missing_columns_accepts_any_header_alias(tmp_path):
    path = _write(tmp_path, "datum;PROJECTNAAM;Aantal\r\n14-10-2025;J. Raaijmakers;3\r\n")
    probe = CsvSourceAdapter().probe(path, {"delimiter": ";"})
    assert probe.missing_columns(BOOKING_COLUMNS, BOOKING_REQUIRED) == ("sku", "location")


def test_csv_adapter_satisfies_protocol():
    assert isinstance(CsvSourceAdapter(), SourceAdapter)
