"""
Operator CLI tests.

Every command runs through main() against a fresh SQLite file, the way an
operator would call it; output is checked with capsys.
"""

import pytest

from inventory_config import CONFIG_ENV_VAR
from inventory_kernel.db.engine import reset_engine
from inventory_kernel.db.immutability import unregister_immutability_listeners
from inventory_services.cli import main

ACTOR = "00000000-0000-4000-8000-000000000001"

PRODUCTS = (
    "sku;name;category;unit;minimum_stock\r\n"
    "CEM-25KG;Cement 25kg;Bouwmaterialen;zak;8\r\n"
    "AFD-FOL-45;Afdekfolie 4x5m;Afdekmaterialen;rol;2\r\n"
)

BOOKINGS = (
    "Datum;Project;Product SKU;Aantal;Locatie;Opmerkingen\r\n"
    "14-10-2025;J. Raaijmakers;CEM-25KG;3;Magazijn Moordrecht;Fundering\r\n"
    "14-10-2025;J. Raaijmakers;CEM-25KG;1;Bus 99;\r\n"
)


@pytest.fixture
def cli(tmp_path, monkeypatch):
    """``cli(*args)`` runs main() with --db-url pointing at a temp database."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    url = f"sqlite:///{tmp_path / 'cli.db'}"

    def run(*args: str) -> int:
        return main(["--db-url", url, *args])

    yield run
    unregister_immutability_listeners()
    reset_engine()


@pytest.fixture
def stocked_db(cli, tmp_path, capsys):
    """Tables, two products, one location, one project, 10 cement in stock."""
    products = tmp_path / "products.csv"
    products.write_text(PRODUCTS, encoding="utf-8")
    assert cli("init-db") == 0
    assert cli("import-products", str(products), "--actor-id", ACTOR) == 0
    assert cli("add-location", "Magazijn Moordrecht", "--actor-id", ACTOR) == 0
    assert cli("add-project", "J. Raaijmakers", "--number", "2025-001") == 0
    assert cli("receive", "CEM-25KG", "Magazijn Moordrecht", "10", "--actor-id", ACTOR) == 0
    capsys.readouterr()
    return cli


def test_init_db(cli, capsys):
    assert cli("init-db") == 0
    assert "Tables created." in capsys.readouterr().out


def test_setup_commands_report_what_they_did(cli, tmp_path, capsys):
    products = tmp_path / "products.csv"
    products.write_text(PRODUCTS, encoding="utf-8")
    cli("init-db")

    cli("import-products", str(products), "--actor-id", ACTOR)
    cli("add-location", "Bus 2", "--type", "vehicle", "--license-plate", "VX-123-B", "--actor-id", ACTOR)
    cli("add-project", "A.S. Schuch", "--number", "2025-002")
    cli("receive", "AFD-FOL-45", "bus 2", "2,5", "--actor-id", ACTOR)

    out = capsys.readouterr().out
    assert "2 geaccepteerd" in out
    assert "Location Bus 2 registered" in out
    assert "Project A.S. Schuch" in out
    assert "AFD-FOL-45 @ Bus 2: 2,5 rol" in out


def test_import_bookings_reports_rejections(stocked_db, tmp_path, capsys):
    path = tmp_path / "bookings.csv"
    path.write_text(BOOKINGS, encoding="utf-8")

    assert stocked_db("import-bookings", str(path), "--actor-id", ACTOR) == 0

    out = capsys.readouterr().out
    assert "1 geaccepteerd, 1 afgewezen" in out
    assert "rij 3" in out
    assert "Bus 99" in out


def test_import_stock_into_location(stocked_db, tmp_path, capsys):
    path = tmp_path / "voorraad.csv"
    path.write_text(
        "SKU;Naam;Categorie;Voorraad\r\n"
        "AFD-FOL-45;Afdekfolie 4x5m;Afdekmaterialen;4\r\n"
        "XYZ-1;Onbekend;Overig;1\r\n",
        encoding="utf-8",
    )
    assert stocked_db("import-stock", str(path), "Magazijn Moordrecht", "--actor-id", ACTOR) == 0
    out = capsys.readouterr().out
    assert "1 geaccepteerd, 1 afgewezen" in out
    assert "rij 3" in out

    assert stocked_db("browse", "Magazijn Moordrecht") == 0
    assert "AFD-FOL-45" in capsys.readouterr().out


def test_import_stock_into_unknown_location(stocked_db, tmp_path, capsys):
    path = tmp_path / "voorraad.csv"
    path.write_text("SKU;Voorraad\r\nCEM-25KG;1\r\n", encoding="utf-8")
    assert stocked_db("import-stock", str(path), "Bus 99", "--actor-id", ACTOR) == 1
    assert capsys.readouterr().err.startswith("ERROR: ")


def test_browse_and_low_stock(stocked_db, tmp_path, capsys):
    path = tmp_path / "bookings.csv"
    path.write_text(BOOKINGS, encoding="utf-8")
    stocked_db("import-bookings", str(path), "--actor-id", ACTOR)
    capsys.readouterr()

    assert stocked_db("browse", "magazijn moordrecht") == 0
    browse = capsys.readouterr().out
    assert "CEM-25KG" in browse
    assert " 7 zak" in browse

    assert stocked_db("low-stock") == 0
    assert "Magazijn Moordrecht: CEM-25KG Cement 25kg 7 < 8 zak" in capsys.readouterr().out


def test_export(stocked_db, tmp_path, capsys):
    path = tmp_path / "bookings.csv"
    path.write_text(BOOKINGS, encoding="utf-8")
    stocked_db("import-bookings", str(path), "--actor-id", ACTOR)
    target = tmp_path / "export.csv"

    assert stocked_db("export", str(target), "--from", "2025-10-01", "--to", "2025-10-31") == 0

    assert "Exported 1 rows" in capsys.readouterr().out
    text = target.read_bytes().decode("utf-8")
    assert text.startswith("\ufeffDate;Project;Product;")
    assert "J. Raaijmakers (#2025-001);Cement 25kg (CEM-25KG)" in text
    assert ";Fundering\r\n" in text


def test_verify(stocked_db, capsys):
    assert stocked_db("verify") == 0
    assert "Balances match the journal." in capsys.readouterr().out


def test_template(cli, tmp_path, capsys):
    target = tmp_path / "template.csv"
    assert cli("template", str(target)) == 0
    assert target.read_bytes().startswith(b"\xef\xbb\xbfDatum;Project;Product SKU;")


@pytest.mark.parametrize(
    "args",
    [
        ("receive", "XYZ-1", "Magazijn Moordrecht", "1", "--actor-id", ACTOR),
        ("receive", "CEM-25KG", "Bus 99", "1", "--actor-id", ACTOR),
        ("receive", "CEM-25KG", "Magazijn Moordrecht", "veel", "--actor-id", ACTOR),
        ("receive", "CEM-25KG", "Magazijn Moordrecht", "0", "--actor-id", ACTOR),
        ("browse", "Bus 99"),
    ],
)
def test_errors_exit_with_one(stocked_db, capsys, args):
    assert stocked_db(*args) == 1
    assert capsys.readouterr().err.startswith("ERROR: ")


def test_missing_config_file(cli, tmp_path, capsys):
    assert main(["--config", str(tmp_path / "missing.yaml"), "verify"]) == 1
    assert "ERROR: " in capsys.readouterr().err


def test_invalid_actor_id_is_a_usage_error(cli):
    with pytest.raises(SystemExit) as exc_info:
        cli("receive", "CEM-25KG", "Magazijn Moordrecht", "1", "--actor-id", "jan")
    assert exc_info.value.code == 2
