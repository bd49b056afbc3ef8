"""Catalog import: create or update products by SKU."""

from decimal import Decimal

import pytest

from inventory_kernel.exceptions import ProductNotFoundError


def product_row(sku="SCH-25", name="Schroeven 4x25", category="Bevestiging", unit="doos",
                minimum_stock="2", ean="", price="", supplier=""):
    return {
        "sku": sku,
        "name": name,
        "category": category,
        "unit": unit,
        "minimum_stock": minimum_stock,
        "ean": ean,
        "price": price,
        "supplier": supplier,
    }


def test_new_product_created(services, test_actor_id):
    report = services.product_import.import_batch(
        [product_row(minimum_stock="2,5", price="12,95", ean="8712345678906", supplier="Würth")],
        test_actor_id,
    )

    assert report.accepted == 1
    assert report.rejected == ()
    product = services.catalog.find_product(sku="SCH-25")
    assert product.name == "Schroeven 4x25"
    assert product.minimum_stock == Decimal("2.5")
    assert product.price == Decimal("12.95")
    assert product.ean == "8712345678906"
    assert product.supplier == "Würth"
    assert product.is_active


def test_existing_sku_updated(services, seed, test_actor_id):
    report = services.product_import.import_batch(
        [product_row(sku="CEM-25KG", name="Cement 25 kg", category="Bouwmaterialen",
                     unit="zak", minimum_stock="8")],
        test_actor_id,
    )

    assert report.accepted == 1
    product = services.catalog.find_product(sku="CEM-25KG")
    assert product.id == seed.cement
    assert product.name == "Cement 25 kg"
    assert product.minimum_stock == Decimal("8")


def test_empty_optional_fields_leave_existing_values(services, seed, test_actor_id):
    services.product_import.import_batch(
        [product_row(sku="CEM-25KG", name="Cement 25kg", category="Bouwmaterialen",
                     unit="zak", minimum_stock="")],
        test_actor_id,
    )
    assert services.catalog.find_product(sku="CEM-25KG").minimum_stock == Decimal("5")


@pytest.mark.parametrize(
    "overrides, code",
    [
        ({"name": ""}, "MISSING_FIELD"),
        ({"unit": ""}, "MISSING_FIELD"),
        ({"minimum_stock": "veel"}, "INVALID_NUMBER"),
        ({"price": "1.2.3"}, "INVALID_NUMBER"),
        ({"minimum_stock": "-1"}, "VALIDATION_ERROR"),
    ],
)
def test_bad_rows_rejected(services, test_actor_id, overrides, code):
    report = services.product_import.import_batch(
        [product_row(**overrides), product_row(sku="SCH-30", name="Schroeven 4x30")],
        test_actor_id,
    )
    assert report.accepted == 1
    assert [(r.row_number, r.code) for r in report.rejected] == [(2, code)]


def test_duplicate_ean_rejected_without_aborting(services, test_actor_id):
    report = services.product_import.import_batch(
        [
            product_row(sku="A-1", ean="8712345678906"),
            product_row(sku="A-2", ean="8712345678906"),
            product_row(sku="A-3"),
        ],
        test_actor_id,
    )
    assert report.accepted == 2
    assert [(r.row_number, r.code) for r in report.rejected] == [(3, "DUPLICATE_REFERENCE")]
    assert {p.sku for p in services.catalog.list_products()} >= {"A-1", "A-3"}


def test_file_without_name_column_rejected_before_any_row(services, test_actor_id, tmp_path):
    path = tmp_path / "producten.csv"
    path.write_text(
        "SKU;Categorie;Eenheid\r\nSCH-25;Bevestiging;doos\r\n", encoding="utf-8"
    )
    report = services.product_import.import_file(path, test_actor_id)
    assert [(r.row_number, r.code) for r in report.rejected] == [(1, "MISSING_COLUMNS")]
    assert "Naam" in report.rejected[0].reason
    with pytest.raises(ProductNotFoundError):
        services.catalog.find_product(sku="SCH-25")
