"""Tests for catalog import from CSV uploads."""

import pytest

from pricematch.config import EngineSettings, ImportConfig
from pricematch.error_handling import EmptyInputError, MissingRequiredFieldError, RowParseWarning
from pricematch.ingestion import CatalogImporter, parse_number


CATALOG_CSV = (
    "Product Name,SKU,Price,Cost,Stock\n"
    "USB-C Cable,USB-1,12.50,5,100\n"
    '"Charger, 65W",CHG-65,"1,299.00",800,7\n'
    "Mouse,MOU-1,abc,3,1\n"
    "Keyboard,,45,20,3\n"
    "Headset,HS-1,59.90,oops,2\n"
    "USB-C Cable copy,USB-1,13,5,1\n"
    '"Broken row,BR-1,10,5,1\n'
    "Webcam,CAM-1,39,25,\n"
)


@pytest.fixture
def importer():
    return CatalogImporter(settings=EngineSettings(importing=ImportConfig(default_currency="EUR")))


def test_import_builds_products_with_mapping(importer):
    result = importer.import_csv(CATALOG_CSV)

    assert result.mapping.to_dict() == {
        "name": "Product Name",
        "sku": "SKU",
        "price": "Price",
        "cost": "Cost",
        "inventory": "Stock",
    }
    skus = [p.sku for p in result.products]
    assert skus == ["USB-1", "CHG-65", "HS-1", "CAM-1"]

    cable = result.products[0]
    assert cable.id == "USB-1"
    assert cable.name == "USB-C Cable"
    assert cable.current_price == 12.5
    assert cable.cost == 5
    assert cable.inventory == 100
    assert cable.currency == "EUR"
    assert cable.margin_percent == pytest.approx(60.0)

    charger = result.products[1]
    assert charger.name == "Charger, 65W"
    assert charger.current_price == 1299.0


def test_bad_rows_are_reported_not_fatal(importer):
    result = importer.import_csv(CATALOG_CSV)
    summary = result.report.summary()

    # invalid price, missing sku, invalid cost, duplicate sku, unbalanced quote
    assert result.report.counts["RowParseWarning"] == 5
    assert summary["counts"]["rows_imported"] == 4
    assert all(isinstance(w, RowParseWarning) for w in result.report.warnings)

    headset = next(p for p in result.products if p.sku == "HS-1")
    assert headset.cost is None
    assert headset.margin_percent is None

    webcam = next(p for p in result.products if p.sku == "CAM-1")
    assert webcam.inventory is None


def test_missing_required_mapping_aborts_import(importer):
    with pytest.raises(MissingRequiredFieldError) as exc_info:
        importer.import_csv("Title,Colour\nWidget,Red\n")

    assert exc_info.value.missing == ["sku", "price"]


def test_manual_override_fixes_unmapped_field(importer):
    text = "Title,Reference,Amount\nWidget,W-1,10\n"

    result = importer.import_csv(text, overrides={"sku": "Reference", "price": "Amount"})

    assert [(p.sku, p.current_price) for p in result.products] == [("W-1", 10.0)]


def test_empty_upload_aborts_import(importer):
    with pytest.raises(EmptyInputError):
        importer.import_csv("\n\n")


def test_explicit_currency_wins(importer):
    result = importer.import_csv("name,sku,price\nWidget,W-1,10\n", currency="CZK")

    assert result.products[0].currency == "CZK"


def test_thousands_separated_price_imports_in_full(importer):
    result = importer.import_csv('name,sku,price\nLaptop,L1,"1,234"\nCable,C1,"12,50"\n')

    assert [(p.sku, p.current_price) for p in result.products] == [("L1", 1234.0), ("C1", 12.5)]
    assert result.report.warning_count == 0


@pytest.mark.parametrize("text,expected", [
    ("12.50", 12.5),
    ("$1,234.00", 1234.0),
    ("$1,234", 1234.0),
    ("1,234,567", 1234567.0),
    ("12,50", 12.5),
    ("€ 99", 99.0),
    ("199 Kč", 199.0),
    ("", None),
    ("abc", None),
    ("nan", None),
    ("inf", None),
])
def test_parse_number(text, expected):
    assert parse_number(text) == expected
