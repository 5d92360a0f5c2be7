# backend/tests/test_stock_rules.py
from datetime import date, datetime

import pytest

from utils.gemini import DEFAULT_LOCATION, match_category, parse_model_output
from utils.serials import split_serials
from utils.stock_status import derive_status
from utils.warranty import warranty_expiry


# --- status derivation ---

@pytest.mark.parametrize("quantity, min_stock, expected", [
    (0, 0, "out-of-stock"),
    (0, 5, "out-of-stock"),
    (1, 5, "low-stock"),
    (5, 5, "low-stock"),     # at the threshold counts as low
    (6, 5, "in-stock"),
    (1, 0, "in-stock"),
])
def test_derive_status_boundaries(quantity, min_stock, expected):
    assert derive_status(quantity, min_stock) == expected


# --- warranty ---

def test_warranty_months_crosses_year():
    assert warranty_expiry("18 Months", date(2024, 1, 1)) == date(2025, 7, 1)


@pytest.mark.parametrize("text, expected", [
    ("3 Years", date(2027, 1, 1)),
    ("1 year warranty", date(2025, 1, 1)),
    ("2 weeks", date(2024, 1, 15)),
    ("10 DAYS", date(2024, 1, 11)),
    ("12 Months", date(2025, 1, 1)),
])
def test_warranty_units(text, expected):
    assert warranty_expiry(text, date(2024, 1, 1)) == expected


def test_warranty_month_end_is_calendar_aware():
    assert warranty_expiry("1 month", date(2024, 1, 31)) == date(2024, 2, 29)


def test_warranty_accepts_datetime_start():
    assert warranty_expiry("1 Year", datetime(2024, 3, 10, 15, 30)) == date(2025, 3, 10)


@pytest.mark.parametrize("text", ["", None, "lifetime", "Years 3", "N/A"])
def test_warranty_unparseable_is_none(text):
    assert warranty_expiry(text, date(2024, 1, 1)) is None


# --- serials ---

def test_split_serials_trims_and_dedupes():
    assert split_serials(" SN1, SN2,,SN1 , ") == ["SN1", "SN2"]


def test_split_serials_empty():
    assert split_serials("") == []
    assert split_serials(None) == []


# --- extraction clean-up ---

def test_match_category_falls_back_to_empty():
    known = ["Electronics", "Furniture"]
    assert match_category("electronics", known) == "Electronics"
    assert match_category("Furniture", known) == "Furniture"
    assert match_category("Groceries", known) == ""
    assert match_category(None, known) == ""


def test_parse_model_output_strips_fences_and_defaults():
    text = '```json\n[{"name": "Mouse", "category": "ELECTRONICS", "serialNumber": "M-1"}, {"name": "Desk", "quantity": 2}]\n```'
    items = parse_model_output(text, ["Electronics"])

    assert [i.name for i in items] == ["Mouse", "Desk"]
    mouse, desk = items
    assert mouse.category == "Electronics"
    assert mouse.quantity == 1
    assert mouse.min_stock == 5
    assert mouse.serial_number == "M-1"
    assert mouse.location == DEFAULT_LOCATION
    assert desk.quantity == 2
    assert desk.category == ""


def test_parse_model_output_single_object():
    items = parse_model_output('{"name": "Chair", "supplier": "IKEA"}', [])
    assert len(items) == 1
    assert items[0].supplier == "IKEA"


def test_parse_model_output_garbage_gives_placeholder():
    items = parse_model_output("Sorry, I cannot read this invoice.", ["Electronics"])
    assert len(items) == 1
    assert items[0].name == ""
    assert items[0].description == "Failed to extract data from invoice"
