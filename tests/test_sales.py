from datetime import date

import pytest

import utils.file_manager as fm
from models.aggregation import group_by_field
from models.errors import ValidationError
from models.metrics import margin_percent
from models.sales import build_sale, delete_sale, record_sale, sales_for_date, sales_in_range
from models.store import RecordStore

TODAY = date(2024, 1, 10)

BEEF = {"customerName": "A", "productName": "Beef", "weight": 2, "costPrice": 100, "sellingPrice": 150}

def setup_env(tmp_path, monkeypatch):
    monkeypatch.setattr(fm, "_DATA_DIR", tmp_path / "data")
    fm.ensure_defaults()
    return RecordStore()


def test_sales_record_and_query(tmp_path, monkeypatch):
    store = setup_env(tmp_path, monkeypatch)
    saved = record_sale(store, BEEF, "2024-01-01", today=TODAY)

    rows = sales_for_date(store, "2024-01-01")
    assert rows == [saved]
    assert rows[0]["profit"] == 50
    for field, value in BEEF.items():
        assert rows[0][field] == value

    buckets = group_by_field(rows, "productName")
    assert len(buckets) == 1
    beef = buckets[0]
    assert beef["name"] == "Beef"
    assert beef["count"] == 1 and beef["totalProfit"] == 50
    assert margin_percent(beef) == 50.0


def test_names_are_trimmed_and_numbers_coerced():
    sale = build_sale({
        "customerName": "  ร้านA ", "productName": " Pork\t", "weight": "2.5",
        "costPrice": "100", "sellingPrice": "90",
    }, "2024-01-01", today=TODAY)
    assert sale["customerName"] == "ร้านA"
    assert sale["productName"] == "Pork"
    assert sale["weight"] == 2.5
    assert sale["profit"] == -10


@pytest.mark.parametrize("field", ["customerName", "productName", "weight", "costPrice", "sellingPrice"])
def test_missing_field_rejected(field):
    data = dict(BEEF)
    data[field] = "" if field.endswith("Name") else None
    with pytest.raises(ValidationError) as exc:
        build_sale(data, "2024-01-01", today=TODAY)
    assert exc.value.field == field


def test_negative_and_non_numeric_amounts_rejected():
    with pytest.raises(ValidationError):
        build_sale(dict(BEEF, costPrice=-1), "2024-01-01", today=TODAY)
    with pytest.raises(ValidationError):
        build_sale(dict(BEEF, weight="heavy"), "2024-01-01", today=TODAY)


def test_zero_amounts_accepted():
    sale = build_sale(dict(BEEF, weight=0, costPrice=0), "2024-01-01", today=TODAY)
    assert sale["weight"] == 0 and sale["profit"] == 150


def test_future_date_rejected_backdating_allowed():
    with pytest.raises(ValidationError) as exc:
        build_sale(BEEF, "2024-01-11", today=TODAY)
    assert exc.value.field == "saleDate"
    assert build_sale(BEEF, "2023-06-01", today=TODAY)["saleDate"] == "2023-06-01"


def test_bad_date_rejected():
    with pytest.raises(ValidationError):
        build_sale(BEEF, "01/01/2024", today=TODAY)


def test_failed_validation_saves_nothing(tmp_path, monkeypatch):
    store = setup_env(tmp_path, monkeypatch)
    with pytest.raises(ValidationError):
        record_sale(store, dict(BEEF, productName=" "), "2024-01-01", today=TODAY)
    assert store.list_all("sales") == []


def test_delete_sale(tmp_path, monkeypatch):
    store = setup_env(tmp_path, monkeypatch)
    saved = record_sale(store, BEEF, "2024-01-01", today=TODAY)
    assert delete_sale(store, saved["id"]) is True
    assert sales_in_range(store, "2024-01-01", "2024-01-10") == []
