import asyncio
import json

import utils.file_manager as fm
from mcp_server import create_server
from models.errors import StorageError
from models.store import RecordStore

SALE = {"customerName": "A", "productName": "Beef", "weight": 2, "costPrice": 100,
        "sellingPrice": 150, "saleDate": "2024-01-01"}

def setup_env(tmp_path, monkeypatch):
    monkeypatch.setattr(fm, "_DATA_DIR", tmp_path / "data")
    fm.ensure_defaults()
    fm.update_config({"clock": {"fixed_today": "2024-01-10"}})
    store = RecordStore()
    return store, create_server(store)

def call(server, name, **kwargs):
    async def _call():
        tool = await server.get_tool(name)
        return await tool.fn(**kwargs)
    result = asyncio.run(_call())
    [item] = result["content"]
    assert item["type"] == "text"
    return json.loads(item["text"])


def test_add_sale_and_read_back(tmp_path, monkeypatch):
    store, server = setup_env(tmp_path, monkeypatch)
    sale = call(server, "add_sale", arg=json.dumps(SALE))["sale"]
    assert sale["profit"] == 50
    day = call(server, "sales_for_day", day="2024-01-01")
    assert day["sales"] == [sale]
    assert day["totals"]["totalProfit"] == 50
    assert call(server, "status")["counts"] == {"sales": 1, "purchases": 0}


def test_invalid_json_argument(tmp_path, monkeypatch):
    store, server = setup_env(tmp_path, monkeypatch)
    assert call(server, "add_sale", arg="{broken") == {"error": "Invalid JSON argument"}
    assert call(server, "summary_tool", arg="[1, 2]") == {"error": "Invalid JSON argument"}
    assert store.list_all("sales") == []


def test_validation_error_payload(tmp_path, monkeypatch):
    store, server = setup_env(tmp_path, monkeypatch)
    body = call(server, "add_sale", arg=json.dumps(dict(SALE, productName="")))
    assert body["field"] == "productName" and "error" in body


def test_summary_rejects_inverted_range(tmp_path, monkeypatch):
    store, server = setup_env(tmp_path, monkeypatch)
    body = call(server, "summary_tool", arg=json.dumps({"start": "2024-02-10", "end": "2024-02-01"}))
    assert body["field"] == "start" and "error" in body


def test_summary_presets(tmp_path, monkeypatch):
    store, server = setup_env(tmp_path, monkeypatch)
    summary = call(server, "summary_tool", arg=json.dumps({"days": 7}))["summary"]
    assert (summary["start"], summary["end"]) == ("2024-01-04", "2024-01-10")
    assert summary["dayCount"] == 7
    assert call(server, "summary_tool", arg=json.dumps({"days": "week"}))["field"] == "days"


def test_delete_tools_need_confirmation(tmp_path, monkeypatch):
    store, server = setup_env(tmp_path, monkeypatch)
    sale = call(server, "add_sale", arg=json.dumps(SALE))["sale"]
    assert call(server, "delete_sale_tool", sale_id=sale["id"]) == {"deleted": False}
    assert len(store.list_all("sales")) == 1
    assert call(server, "delete_sale_tool", sale_id=sale["id"], confirm=True) == {"deleted": True}
    assert store.list_all("sales") == []

    purchase = call(server, "add_purchase", arg=json.dumps({
        "supplierName": "Farm", "productName": "Pork", "weight": 40, "costPrice": 8000,
        "receiveDate": "2024-01-09"}))["purchase"]
    assert call(server, "delete_purchase_tool", purchase_id=purchase["id"]) == {"deleted": False}
    assert call(server, "delete_purchase_tool", purchase_id=purchase["id"], confirm=True) == {"deleted": True}


def test_delete_reports_storage_failure(tmp_path, monkeypatch):
    store, server = setup_env(tmp_path, monkeypatch)

    def fail(kind, record_id):
        raise StorageError("Could not save sales: disk full")

    monkeypatch.setattr(store, "delete_by_id", fail)
    body = call(server, "delete_sale_tool", sale_id="x", confirm=True)
    assert body == {"error": "Could not save sales: disk full"}


def test_reports(tmp_path, monkeypatch):
    store, server = setup_env(tmp_path, monkeypatch)
    call(server, "add_sale", arg=json.dumps(SALE))
    board = call(server, "dashboard_tool")["dashboard"]
    assert len(board["chart"]) == 10
    products = call(server, "products_tool", arg=json.dumps({"sort": "count"}))
    assert products["products"][0]["marginPercent"] == 50.0
    half = call(server, "products_tool", arg=json.dumps({"start": "2024-01-01"}))
    assert half["field"] == "end"
    purchases = call(server, "purchase_summary_tool")["summary"]
    assert purchases["products"] == []
