import json

import pytest

import utils.file_manager as fm
from models.store import RecordStore

def setup_env(tmp_path, monkeypatch):
    monkeypatch.setattr(fm, "_DATA_DIR", tmp_path / "data")
    fm.ensure_defaults()
    return RecordStore()


def test_insert_assigns_id_and_created_at(tmp_path, monkeypatch):
    store = setup_env(tmp_path, monkeypatch)
    rec = store.insert("sales", {"customerName": "A", "saleDate": "2024-01-01"})
    assert rec["id"] and rec["createdAt"].endswith("Z")
    assert store.list_all("sales") == [rec]


def test_insert_persists_whole_collection_newest_first(tmp_path, monkeypatch):
    store = setup_env(tmp_path, monkeypatch)
    first = store.insert("purchases", {"supplierName": "S1"})
    second = store.insert("purchases", {"supplierName": "S2"})
    stored = json.loads((tmp_path / "data" / "purchases.json").read_text(encoding="utf-8"))
    assert [r["id"] for r in stored] == [second["id"], first["id"]]
    assert first["id"] != second["id"]


def test_delete_by_id(tmp_path, monkeypatch):
    store = setup_env(tmp_path, monkeypatch)
    keep = store.insert("sales", {"customerName": "A"})
    gone = store.insert("sales", {"customerName": "B"})
    assert store.delete_by_id("sales", gone["id"]) is True
    assert store.list_all("sales") == [keep]
    # unknown ids are a no-op
    assert store.delete_by_id("sales", "missing") is True
    assert store.list_all("sales") == [keep]


def test_missing_and_corrupt_collections_read_as_empty(tmp_path, monkeypatch):
    store = setup_env(tmp_path, monkeypatch)
    assert store.list_all("sales") == []
    (tmp_path / "data" / "sales.json").write_text("{not json", encoding="utf-8")
    assert store.list_all("sales") == []
    (tmp_path / "data" / "sales.json").write_text('{"a": 1}', encoding="utf-8")
    assert store.list_all("sales") == []


def test_insert_recovers_from_corrupt_collection(tmp_path, monkeypatch):
    store = setup_env(tmp_path, monkeypatch)
    (tmp_path / "data" / "sales.json").write_text("garbage", encoding="utf-8")
    rec = store.insert("sales", {"customerName": "A"})
    assert store.list_all("sales") == [rec]


def test_seed_only_writes_uninitialized_collections(tmp_path, monkeypatch):
    store = setup_env(tmp_path, monkeypatch)
    assert store.seed("sales", [{"id": "x"}]) is True
    assert store.seed("sales", [{"id": "y"}]) is False
    assert store.list_all("sales") == [{"id": "x"}]


def test_unknown_kind_rejected(tmp_path, monkeypatch):
    store = setup_env(tmp_path, monkeypatch)
    with pytest.raises(ValueError):
        store.list_all("invoices")


def test_concurrent_inserts_keep_every_record(tmp_path, monkeypatch):
    import threading

    store = setup_env(tmp_path, monkeypatch)

    def worker(n):
        for i in range(20):
            store.insert("sales", {"customerName": f"C{n}-{i}"})

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    names = {r["customerName"] for r in store.list_all("sales")}
    assert len(names) == 160
