import logging
from typing import Optional

from flask import Flask, jsonify, request

from models.errors import StorageError, ValidationError
from models.metrics import dashboard, product_rollup, purchase_rollup, quick_range, range_summary
from models.purchases import delete_purchase, purchase_totals, purchases_for_date, record_purchase
from models.sales import day_totals, delete_sale, record_sale, sales_for_date
from models.store import RecordStore
from seed import seed_demo_data
from utils.clock import days_ago, parse_date, today
from utils.file_manager import ensure_defaults, load_config, reset_collections, update_config

LOG = logging.getLogger(__name__)

def _flag(name: str) -> bool:
    return str(request.args.get(name, "")).lower() in ("1", "true", "yes")

def _day_arg(name: str = "date"):
    q = request.args.get(name)
    return parse_date(q, name) if q else today()

def create_app(store: Optional[RecordStore] = None) -> Flask:
    ensure_defaults()
    cfg = load_config()
    store = store or RecordStore(latency_ms=cfg["latency_ms"])
    if cfg["seed_on_start"]:
        seed_demo_data(store)

    app = Flask(__name__)
    app.config["STORE"] = store

    @app.errorhandler(ValidationError)
    def validation_failed(e):
        return jsonify({"ok": False, "error": e.message, "field": e.field}), 400

    @app.errorhandler(StorageError)
    def storage_failed(e):
        LOG.error("Storage failure: %s", e)
        return jsonify({"ok": False, "error": str(e), "retryable": True}), 503

    @app.get("/status")
    def status():
        cfg = load_config()
        return jsonify({
            "ok": True,
            "today": today().isoformat(),
            "config": cfg,
            "counts": {
                "sales": len(store.list_all("sales")),
                "purchases": len(store.list_all("purchases")),
            },
        })

    # -------- Sales --------
    @app.get("/sales")
    def sales_get():
        day = _day_arg()
        sales = sales_for_date(store, day)
        return jsonify({"ok": True, "date": day.isoformat(), "sales": sales, "totals": day_totals(sales)})

    @app.post("/sales")
    def sales_post():
        data = request.get_json(force=True, silent=True) or {}
        sale = record_sale(store, data, data.get("saleDate") or today())
        return jsonify({"ok": True, "sale": sale}), 201

    @app.delete("/sales/<sale_id>")
    def sales_delete(sale_id):
        if not _flag("confirm"):
            return jsonify({"ok": True, "deleted": False})
        return jsonify({"ok": True, "deleted": delete_sale(store, sale_id)})

    # -------- Purchases --------
    @app.get("/purchases")
    def purchases_get():
        day = _day_arg()
        purchases = purchases_for_date(store, day)
        return jsonify({"ok": True, "date": day.isoformat(), "purchases": purchases,
                        "totals": purchase_totals(purchases)})

    @app.post("/purchases")
    def purchases_post():
        data = request.get_json(force=True, silent=True) or {}
        purchase = record_purchase(store, data, data.get("receiveDate") or today())
        return jsonify({"ok": True, "purchase": purchase}), 201

    @app.delete("/purchases/<purchase_id>")
    def purchases_delete(purchase_id):
        if not _flag("confirm"):
            return jsonify({"ok": True, "deleted": False})
        return jsonify({"ok": True, "deleted": delete_purchase(store, purchase_id)})

    @app.get("/purchases/summary")
    def purchases_summary():
        end = _day_arg("end")
        start = request.args.get("start") or days_ago(load_config()["dashboard_days"] - 1, end)
        return jsonify({"ok": True, "summary": purchase_rollup(store, start, end)})

    # -------- Reports --------
    @app.get("/dashboard")
    def dashboard_get():
        return jsonify({"ok": True, "dashboard": dashboard(store)})

    @app.get("/summary")
    def summary_get():
        days = request.args.get("days")
        if days:
            if not days.isdigit():
                raise ValidationError("days must be an integer", field="days")
            start, end = quick_range(int(days))
        else:
            end = _day_arg("end")
            start = request.args.get("start") or days_ago(load_config()["dashboard_days"] - 1, end)
        return jsonify({"ok": True, "summary": range_summary(store, start, end)})

    @app.get("/products")
    def products_get():
        by = request.args.get("sort", "totalProfit")
        descending = request.args.get("dir", "desc") != "asc"
        start, end = request.args.get("start"), request.args.get("end")
        rollup = product_rollup(store, start, end, by=by, descending=descending)
        return jsonify({"ok": True, **rollup})

    # -------- Admin --------
    @app.post("/config")
    def config_update():
        data = request.get_json(force=True, silent=True) or {}
        changed = update_config(data)
        if "latency_ms" in changed:
            store.latency_ms = int(changed["latency_ms"] or 0)
        return jsonify({"ok": True, "changed": changed, "config": load_config()})

    @app.post("/seed")
    def seed_post():
        return jsonify({"ok": True, "seeded": seed_demo_data(store)})

    @app.post("/reset")
    def reset_all():
        data = request.get_json(force=True, silent=True) or {}
        reset_collections(bool(data.get("reset_config", False)))
        return jsonify({"ok": True})

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_app().run(host="0.0.0.0", port=5000, debug=True)
