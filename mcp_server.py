"""
Local MCP server for the meat-trade ledger.

This exposes the sale/purchase ledger through a Model Context Protocol (MCP)
server built on FastMCP. Tools read and write the same JSON collections as
the Flask app and answer with MCP-compliant content arrays holding a single
JSON text item.
"""
import json
import logging
from typing import Any, Dict, Optional

from fastmcp import FastMCP

from models.errors import LedgerError, ValidationError
from models.metrics import dashboard, product_rollup, purchase_rollup, quick_range, range_summary
from models.purchases import delete_purchase, purchase_totals, purchases_for_date, record_purchase
from models.sales import day_totals, delete_sale, record_sale, sales_for_date
from models.store import RecordStore
from seed import seed_demo_data
from utils.clock import days_ago, parse_date, today
from utils.file_manager import ensure_defaults, load_config

LOG = logging.getLogger(__name__)

server_instructions = """
This MCP server gives access to a small meat-trading ledger. It records daily
sales and purchases and reports dashboard figures, date-range summaries and
per-product rollups. Dates are YYYY-MM-DD strings; amounts are plain numbers.
"""

def _content(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": json.dumps(payload, ensure_ascii=False)}]}

def _error(message: str, field: Optional[str] = None) -> Dict[str, Any]:
    payload = {"error": message}
    if field:
        payload["field"] = field
    return _content(payload)

def _parse(arg: Optional[str]) -> Dict[str, Any]:
    data = json.loads(arg) if arg and arg.strip() else {}
    if not isinstance(data, dict):
        raise ValueError("argument must be a JSON object")
    return data

def create_server(store: Optional[RecordStore] = None) -> FastMCP:
    ensure_defaults()
    store = store or RecordStore(latency_ms=load_config()["latency_ms"])
    mcp = FastMCP(name="Meat Ledger Local MCP", instructions=server_instructions)

    def run(fn, *args, **kwargs) -> Dict[str, Any]:
        try:
            return _content(fn(*args, **kwargs))
        except LedgerError as exc:
            return _error(str(exc), getattr(exc, "field", None))

    @mcp.tool()
    async def status() -> Dict[str, Any]:
        """
        Return the ledger's current date, configuration and record counts.

        Returns:
            MCP content array with JSON:
            {"today": date, "config": {...}, "counts": {"sales": N, "purchases": N}}
        """
        payload = {
            "today": today().isoformat(),
            "config": load_config(),
            "counts": {
                "sales": len(store.list_all("sales")),
                "purchases": len(store.list_all("purchases")),
            },
        }
        return _content(payload)

    @mcp.tool()
    async def sales_for_day(day: str = "") -> Dict[str, Any]:
        """
        Return the sales recorded for one date, most recently entered first.

        Args:
            day: YYYY-MM-DD date. Empty means today.

        Returns:
            MCP content array with JSON: {"date": day, "sales": [...], "totals": {...}}
        """
        def _load():
            d = parse_date(day, "date") if day else today()
            sales = sales_for_date(store, d)
            return {"date": d.isoformat(), "sales": sales, "totals": day_totals(sales)}
        return run(_load)

    @mcp.tool()
    async def add_sale(arg: str) -> Dict[str, Any]:
        """
        Record one sale.

        The `arg` parameter is a JSON object:
          {"customerName": "...", "productName": "...", "weight": 2,
           "costPrice": 100, "sellingPrice": 150, "saleDate": "2024-01-01"}

        `saleDate` defaults to today and may not be in the future. Profit is
        computed from the two prices when the sale is stored.

        Returns:
            MCP content array with {"sale": {...}} or {"error": ..., "field": ...}.
        """
        try:
            data = _parse(arg)
        except ValueError:
            return _error("Invalid JSON argument")
        return run(lambda: {"sale": record_sale(store, data, data.get("saleDate") or today())})

    @mcp.tool()
    async def delete_sale_tool(sale_id: str, confirm: bool = False) -> Dict[str, Any]:
        """
        Delete a sale by id. Nothing happens unless `confirm` is true.

        Returns:
            MCP content array with {"deleted": bool}.
        """
        if not confirm:
            return _content({"deleted": False})
        return run(lambda: {"deleted": delete_sale(store, sale_id)})

    @mcp.tool()
    async def purchases_for_day(day: str = "") -> Dict[str, Any]:
        """
        Return the purchases received on one date, most recently entered first.

        Args:
            day: YYYY-MM-DD date. Empty means today.
        """
        def _load():
            d = parse_date(day, "date") if day else today()
            purchases = purchases_for_date(store, d)
            return {"date": d.isoformat(), "purchases": purchases, "totals": purchase_totals(purchases)}
        return run(_load)

    @mcp.tool()
    async def add_purchase(arg: str) -> Dict[str, Any]:
        """
        Record one purchase (stock received from a supplier).

        The `arg` parameter is a JSON object:
          {"supplierName": "...", "productName": "...", "weight": 40,
           "costPrice": 14000, "receiveDate": "2024-01-01"}

        `costPrice` is the total paid for the whole weight.
        """
        try:
            data = _parse(arg)
        except ValueError:
            return _error("Invalid JSON argument")
        return run(lambda: {"purchase": record_purchase(store, data, data.get("receiveDate") or today())})

    @mcp.tool()
    async def delete_purchase_tool(purchase_id: str, confirm: bool = False) -> Dict[str, Any]:
        """Delete a purchase by id. Nothing happens unless `confirm` is true."""
        if not confirm:
            return _content({"deleted": False})
        return run(lambda: {"deleted": delete_purchase(store, purchase_id)})

    @mcp.tool()
    async def dashboard_tool() -> Dict[str, Any]:
        """
        Return the dashboard: today's totals, totals and a daily chart series
        over the configured window (10 days by default), plus the top
        products and top customers ranked by number of sales.
        """
        return run(lambda: {"dashboard": dashboard(store)})

    @mcp.tool()
    async def summary_tool(arg: str = "") -> Dict[str, Any]:
        """
        Return per-day totals over a date range, newest day first.

        The `arg` may be:
          - empty, for the configured window ending today
          - {"days": 7} for one of the 7/10/14/30/90 day presets
          - {"start": "2024-02-01", "end": "2024-02-10"}

        Days without sales are included with zero totals. A start after the
        end is rejected with an error payload.
        """
        try:
            data = _parse(arg)
        except ValueError:
            return _error("Invalid JSON argument")

        def _load():
            if "days" in data:
                try:
                    days = int(data["days"])
                except (TypeError, ValueError):
                    raise ValidationError("days must be an integer", field="days") from None
                start, end = quick_range(days)
            else:
                end = data.get("end") or today()
                start = data.get("start") or days_ago(load_config()["dashboard_days"] - 1, end)
            return {"summary": range_summary(store, start, end)}
        return run(_load)

    @mcp.tool()
    async def products_tool(arg: str = "") -> Dict[str, Any]:
        """
        Return per-product sale totals with customer counts, average profit
        and margin.

        The `arg` may set {"sort": "count", "descending": false,
        "start": ..., "end": ...}. Without start/end every sale is included.
        """
        try:
            data = _parse(arg)
        except ValueError:
            return _error("Invalid JSON argument")
        return run(product_rollup, store, data.get("start"), data.get("end"),
                   by=data.get("sort", "totalProfit"), descending=bool(data.get("descending", True)))

    @mcp.tool()
    async def purchase_summary_tool(arg: str = "") -> Dict[str, Any]:
        """
        Return per-product purchase totals over a date range with supplier
        counts and average cost per kg. `arg` is {"start": ..., "end": ...};
        both default to the configured window ending today.
        """
        try:
            data = _parse(arg)
        except ValueError:
            return _error("Invalid JSON argument")

        def _load():
            end = data.get("end") or today()
            start = data.get("start") or days_ago(load_config()["dashboard_days"] - 1, end)
            return {"summary": purchase_rollup(store, start, end)}
        return run(_load)

    @mcp.tool()
    async def seed_demo() -> Dict[str, Any]:
        """
        Fill empty collections with ten days of demo sales and purchases.
        Collections that already hold data are left untouched.
        """
        return run(lambda: {"seeded": seed_demo_data(store)})

    return mcp


def main():
    logging.basicConfig(level=logging.INFO)
    server = create_server()
    LOG.info("Starting local MCP server on 0.0.0.0:8000 (HTTP)")
    server.run(transport="http", host="0.0.0.0", port=8000, path="/mcp")


if __name__ == "__main__":
    main()
