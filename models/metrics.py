from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from models.aggregation import group_by_calendar_date, group_by_field, grand_totals
from models.errors import InvertedDateRange, ValidationError
from models.purchases import purchases_in_range
from models.sales import all_sales, sales_for_date, sales_in_range, day_totals
from models.store import RecordStore
from utils.clock import DateLike, days_ago, parse_date, today as clock_today
from utils.file_manager import load_config

QUICK_RANGES = (7, 10, 14, 30, 90)
PRODUCT_SORT_FIELDS = (
    "totalProfit", "count", "totalSelling", "totalCost", "totalWeight",
    "marginPercent", "avgProfit", "customerCount",
)

def margin_percent(bucket: Dict) -> float:
    cost = bucket.get("totalCost") or 0
    if cost <= 0:
        return 0
    return (bucket.get("totalProfit") or 0) / cost * 100

def average_profit(bucket: Dict) -> float:
    count = bucket.get("count") or 0
    if count <= 0:
        return 0
    return (bucket.get("totalProfit") or 0) / count

def cost_per_unit(purchase: Dict) -> Optional[float]:
    """Cost per kg, or None when there is no weight to divide by (shown as "—")."""
    weight = purchase.get("weight") or 0
    if weight <= 0:
        return None
    return (purchase.get("costPrice") or 0) / weight

def sort_buckets(buckets: Iterable[Dict], by: str, descending: bool = True) -> List[Dict]:
    # sorted() is stable in both directions, equal keys keep scan order
    return sorted(buckets, key=lambda b: b.get(by) or 0, reverse=descending)

def top_n(buckets: Iterable[Dict], n: int, by: str = "count") -> List[Dict]:
    return sort_buckets(buckets, by, descending=True)[:n]

def check_range(start: DateLike, end: DateLike) -> Tuple[str, str]:
    s = parse_date(start, "start")
    e = parse_date(end, "end")
    if s > e:
        raise InvertedDateRange(s.isoformat(), e.isoformat())
    return s.isoformat(), e.isoformat()

def quick_range(days: int, today: Optional[date] = None) -> Tuple[str, str]:
    if days not in QUICK_RANGES:
        raise ValidationError(f"days must be one of {', '.join(map(str, QUICK_RANGES))}", field="days")
    today = today or clock_today()
    return days_ago(days - 1, today).isoformat(), today.isoformat()

def _window(today: Optional[date], days: int) -> Tuple[date, date]:
    end = today or clock_today()
    return days_ago(days - 1, end), end

def chart_series(sales: Iterable[Dict], today: Optional[date] = None, days: int = 10) -> List[Dict]:
    """Exactly `days` daily points ending today, oldest first, zero-filled."""
    start, end = _window(today, days)
    points = []
    for b in group_by_calendar_date(sales, start, end, descending=False):
        d = parse_date(b["date"])
        points.append({
            "date": b["date"],
            "label": f"{d.day:02d}/{d.month:02d}",
            "revenue": b["totalSelling"],
            "profit": b["totalProfit"],
        })
    return points

def _ranking(buckets: List[Dict], total_name: str) -> List[Dict]:
    return [{"name": b["name"], "count": b["count"], total_name: b["totalSelling"]} for b in buckets]

def dashboard(store: RecordStore, today: Optional[date] = None,
              days: Optional[int] = None, n: Optional[int] = None) -> Dict:
    cfg = load_config()
    days = int(days or cfg["dashboard_days"])
    n = int(n or cfg["top_n"])
    start, end = _window(today, days)
    todays = sales_for_date(store, end)
    window = sales_in_range(store, start, end)
    return {
        "today": end.isoformat(),
        "start": start.isoformat(),
        "todayTotals": day_totals(todays),
        "rangeTotals": day_totals(window),
        "chart": chart_series(window, end, days),
        "topProducts": _ranking(top_n(group_by_field(window, "productName"), n), "revenue"),
        "topCustomers": _ranking(top_n(group_by_field(window, "customerName"), n), "totalSpent"),
    }

def _day_view(bucket: Dict) -> Dict:
    return {
        "date": bucket["date"],
        "count": bucket["count"],
        "totalCost": bucket["totalCost"],
        "totalSelling": bucket["totalSelling"],
        "totalProfit": bucket["totalProfit"],
        "sales": bucket["records"],
    }

def range_summary(store: RecordStore, start: DateLike, end: DateLike) -> Dict:
    """Per-day totals over [start, end], newest day first.

    An inverted range is rejected before anything is read.
    """
    start, end = check_range(start, end)
    buckets = group_by_calendar_date(sales_in_range(store, start, end), start, end)
    totals = grand_totals(buckets)
    return {
        "start": start,
        "end": end,
        "dayCount": len(buckets),
        "days": [_day_view(b) for b in buckets],
        "totals": totals,
    }

def _product_view(bucket: Dict, related_name: str) -> Dict:
    view = {k: bucket[k] for k in (
        "name", "count", "totalWeight", "totalCost", "totalSelling", "totalProfit",
        "firstDate", "lastDate",
    )}
    view[related_name] = len(bucket["related"])
    view["avgProfit"] = average_profit(bucket)
    view["marginPercent"] = margin_percent(bucket)
    return view

def product_rollup(store: RecordStore, start: Optional[DateLike] = None, end: Optional[DateLike] = None,
                   by: str = "totalProfit", descending: bool = True) -> Dict:
    """Per-product totals over all sales, or over [start, end].

    Either both bounds are given or neither; a half-open range is rejected.
    """
    if by not in PRODUCT_SORT_FIELDS:
        raise ValidationError(f"Cannot sort by {by}", field="sort")
    if (start is None) != (end is None):
        missing = "end" if end is None else "start"
        raise ValidationError("start and end must be given together", field=missing)
    if start is not None:
        start, end = check_range(start, end)
        sales = sales_in_range(store, start, end)
    else:
        sales = all_sales(store)
    buckets = group_by_field(sales, "productName", related_field="customerName")
    products = sort_buckets([_product_view(b, "customerCount") for b in buckets], by, descending)
    totals = grand_totals(buckets)
    totals["marginPercent"] = margin_percent(totals)
    return {"products": products, "totals": totals, "sort": by, "descending": descending}

def purchase_rollup(store: RecordStore, start: DateLike, end: DateLike) -> Dict:
    start, end = check_range(start, end)
    purchases = purchases_in_range(store, start, end)
    buckets = group_by_field(purchases, "productName", related_field="supplierName", date_field="receiveDate")
    products = []
    for b in top_n(buckets, len(buckets), by="totalWeight"):
        products.append({
            "name": b["name"],
            "count": b["count"],
            "totalWeight": b["totalWeight"],
            "totalCost": b["totalCost"],
            "supplierCount": len(b["related"]),
            "costPerUnit": cost_per_unit({"weight": b["totalWeight"], "costPrice": b["totalCost"]}),
            "firstDate": b["firstDate"],
            "lastDate": b["lastDate"],
        })
    totals = grand_totals(buckets)
    return {
        "start": start,
        "end": end,
        "products": products,
        "totals": {"count": totals["count"], "totalWeight": totals["totalWeight"], "totalCost": totals["totalCost"]},
    }
