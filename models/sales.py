from datetime import date
from typing import Dict, List, Optional

from models.errors import ValidationError
from models.query import by_date_range, by_exact_date
from models.store import RecordStore
from utils.clock import DateLike, parse_date, today as clock_today

REQUIRED_MESSAGE = "All fields are required"

def required_text(data: Dict, field: str) -> str:
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(REQUIRED_MESSAGE, field=field)
    return value.strip()

def required_number(data: Dict, field: str) -> float:
    value = data.get(field)
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError(REQUIRED_MESSAGE, field=field)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", field=field) from None
    if number != number or number in (float("inf"), float("-inf")):
        raise ValidationError(f"{field} must be a number", field=field)
    if number < 0:
        raise ValidationError(f"{field} must not be negative", field=field)
    return int(number) if number.is_integer() else number

def record_date(value: DateLike, field: str, today: Optional[date] = None) -> str:
    if value is None or value == "":
        raise ValidationError(REQUIRED_MESSAGE, field=field)
    d = parse_date(value, field)
    if d > (today or clock_today()):
        raise ValidationError(f"{field} cannot be in the future", field=field)
    return d.isoformat()

def build_sale(data: Dict, sale_date: DateLike, today: Optional[date] = None) -> Dict:
    """Validate a submitted sale; nothing is saved unless every field passes."""
    customer = required_text(data, "customerName")
    product = required_text(data, "productName")
    weight = required_number(data, "weight")
    cost = required_number(data, "costPrice")
    selling = required_number(data, "sellingPrice")
    return {
        "customerName": customer,
        "productName": product,
        "weight": weight,
        "costPrice": cost,
        "sellingPrice": selling,
        "profit": selling - cost,
        "saleDate": record_date(sale_date, "saleDate", today),
    }

def record_sale(store: RecordStore, data: Dict, sale_date: DateLike, today: Optional[date] = None) -> Dict:
    return store.insert("sales", build_sale(data, sale_date, today))

def sales_for_date(store: RecordStore, day: DateLike) -> List[Dict]:
    return by_exact_date(store, "sales", day)

def sales_in_range(store: RecordStore, start: DateLike, end: DateLike) -> List[Dict]:
    return by_date_range(store, "sales", start, end)

def all_sales(store: RecordStore) -> List[Dict]:
    return store.list_all("sales")

def delete_sale(store: RecordStore, sale_id: str) -> bool:
    return store.delete_by_id("sales", sale_id)

def day_totals(sales: List[Dict]) -> Dict:
    """Footer totals of a day's sale list."""
    return {
        "count": len(sales),
        "totalCost": sum(s.get("costPrice") or 0 for s in sales),
        "totalSelling": sum(s.get("sellingPrice") or 0 for s in sales),
        "totalProfit": sum(s.get("profit") or 0 for s in sales),
    }
