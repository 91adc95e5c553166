from datetime import date
from typing import Dict, List, Optional

from models.query import by_date_range, by_exact_date
from models.sales import record_date, required_number, required_text
from models.store import RecordStore
from utils.clock import DateLike

def build_purchase(data: Dict, receive_date: DateLike, today: Optional[date] = None) -> Dict:
    supplier = required_text(data, "supplierName")
    product = required_text(data, "productName")
    weight = required_number(data, "weight")
    # total cost of the whole received weight, not per kg
    cost = required_number(data, "costPrice")
    return {
        "supplierName": supplier,
        "productName": product,
        "weight": weight,
        "costPrice": cost,
        "receiveDate": record_date(receive_date, "receiveDate", today),
    }

def record_purchase(store: RecordStore, data: Dict, receive_date: DateLike, today: Optional[date] = None) -> Dict:
    return store.insert("purchases", build_purchase(data, receive_date, today))

def purchases_for_date(store: RecordStore, day: DateLike) -> List[Dict]:
    return by_exact_date(store, "purchases", day)

def purchases_in_range(store: RecordStore, start: DateLike, end: DateLike) -> List[Dict]:
    return by_date_range(store, "purchases", start, end)

def delete_purchase(store: RecordStore, purchase_id: str) -> bool:
    return store.delete_by_id("purchases", purchase_id)

def purchase_totals(purchases: List[Dict]) -> Dict:
    return {
        "count": len(purchases),
        "totalWeight": sum(p.get("weight") or 0 for p in purchases),
        "totalCost": sum(p.get("costPrice") or 0 for p in purchases),
    }
