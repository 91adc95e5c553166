from typing import Dict, List

from models.store import RecordStore, date_field
from utils.clock import DateLike, iso

def by_exact_date(store: RecordStore, kind: str, day: DateLike) -> List[Dict]:
    """Records dated `day`, most recently entered first."""
    field = date_field(kind)
    day = iso(day)
    rows = [r for r in store.list_all(kind) if r.get(field) == day]
    # ISO-8601 UTC timestamps sort chronologically as strings
    return sorted(rows, key=lambda r: r.get("createdAt") or "", reverse=True)

def by_date_range(store: RecordStore, kind: str, start: DateLike, end: DateLike) -> List[Dict]:
    """Records dated within [start, end], most recent date first.

    Callers must check start <= end; an inverted range just matches nothing.
    """
    field = date_field(kind)
    start, end = iso(start), iso(end)
    rows = [r for r in store.list_all(kind) if start <= (r.get(field) or "") <= end]
    return sorted(rows, key=lambda r: r[field], reverse=True)
