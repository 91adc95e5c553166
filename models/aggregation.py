"""Rollups of sale and purchase records into per-key buckets.

Every view (dashboard, range summary, product table, purchase table) goes
through `group_by`. A bucket is a plain dict:

    {"key", "count", "totalWeight", "totalCost", "totalSelling",
     "totalProfit", "records", "firstDate", "lastDate", "related"}

`related` is a set of distinct co-occurring names (e.g. customers of a
product) and only appears when a `related_fn` is given.
"""
import logging
from typing import Callable, Dict, Iterable, List, Optional

from utils.clock import DateLike, daterange

LOG = logging.getLogger(__name__)

SUM_FIELDS = {
    "totalWeight": "weight",
    "totalCost": "costPrice",
    "totalSelling": "sellingPrice",
    "totalProfit": "profit",
}

def _num(value) -> float:
    if value is None or value == "" or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        LOG.warning("Non-numeric amount %r counted as 0", value)
        return 0

def zero_bucket(key: str) -> Dict:
    b = {"key": key, "count": 0, "records": [], "firstDate": None, "lastDate": None}
    for total in SUM_FIELDS:
        b[total] = 0
    return b

def _add(bucket: Dict, record: Dict, day: Optional[str]):
    bucket["count"] += 1
    bucket["records"].append(record)
    for total, field in SUM_FIELDS.items():
        bucket[total] += _num(record.get(field))
    if day:
        # YYYY-MM-DD strings order chronologically
        if bucket["firstDate"] is None or day < bucket["firstDate"]:
            bucket["firstDate"] = day
        if bucket["lastDate"] is None or day > bucket["lastDate"]:
            bucket["lastDate"] = day

def group_by(
    records: Iterable[Dict],
    key_fn: Callable[[Dict], str],
    seed_keys: Optional[Iterable[str]] = None,
    date_field: str = "saleDate",
    related_fn: Optional[Callable[[Dict], str]] = None,
) -> List[Dict]:
    """Group records into buckets keyed by `key_fn(record)`.

    With `seed_keys` the key set is fixed up front: every seed key gets a
    bucket even if nothing lands in it, and records whose key is not a seed
    key are dropped. Without it buckets appear in first-seen order.
    """
    buckets: Dict[str, Dict] = {}
    fixed = seed_keys is not None
    if fixed:
        for k in seed_keys:
            buckets[k] = zero_bucket(k)
    for r in records:
        k = key_fn(r)
        if k not in buckets:
            if fixed:
                continue
            buckets[k] = zero_bucket(k)
        b = buckets[k]
        _add(b, r, r.get(date_field))
        if related_fn is not None:
            b.setdefault("related", set()).add(related_fn(r))
    if related_fn is not None:
        for b in buckets.values():
            b.setdefault("related", set())
    return list(buckets.values())

def group_by_calendar_date(
    records: Iterable[Dict],
    start: DateLike,
    end: DateLike,
    date_field: str = "saleDate",
    descending: bool = True,
) -> List[Dict]:
    """One bucket per calendar day in [start, end], zero-filled."""
    days = [d.isoformat() for d in daterange(start, end)]
    buckets = group_by(records, lambda r: r.get(date_field), seed_keys=days, date_field=date_field)
    for b in buckets:
        b["date"] = b["key"]
    if descending:
        buckets.reverse()
    return buckets

def _name(field: str) -> Callable[[Dict], str]:
    return lambda r: (r.get(field) or "").strip()

def group_by_field(
    records: Iterable[Dict],
    field: str,
    related_field: Optional[str] = None,
    date_field: str = "saleDate",
) -> List[Dict]:
    """Buckets keyed by a trimmed name field, e.g. productName."""
    buckets = group_by(
        records,
        _name(field),
        date_field=date_field,
        related_fn=_name(related_field) if related_field else None,
    )
    for b in buckets:
        b["name"] = b["key"]
    return buckets

def grand_totals(buckets: Iterable[Dict]) -> Dict:
    """Sums across buckets; `activeDays` counts buckets holding at least one record."""
    totals = {"count": 0, "activeDays": 0}
    for total in SUM_FIELDS:
        totals[total] = 0
    for b in buckets:
        totals["count"] += b["count"]
        if b["count"] > 0:
            totals["activeDays"] += 1
        for total in SUM_FIELDS:
            totals[total] += b[total]
    return totals
