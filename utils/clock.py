from datetime import date, datetime, timedelta
from typing import Iterator, Optional, Union

from models.errors import ValidationError
from utils.file_manager import load_config

DateLike = Union[date, str]

def parse_date(value: DateLike, field: str = "date") -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value) != 10:
        raise ValidationError(f"{field} must be a YYYY-MM-DD date", field=field)
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{field} must be a YYYY-MM-DD date", field=field) from None

def iso(d: DateLike) -> str:
    return parse_date(d).isoformat()

def today() -> date:
    """Current calendar date, pinned by config `clock.fixed_today` when set."""
    fixed = (load_config().get("clock") or {}).get("fixed_today")
    if fixed:
        return parse_date(fixed, "clock.fixed_today")
    return date.today()

def days_ago(n: int, anchor: Optional[DateLike] = None) -> date:
    base = parse_date(anchor) if anchor is not None else today()
    return base - timedelta(days=int(n))

def daterange(start: DateLike, end: DateLike) -> Iterator[date]:
    """Every calendar day in [start, end], ascending. Empty when start > end."""
    d = parse_date(start, "start")
    last = parse_date(end, "end")
    while d <= last:
        yield d
        d += timedelta(days=1)
