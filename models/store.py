import logging
import random
import string
import threading
import time
from datetime import datetime, timezone
from typing import Dict, List, Optional

from models.errors import StorageError
from utils.file_manager import get_raw, read_json, write_json

LOG = logging.getLogger(__name__)

KINDS = {
    "sales": {"file": "sales.json", "date_field": "saleDate"},
    "purchases": {"file": "purchases.json", "date_field": "receiveDate"},
}

# one writer at a time across every store instance in the process
_WRITE_LOCK = threading.RLock()

_B36 = string.digits + string.ascii_lowercase

def _base36(n: int) -> str:
    out = ""
    while True:
        n, r = divmod(n, 36)
        out = _B36[r] + out
        if n == 0:
            return out

def generate_id() -> str:
    millis = int(time.time() * 1000)
    return _base36(millis) + "".join(random.choice(_B36) for _ in range(6))

def utc_timestamp(moment: Optional[datetime] = None) -> str:
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

def date_field(kind: str) -> str:
    return _kind(kind)["date_field"]

def _kind(kind: str) -> Dict:
    if kind not in KINDS:
        raise ValueError(f"Unknown record kind: {kind}")
    return KINDS[kind]


class RecordStore:
    """Sales and purchases, each held as one flat JSON list.

    Every mutation rewrites the whole collection. Reads of a missing or
    corrupt collection come back empty.
    """

    def __init__(self, latency_ms: int = 0):
        self.latency_ms = int(latency_ms or 0)

    def _wait(self):
        if self.latency_ms > 0:
            time.sleep(self.latency_ms / 1000.0)

    def _load(self, kind: str) -> List[Dict]:
        records = read_json(_kind(kind)["file"], [])
        if not isinstance(records, list):
            LOG.warning("Collection %s is not a list, treating as empty", kind)
            return []
        return [r for r in records if isinstance(r, dict)]

    def _save(self, kind: str, records: List[Dict]):
        try:
            write_json(_kind(kind)["file"], records)
        except OSError as exc:
            raise StorageError(f"Could not save {kind}: {exc}") from exc

    def list_all(self, kind: str) -> List[Dict]:
        self._wait()
        return self._load(kind)

    def insert(self, kind: str, record: Dict) -> Dict:
        self._wait()
        new = dict(record)
        with _WRITE_LOCK:
            records = self._load(kind)
            new["id"] = generate_id()
            new["createdAt"] = utc_timestamp()
            # newest first
            records.insert(0, new)
            self._save(kind, records)
        LOG.info("Inserted %s record %s", kind, new["id"])
        return new

    def delete_by_id(self, kind: str, record_id: str) -> bool:
        self._wait()
        with _WRITE_LOCK:
            records = self._load(kind)
            kept = [r for r in records if r.get("id") != record_id]
            self._save(kind, kept)
        LOG.info("Deleted %s record %s (%d removed)", kind, record_id, len(records) - len(kept))
        return True

    def is_initialized(self, kind: str) -> bool:
        return get_raw(_kind(kind)["file"]) is not None

    def seed(self, kind: str, records: List[Dict]) -> bool:
        """Write `records` only if the collection has never been written."""
        with _WRITE_LOCK:
            if self.is_initialized(kind):
                return False
            self._save(kind, list(records))
        LOG.info("Seeded %s with %d records", kind, len(records))
        return True
