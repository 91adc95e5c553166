import copy
import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from typing import Dict, Optional

from models.errors import ValidationError

LOG = logging.getLogger(__name__)

_DATA_DIR = os.environ.get(
    "MEATBOOK_DATA_DIR",
    os.path.join(os.path.dirname(os.path.dirname(__file__)), "data"),
)
_FILE_LOCK = threading.Lock()

DEFAULTS = {
    "sales.json": [],
    "purchases.json": [],
    "config.json": {
        "latency_ms": 0,
        "dashboard_days": 10,
        "top_n": 5,
        "seed_on_start": False,
        "clock": {
            "fixed_today": None
        }
    }
}

CONFIG_KEYS = set(DEFAULTS["config.json"])
COLLECTION_FILES = ("sales.json", "purchases.json")

def data_path(filename: str) -> str:
    os.makedirs(_DATA_DIR, exist_ok=True)
    return os.path.join(_DATA_DIR, filename)

def _atomic_write_text(path: str, text: str):
    tmp_fd, tmp_path = tempfile.mkstemp(prefix=".tmp_", dir=os.path.dirname(path))
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)

def ensure_defaults():
    # collections stay absent until first written so seeding can tell them apart
    os.makedirs(_DATA_DIR, exist_ok=True)
    for fname, default in DEFAULTS.items():
        if fname in COLLECTION_FILES:
            continue
        path = data_path(fname)
        if not os.path.exists(path):
            with _FILE_LOCK:
                _atomic_write_text(path, json.dumps(default, indent=2))

def get_raw(key: str) -> Optional[str]:
    """Raw text stored under `key`, or None when nothing was ever written."""
    path = data_path(key)
    with _FILE_LOCK:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            return None

def set_raw(key: str, text: str):
    path = data_path(key)
    with _FILE_LOCK:
        _atomic_write_text(path, text)

def read_json(filename: str, default=None):
    """Decode a stored JSON file.

    A missing file yields `default`. So does an unreadable or unparseable
    one: a corrupt blob must never take down the read path, it is logged
    and treated as empty.
    """
    try:
        raw = get_raw(filename)
    except (OSError, UnicodeDecodeError) as exc:
        LOG.warning("Storage unavailable for %s: %s", filename, exc)
        return copy.deepcopy(default)
    if raw is None:
        return copy.deepcopy(default)
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        LOG.warning("Corrupt payload in %s, treating as empty: %s", filename, exc)
        return copy.deepcopy(default)

def write_json(filename: str, obj):
    set_raw(filename, json.dumps(obj, indent=2, ensure_ascii=False))

def _int_at_least(key: str, value, low: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < low:
        raise ValidationError(f"{key} must be an integer >= {low}", field=key)
    return value

def validate_config_value(key: str, value):
    """Check one config entry, raising ValidationError when it is unusable."""
    if key == "latency_ms":
        return _int_at_least(key, value, 0)
    if key in ("dashboard_days", "top_n"):
        return _int_at_least(key, value, 1)
    if key == "seed_on_start":
        if not isinstance(value, bool):
            raise ValidationError(f"{key} must be true or false", field=key)
        return value
    if key == "clock":
        if not isinstance(value, dict) or set(value) - {"fixed_today"}:
            raise ValidationError("clock must be an object with fixed_today", field=key)
        fixed = value.get("fixed_today")
        if fixed is not None:
            try:
                if len(fixed) != 10:
                    raise ValueError(fixed)
                datetime.strptime(fixed, "%Y-%m-%d")
            except (TypeError, ValueError):
                raise ValidationError("clock.fixed_today must be null or a YYYY-MM-DD date", field=key) from None
        return {"fixed_today": fixed}
    raise ValidationError(f"Unknown config key: {key}", field=key)

def load_config() -> Dict:
    cfg = copy.deepcopy(DEFAULTS["config.json"])
    stored = read_json("config.json", {})
    if not isinstance(stored, dict):
        return cfg
    for k, v in stored.items():
        if k not in CONFIG_KEYS:
            continue
        try:
            cfg[k] = validate_config_value(k, v)
        except ValidationError as exc:
            LOG.warning("Ignoring stored config %s: %s", k, exc.message)
    return cfg

def update_config(changes: Dict) -> Dict:
    """Apply a partial update of known top-level keys; returns what changed.

    Every value is checked before anything is written, so one bad entry
    rejects the whole update.
    """
    if not isinstance(changes, dict):
        raise ValidationError("config update must be a JSON object")
    cfg = load_config()
    changed = {}
    for k, v in changes.items():
        if k in CONFIG_KEYS:
            changed[k] = validate_config_value(k, v)
    cfg.update(changed)
    write_json("config.json", cfg)
    return changed

def reset_collections(reset_config: bool = False):
    for fname in COLLECTION_FILES:
        write_json(fname, DEFAULTS[fname])
    if reset_config:
        write_json("config.json", DEFAULTS["config.json"])
