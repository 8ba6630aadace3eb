from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any, Protocol

from solotrack.core.clock import as_date, is_same_calendar_day, naive_local

logger = logging.getLogger(__name__)


# ----------------------------
# Store interface
# ----------------------------

class PreferenceStore(Protocol):
    """Key-value store the notification state lives in. Injected, never global."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...

    def snapshot(self) -> dict[str, Any]: ...


class InMemoryPreferenceStore:
    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, Any]:
        return dict(self._data)


class JsonPreferenceStore:
    """
    Preferences persisted as a flat JSON object.

    Writes are serialized through a lock and land atomically (temp file +
    replace). A missing or unreadable file reads as empty.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._data = self._load()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable preferences file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring preferences file %s: top-level JSON is not an object", self.path)
            return {}
        return data

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value
            self._flush()

    def remove(self, key: str) -> None:
        with self._lock:
            if key in self._data:
                del self._data[key]
                self._flush()

    def snapshot(self) -> dict[str, Any]:
        return dict(self._data)


# ----------------------------
# Keys
# ----------------------------

KEY_CURRENCY_ALERTS = "notif_currency_alerts"
KEY_MILESTONE_ALERTS = "notif_milestone_alerts"
KEY_MOMENTUM_ALERTS = "notif_momentum_alerts"
KEY_LAST_SENT_PREFIX = "notif_last_sent_"
KEY_GLOBAL_LAST_SENT = "notif_global_last_sent"
KEY_DAILY_COUNT = "notif_daily_count"
KEY_DAILY_COUNT_DATE = "notif_daily_count_date"
KEY_ACKNOWLEDGED_MILESTONES = "notif_acknowledged_milestones"
KEY_CHECKRIDE_READY_NOTIFIED = "notif_checkride_ready_notified"

ALL_FIXED_KEYS = (
    KEY_CURRENCY_ALERTS,
    KEY_MILESTONE_ALERTS,
    KEY_MOMENTUM_ALERTS,
    KEY_GLOBAL_LAST_SENT,
    KEY_DAILY_COUNT,
    KEY_DAILY_COUNT_DATE,
    KEY_ACKNOWLEDGED_MILESTONES,
    KEY_CHECKRIDE_READY_NOTIFIED,
)


# ----------------------------
# Coercion helpers (malformed -> default)
# ----------------------------

def _coerce_bool(x: Any, default: bool) -> bool:
    if isinstance(x, bool):
        return x
    if isinstance(x, str):
        s = x.strip().lower()
        if s in ("true", "1", "yes", "on"):
            return True
        if s in ("false", "0", "no", "off"):
            return False
    return default


def _coerce_int(x: Any, default: int) -> int:
    if isinstance(x, bool):
        return default
    try:
        return int(x)
    except (TypeError, ValueError):
        return default


def _coerce_datetime(x: Any) -> datetime | None:
    if isinstance(x, datetime):
        return naive_local(x)
    if not isinstance(x, str) or not x.strip():
        return None
    try:
        return naive_local(datetime.fromisoformat(x.strip()))
    except ValueError:
        return None


def _coerce_date(x: Any) -> date | None:
    if isinstance(x, datetime):
        return x.date()
    if isinstance(x, date):
        return x
    if not isinstance(x, str) or not x.strip():
        return None
    try:
        return date.fromisoformat(x.strip()[:10])
    except ValueError:
        return None


def _coerce_str_set(x: Any) -> set[str]:
    if not isinstance(x, (list, tuple, set)):
        return set()
    return {str(v) for v in x if v is not None}


# ----------------------------
# Typed preferences
# ----------------------------

class NotificationPreferences:
    """
    Typed view over a PreferenceStore. Absent or malformed values read as
    their defaults: opt-ins on, counters zero, sets empty, flags off.
    """

    def __init__(self, store: PreferenceStore | None = None) -> None:
        self.store: PreferenceStore = store if store is not None else InMemoryPreferenceStore()

    # --- opt-in flags ---

    @property
    def currency_alerts_enabled(self) -> bool:
        return _coerce_bool(self.store.get(KEY_CURRENCY_ALERTS), True)

    @currency_alerts_enabled.setter
    def currency_alerts_enabled(self, value: bool) -> None:
        self.store.set(KEY_CURRENCY_ALERTS, bool(value))

    @property
    def milestone_alerts_enabled(self) -> bool:
        return _coerce_bool(self.store.get(KEY_MILESTONE_ALERTS), True)

    @milestone_alerts_enabled.setter
    def milestone_alerts_enabled(self, value: bool) -> None:
        self.store.set(KEY_MILESTONE_ALERTS, bool(value))

    @property
    def momentum_alerts_enabled(self) -> bool:
        return _coerce_bool(self.store.get(KEY_MOMENTUM_ALERTS), True)

    @momentum_alerts_enabled.setter
    def momentum_alerts_enabled(self, value: bool) -> None:
        self.store.set(KEY_MOMENTUM_ALERTS, bool(value))

    # --- cooldown tracking ---

    def last_sent(self, category: str) -> datetime | None:
        return _coerce_datetime(self.store.get(KEY_LAST_SENT_PREFIX + category))

    def record_sent(self, category: str, at: datetime) -> None:
        self.store.set(KEY_LAST_SENT_PREFIX + category, naive_local(at).isoformat())

    @property
    def global_last_sent(self) -> datetime | None:
        return _coerce_datetime(self.store.get(KEY_GLOBAL_LAST_SENT))

    @global_last_sent.setter
    def global_last_sent(self, value: datetime | None) -> None:
        if value is None:
            self.store.remove(KEY_GLOBAL_LAST_SENT)
        else:
            self.store.set(KEY_GLOBAL_LAST_SENT, naive_local(value).isoformat())

    def notifications_sent_today(self, as_of: date | datetime) -> int:
        stored = _coerce_date(self.store.get(KEY_DAILY_COUNT_DATE))
        if stored is None or not is_same_calendar_day(stored, as_of):
            return 0
        return max(_coerce_int(self.store.get(KEY_DAILY_COUNT), 0), 0)

    def increment_daily_count(self, as_of: date | datetime) -> int:
        count = self.notifications_sent_today(as_of) + 1
        self.store.set(KEY_DAILY_COUNT_DATE, as_date(as_of).isoformat())
        self.store.set(KEY_DAILY_COUNT, count)
        return count

    # --- one-time markers ---

    @property
    def acknowledged_milestones(self) -> set[str]:
        return _coerce_str_set(self.store.get(KEY_ACKNOWLEDGED_MILESTONES))

    @acknowledged_milestones.setter
    def acknowledged_milestones(self, keys: set[str]) -> None:
        self.store.set(KEY_ACKNOWLEDGED_MILESTONES, sorted(str(k) for k in keys))

    def acknowledge_milestone(self, key: str) -> None:
        keys = self.acknowledged_milestones
        keys.add(str(key))
        self.acknowledged_milestones = keys

    @property
    def checkride_ready_notified(self) -> bool:
        return _coerce_bool(self.store.get(KEY_CHECKRIDE_READY_NOTIFIED), False)

    @checkride_ready_notified.setter
    def checkride_ready_notified(self, value: bool) -> None:
        self.store.set(KEY_CHECKRIDE_READY_NOTIFIED, bool(value))

    # --- host-level reset ---

    def reset(self) -> None:
        for key in list(self.store.snapshot()):
            if key in ALL_FIXED_KEYS or key.startswith(KEY_LAST_SENT_PREFIX):
                self.store.remove(key)
