"""In-memory device session store.

This is the only component allowed to hold live :class:`DeviceRecord`
state. All access goes through one lock; critical sections are pure
dictionary operations.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime, timedelta

from pybeacon._constants import DEFAULT_RETENTION_SECONDS
from pybeacon.models._base import utcnow
from pybeacon.models.device import DeviceRecord
from pybeacon.state.policy import is_expired, is_stale


class DeviceSessionStore:
    """Keyed registry of the most recent record per device identity.

    Records are frozen pydantic models, so handing them out requires no
    copying; updates replace the stored instance.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], datetime] = utcnow,
        retention: timedelta = timedelta(seconds=DEFAULT_RETENTION_SECONDS),
    ) -> None:
        self._clock = clock
        self._retention = retention
        self._lock = threading.Lock()
        self._records: dict[str, DeviceRecord] = {}

    @property
    def retention(self) -> timedelta:
        return self._retention

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def upsert(self, identity: str, record: DeviceRecord) -> DeviceRecord:
        """Store *record* under *identity*, stamped with the acceptance time.

        The previous record (if any) is replaced, never merged. The stored
        timestamp never moves backwards: if the clock reports an instant
        older than the stored one, the stored instant is reused.
        """
        now = self._clock()
        with self._lock:
            current = self._records.get(identity)
            if current is not None and is_stale(current.timestamp, now):
                now = current.timestamp
            stored = record.model_copy(update={"identity": identity, "timestamp": now})
            self._records[identity] = stored
        return stored

    def get(self, identity: str) -> DeviceRecord | None:
        """Return the live record for *identity*, or ``None`` if absent or expired."""
        now = self._clock()
        with self._lock:
            record = self._records.get(identity)
        if record is None or is_expired(now, record.timestamp, self._retention):
            return None
        return record

    def list_all(self) -> list[DeviceRecord]:
        """All live records, most recently seen first."""
        now = self._clock()
        with self._lock:
            records = list(self._records.values())
        live = [r for r in records if not is_expired(now, r.timestamp, self._retention)]
        live.sort(key=lambda r: r.timestamp, reverse=True)
        return live

    def attach_image_ref(self, identity: str, filename: str) -> bool:
        """Point the live record for *identity* at *filename*.

        Returns ``False`` (and does nothing) when no live record exists.
        """
        now = self._clock()
        with self._lock:
            record = self._records.get(identity)
            if record is None or is_expired(now, record.timestamp, self._retention):
                return False
            self._records[identity] = record.model_copy(update={"last_image_ref": filename})
        return True

    def evict_expired(self, now: datetime | None = None, retention: timedelta | None = None) -> int:
        """Physically remove expired records. Returns the number removed."""
        now = now or self._clock()
        retention = self._retention if retention is None else retention
        with self._lock:
            expired = [k for k, r in self._records.items() if is_expired(now, r.timestamp, retention)]
            for key in expired:
                del self._records[key]
        return len(expired)
