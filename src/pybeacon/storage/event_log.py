"""Append-only, day-partitioned event log.

Each UTC calendar day has one partition file,
``devices_YYYY-MM-DD.jsonl``, holding one JSON-encoded device record per
line in acceptance order. Appends to the same partition are serialized
through a per-day lock; file I/O runs in a worker thread so the event
loop is never blocked on disk.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from datetime import UTC, date, datetime, timedelta
from pathlib import Path

from pydantic import ValidationError

from pybeacon._constants import (
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_LOG_RETENTION_DAYS,
    LOG_PARTITION_DATE_FORMAT,
    LOG_PARTITION_PREFIX,
    LOG_PARTITION_SUFFIX,
)
from pybeacon.exceptions import BeaconPersistenceError
from pybeacon.models.device import DeviceRecord
from pybeacon.models.log_entry import LogEntry, LogKind

_logger = logging.getLogger(__name__)


def partition_name(day: date) -> str:
    return f"{LOG_PARTITION_PREFIX}{day.strftime(LOG_PARTITION_DATE_FORMAT)}{LOG_PARTITION_SUFFIX}"


def partition_date(path: Path) -> date | None:
    """Parse the day out of a partition filename; ``None`` for foreign files."""
    name = path.name
    if not (name.startswith(LOG_PARTITION_PREFIX) and name.endswith(LOG_PARTITION_SUFFIX)):
        return None
    stem = name[len(LOG_PARTITION_PREFIX) : -len(LOG_PARTITION_SUFFIX)]
    try:
        return datetime.strptime(stem, LOG_PARTITION_DATE_FORMAT).date()
    except ValueError:
        return None


def _utc_day(timestamp: datetime) -> date:
    return timestamp.astimezone(UTC).date()


class EventLogWriter:
    """Durable audit trail of every accepted beacon."""

    def __init__(self, log_dir: str | Path, *, fsync: bool = False) -> None:
        self._dir = Path(log_dir)
        self._fsync = fsync
        self._locks: dict[date, asyncio.Lock] = {}

    @property
    def log_dir(self) -> Path:
        return self._dir

    def partition_path(self, day: date) -> Path:
        return self._dir / partition_name(day)

    def _lock_for(self, day: date) -> asyncio.Lock:
        lock = self._locks.get(day)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[day] = lock
        return lock

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def _write_line(self, path: Path, line: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")
            fh.flush()
            if self._fsync:
                os.fsync(fh.fileno())

    async def append(self, record: DeviceRecord) -> Path:
        """Append *record* to the partition of its acceptance day.

        Raises
        ------
        BeaconPersistenceError
            If the partition cannot be written.
        """
        day = _utc_day(record.timestamp)
        path = self.partition_path(day)
        line = json.dumps(record.to_json_dict(), separators=(",", ":"), ensure_ascii=False)

        async with self._lock_for(day):
            try:
                await asyncio.to_thread(self._write_line, path, line)
            except OSError as exc:
                raise BeaconPersistenceError(f"Cannot append to {path}: {exc}", path=str(path)) from exc
        return path

    # ------------------------------------------------------------------
    # Reading (administrative / offline)
    # ------------------------------------------------------------------

    def partitions(self) -> list[Path]:
        """Existing day partitions, newest day first."""
        try:
            candidates = list(self._dir.iterdir())
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise BeaconPersistenceError(f"Cannot list {self._dir}: {exc}", path=str(self._dir)) from exc

        dated = [(d, p) for p in candidates if (d := partition_date(p)) is not None and p.is_file()]
        dated.sort(key=lambda item: item[0], reverse=True)
        return [p for _, p in dated]

    @staticmethod
    def _read_records(path: Path, identity: str | None = None) -> list[DeviceRecord]:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise BeaconPersistenceError(f"Cannot read {path}: {exc}", path=str(path)) from exc

        records: list[DeviceRecord] = []
        skipped = 0
        for line in text.splitlines():
            if not line.strip():
                continue
            try:
                raw = json.loads(line)
            except json.JSONDecodeError:
                skipped += 1
                continue
            if not isinstance(raw, dict):
                skipped += 1
                continue
            if identity is not None and raw.get("identity") != identity:
                continue
            try:
                records.append(DeviceRecord.model_validate(raw))
            except ValidationError:
                skipped += 1
        if skipped:
            _logger.warning("Skipped %d unparseable line(s) in %s", skipped, path)
        return records

    async def read_day(self, day: date) -> list[DeviceRecord]:
        """All records of one day partition, in append order."""
        path = self.partition_path(day)
        async with self._lock_for(day):
            return await asyncio.to_thread(self._read_records, path)

    async def history(
        self,
        identity: str,
        *,
        kind: LogKind = LogKind.RECORD,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[LogEntry]:
        """Most recent *limit* entries for *identity*, newest first.

        Partitions are scanned newest day first and the scan stops once
        *limit* entries have been found, since older days cannot hold
        newer entries.
        """
        if limit <= 0:
            return []

        found: list[DeviceRecord] = []
        for path in await asyncio.to_thread(self.partitions):
            day = partition_date(path)
            assert day is not None  # noqa: S101
            async with self._lock_for(day):
                found.extend(await asyncio.to_thread(self._read_records, path, identity))
            if len(found) >= limit:
                break

        found.sort(key=lambda r: r.timestamp, reverse=True)
        return [self._to_entry(record, kind) for record in found[:limit]]

    @staticmethod
    def _to_entry(record: DeviceRecord, kind: LogKind) -> LogEntry:
        dumped = record.to_json_dict()
        data = dumped if kind == LogKind.RECORD else dumped[kind.value]
        return LogEntry(timestamp=record.timestamp, identity=record.identity, kind=kind, data=data)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def prune(self, days_to_keep: int = DEFAULT_LOG_RETENTION_DAYS, *, today: date | None = None) -> list[Path]:
        """Delete partitions older than *days_to_keep* days. Returns the removed paths.

        Maintenance only; never called from the ingest path.
        """
        today = today or datetime.now(UTC).date()
        cutoff = today - timedelta(days=days_to_keep)
        removed: list[Path] = []
        for path in await asyncio.to_thread(self.partitions):
            day = partition_date(path)
            if day is None or day >= cutoff:
                continue
            async with self._lock_for(day):
                try:
                    await asyncio.to_thread(path.unlink)
                except FileNotFoundError:
                    self._locks.pop(day, None)
                    continue
                except OSError as exc:
                    raise BeaconPersistenceError(f"Cannot remove {path}: {exc}", path=str(path)) from exc
                self._locks.pop(day, None)
            _logger.info("Removed old log partition %s", path.name)
            removed.append(path)
        return removed
