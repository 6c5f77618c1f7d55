"""Core facade: owns the store, resolver, log and background maintenance."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

import aiohttp

from pybeacon.config import BeaconConfig
from pybeacon.exceptions import BeaconError
from pybeacon.geo.database import GeoDatabase, MaxMindGeoDatabase
from pybeacon.geo.resolver import GeoResolver
from pybeacon.geo.service import GeoService, IpApiGeoService
from pybeacon.ingestion.normalize import client_identity
from pybeacon.ingestion.pipeline import PersistErrorCallback, TelemetryPipeline
from pybeacon.models._base import utcnow
from pybeacon.models.beacon import BeaconBody
from pybeacon.models.device import DeviceRecord
from pybeacon.models.log_entry import LogEntry, LogKind
from pybeacon.state.store import DeviceSessionStore
from pybeacon.storage.captures import CaptureStore
from pybeacon.storage.event_log import EventLogWriter

_logger = logging.getLogger(__name__)


class BeaconService:
    """Telemetry core exposed to the transport layer.

    Usage::

        async with BeaconService(BeaconConfig.from_env()) as service:
            record = await service.ingest(remote_addr, user_agent, body)
            devices = service.list_devices()

    The geolocation lookups, the ingest pipeline and the periodic
    eviction task only exist between :meth:`start` and :meth:`close`.
    """

    def __init__(
        self,
        config: BeaconConfig,
        *,
        http_session: aiohttp.ClientSession | None = None,
        geo_database: GeoDatabase | None = None,
        geo_service: GeoService | None = None,
        clock: Callable[[], datetime] = utcnow,
        on_persist_error: PersistErrorCallback | None = None,
    ) -> None:
        self._config = config
        self._clock = clock
        self._external_session = http_session is not None
        self._http_session = http_session
        self._geo_database = geo_database
        self._owned_database: MaxMindGeoDatabase | None = None
        self._geo_service = geo_service
        self._on_persist_error = on_persist_error

        self._store = DeviceSessionStore(clock=clock, retention=config.retention)
        self._log = EventLogWriter(config.log_dir, fsync=config.log_fsync)
        self._captures = CaptureStore(config.capture_dir, clock=clock)
        self._resolver: GeoResolver | None = None
        self._pipeline: TelemetryPipeline | None = None
        self._maintenance_task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> BeaconService:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def start(self) -> None:
        """Build the lookup chain and start background maintenance. Idempotent."""
        if self._pipeline is not None:
            return
        config = self._config

        database = self._geo_database
        if database is None and config.geo_city_db:
            self._owned_database = MaxMindGeoDatabase(config.geo_city_db, config.geo_asn_db)
            database = self._owned_database

        service = self._geo_service
        if service is None and config.geo_service_enabled:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            service = IpApiGeoService(
                self._http_session,
                url_template=config.geo_service_url,
                timeout=config.geo_service_timeout,
            )

        self._resolver = GeoResolver(
            database=database,
            service=service,
            cache_ttl=config.geo_cache_ttl,
            clock=self._clock,
        )
        self._pipeline = TelemetryPipeline(
            resolver=self._resolver,
            store=self._store,
            log=self._log,
            coordinate_policy=config.coordinate_policy,
            on_persist_error=self._on_persist_error,
        )

        if config.sweep_interval_seconds > 0:
            self._maintenance_task = asyncio.create_task(
                self._maintenance_loop(config.sweep_interval_seconds),
                name="pybeacon-maintenance",
            )
        _logger.info(
            "Beacon service started (log dir %s, geo database %s, geo service %s)",
            self._log.log_dir,
            "on" if database is not None else "off",
            "on" if service is not None else "off",
        )

    async def close(self) -> None:
        """Stop background maintenance and release owned resources."""
        task = self._maintenance_task
        self._maintenance_task = None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if self._owned_database is not None:
            self._owned_database.close()
            self._owned_database = None
        self._pipeline = None
        self._resolver = None

    @property
    def is_running(self) -> bool:
        return self._pipeline is not None

    # ------------------------------------------------------------------
    # Owned components
    # ------------------------------------------------------------------

    @property
    def store(self) -> DeviceSessionStore:
        return self._store

    @property
    def log(self) -> EventLogWriter:
        return self._log

    @property
    def captures(self) -> CaptureStore:
        return self._captures

    @property
    def resolver(self) -> GeoResolver:
        if self._resolver is None:
            raise BeaconError("Service not started. Use 'async with BeaconService(...) as service:'")
        return self._resolver

    def _require_pipeline(self) -> TelemetryPipeline:
        if self._pipeline is None:
            raise BeaconError("Service not started. Use 'async with BeaconService(...) as service:'")
        return self._pipeline

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def _maintenance_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self.run_maintenance()

    def run_maintenance(self, now: datetime | None = None) -> tuple[int, int]:
        """Evict expired sessions and sweep the geolocation cache once.

        Returns ``(evicted_records, swept_cache_entries)``.
        """
        now = now or self._clock()
        evicted = swept = 0
        try:
            evicted = self._store.evict_expired(now)
            if self._resolver is not None:
                swept = self._resolver.sweep(now)
        except Exception:
            _logger.warning("Maintenance sweep failed", exc_info=True)
        if evicted or swept:
            _logger.debug("Maintenance: evicted %d session(s), swept %d cache entr(ies)", evicted, swept)
        return evicted, swept

    async def prune_logs(self, days_to_keep: int | None = None) -> list[Path]:
        """Delete day partitions older than the configured retention."""
        days = self._config.log_retention_days if days_to_keep is None else days_to_keep
        return await self._log.prune(days, today=self._clock().date())

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def ingest(
        self,
        raw_address: str | None,
        user_agent: str | None,
        body: BeaconBody | Mapping[str, Any] | None,
    ) -> DeviceRecord:
        """Accept one beacon; see :meth:`TelemetryPipeline.ingest`."""
        return await self._require_pipeline().ingest(raw_address, user_agent, body)

    def get_device(self, identity: str) -> DeviceRecord | None:
        return self._store.get(client_identity(identity))

    def list_devices(self) -> list[DeviceRecord]:
        """Live devices, most recently seen first."""
        return self._store.list_all()

    def attach_image(self, identity: str, filename: str) -> bool:
        return self._store.attach_image_ref(client_identity(identity), filename)

    async def history(
        self,
        identity: str,
        limit: int = 10,
        *,
        kind: LogKind = LogKind.RECORD,
    ) -> list[LogEntry]:
        """Most recent logged entries for *identity* (administrative use)."""
        return await self._log.history(client_identity(identity), kind=kind, limit=limit)

    async def save_capture(self, identity: str | None, data: bytes | str) -> str:
        """Store an uploaded image and attach it to the device's live record.

        The image is kept even when no live record exists; the returned
        filename is valid either way.
        """
        identity = client_identity(identity)
        filename = await asyncio.to_thread(self._captures.save, identity, data)
        if not self.attach_image(identity, filename):
            _logger.debug("Capture %s stored without a live session for %s", filename, identity)
        return filename

    async def read_capture(self, identity: str) -> bytes | None:
        """Bytes of the latest capture attached to *identity*, if any."""
        record = self.get_device(identity)
        if record is None or record.last_image_ref is None:
            return None
        return await asyncio.to_thread(self._captures.read, record.last_image_ref)
