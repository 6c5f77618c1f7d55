"""Telemetry ingest pipeline.

This module centralizes the one path every beacon takes:

- normalize the client address into a session identity
- parse the user agent and validate the body into typed models
- resolve the location and apply the coordinate precedence policy
- assemble a fully defaulted :class:`DeviceRecord`
- upsert it into the session store
- append it to the event log (best-effort)

Only the last step can fail, and its failure never undoes the upsert.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from pybeacon._redact import redact_for_log
from pybeacon.exceptions import BeaconPersistenceError
from pybeacon.geo.resolver import GeoResolver
from pybeacon.ingestion.normalize import client_identity
from pybeacon.ingestion.user_agent import UserAgentTriple, parse_user_agent
from pybeacon.models.beacon import BeaconBody
from pybeacon.models.device import DeviceInfo, DeviceRecord, Location
from pybeacon.models.location import LocationInfo
from pybeacon.state.policy import CoordinatePolicy, choose_coordinates
from pybeacon.state.store import DeviceSessionStore
from pybeacon.storage.event_log import EventLogWriter

_logger = logging.getLogger(__name__)

PersistErrorCallback = Callable[[DeviceRecord, BeaconPersistenceError], None]


def build_device_record(
    *,
    identity: str,
    user_agent: UserAgentTriple,
    body: BeaconBody,
    location: LocationInfo,
    policy: CoordinatePolicy = CoordinatePolicy.RESOLVER_FIRST,
) -> DeviceRecord:
    """Merge parsed device info, resolved location and beacon metrics into one record."""
    lat, lon = choose_coordinates(resolved=location.lat_lon, client=body.data.pair, policy=policy)
    return DeviceRecord(
        identity=identity,
        device=DeviceInfo(
            model=user_agent.model,
            os=user_agent.os,
            browser=user_agent.browser,
            battery=body.battery,
            network=body.network,
            memory=body.memory,
        ),
        location=Location(
            lat=lat,
            lon=lon,
            city=location.city,
            country=location.country,
            isp=location.isp,
            ip=identity,
        ),
        system=body.system,
    )


class TelemetryPipeline:
    """Orchestrates resolver, session store and event log for each beacon."""

    def __init__(
        self,
        *,
        resolver: GeoResolver,
        store: DeviceSessionStore,
        log: EventLogWriter,
        coordinate_policy: CoordinatePolicy = CoordinatePolicy.RESOLVER_FIRST,
        on_persist_error: PersistErrorCallback | None = None,
    ) -> None:
        self._resolver = resolver
        self._store = store
        self._log = log
        self._coordinate_policy = coordinate_policy
        self._on_persist_error = on_persist_error

    async def ingest(
        self,
        raw_address: str | None,
        user_agent: str | None,
        body: BeaconBody | Mapping[str, Any] | None,
    ) -> DeviceRecord:
        """Accept one beacon and return the record now stored for its identity.

        Never rejects a beacon for data-quality reasons. A persistence
        failure is logged and passed to ``on_persist_error``; the returned
        record is live in the store regardless.
        """
        identity = client_identity(raw_address)
        if _logger.isEnabledFor(logging.DEBUG):
            raw_body = body.model_dump() if isinstance(body, BeaconBody) else body
            _logger.debug("Beacon from %s: %s", identity, redact_for_log(raw_body))

        beacon = BeaconBody.parse(body)
        location = await self._resolver.resolve(identity)
        record = build_device_record(
            identity=identity,
            user_agent=parse_user_agent(user_agent),
            body=beacon,
            location=location,
            policy=self._coordinate_policy,
        )

        stored = self._store.upsert(identity, record)

        try:
            await self._log.append(stored)
        except BeaconPersistenceError as exc:
            _logger.warning("Failed to persist beacon from %s: %s", identity, exc)
            if self._on_persist_error is not None:
                self._on_persist_error(stored, exc)

        return stored
