"""Cached, total geolocation resolver.

Resolution policy, in order:

1. loopback / unspecified addresses -> ``Local`` placeholder (never cached)
2. non-routable addresses -> ``Unknown`` placeholder (never looked up)
3. fresh cache entry -> cached value
4. local database -> accepted when it yields both city and country
5. network service -> accepted under the same rule
6. otherwise -> ``Unknown`` placeholder (cached)

``resolve`` never raises. The cache is guarded by a single lock that is
only ever held for dictionary operations; lookups run outside it.
Overlapping misses for one address await a single in-flight lookup.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta

from pybeacon._constants import DEFAULT_GEO_CACHE_TTL_SECONDS, LOCAL_ADDRESSES, UNKNOWN
from pybeacon.exceptions import BeaconLookupError
from pybeacon.geo.database import GeoDatabase
from pybeacon.geo.service import GeoService
from pybeacon.ingestion.normalize import is_routable
from pybeacon.models._base import utcnow
from pybeacon.models.location import LocationInfo, LocationSource

_logger = logging.getLogger(__name__)


def local_placeholder(now: datetime | None = None) -> LocationInfo:
    return LocationInfo(
        city="Local",
        country="Development",
        lat=0.0,
        lon=0.0,
        isp="Local Network",
        cached_at=now or utcnow(),
        source=LocationSource.LOCAL,
    )


def unknown_placeholder(now: datetime | None = None) -> LocationInfo:
    return LocationInfo(cached_at=now or utcnow(), source=LocationSource.PLACEHOLDER)


def _is_complete(info: LocationInfo) -> bool:
    return info.city != UNKNOWN and info.country != UNKNOWN


class GeoResolver:
    """Map network addresses to :class:`LocationInfo` with a TTL cache."""

    def __init__(
        self,
        *,
        database: GeoDatabase | None = None,
        service: GeoService | None = None,
        cache_ttl: timedelta = timedelta(seconds=DEFAULT_GEO_CACHE_TTL_SECONDS),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._database = database
        self._service = service
        self._cache_ttl = cache_ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._cache: dict[str, LocationInfo] = {}
        self._pending: dict[str, asyncio.Future[LocationInfo]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def _cached_or_pending(
        self, address: str, now: datetime
    ) -> tuple[LocationInfo | None, asyncio.Future[LocationInfo] | None, bool]:
        """Return ``(cached, future, owner)`` for *address*.

        A miss registers a new in-flight future; callers that find one
        already registered wait on it instead of starting another lookup.
        """
        with self._lock:
            entry = self._cache.get(address)
            if entry is not None:
                if entry.is_fresh(now, self._cache_ttl):
                    return entry, None, False
                # Lazily invalidate; the periodic sweep catches the rest.
                del self._cache[address]
            pending = self._pending.get(address)
            if pending is not None:
                return None, pending, False
            pending = asyncio.get_running_loop().create_future()
            self._pending[address] = pending
            return None, pending, True

    async def resolve(self, address: str) -> LocationInfo:
        """Resolve *address*; unresolvable addresses yield a placeholder.

        Overlapping calls for the same uncached address share one lookup.
        """
        now = self._clock()
        if address in LOCAL_ADDRESSES:
            return local_placeholder(now)
        if not is_routable(address):
            return unknown_placeholder(now)

        cached, pending, owner = self._cached_or_pending(address, now)
        if cached is not None:
            return cached
        assert pending is not None  # noqa: S101
        if not owner:
            return await asyncio.shield(pending)

        try:
            found = await self._lookup(address)
            info = found.model_copy(update={"cached_at": now}) if found is not None else unknown_placeholder(now)
            with self._lock:
                self._cache[address] = info
            pending.set_result(info)
            return info
        finally:
            with self._lock:
                self._pending.pop(address, None)
            if not pending.done():
                pending.cancel()

    async def _lookup(self, address: str) -> LocationInfo | None:
        if self._database is not None:
            try:
                info = await asyncio.to_thread(self._database.lookup, address)
            except BeaconLookupError:
                _logger.debug("Geo database lookup failed for %s", address, exc_info=True)
            except Exception:
                _logger.warning("Unexpected geo database failure for %s", address, exc_info=True)
            else:
                if info is not None and _is_complete(info):
                    return info

        if self._service is not None:
            try:
                info = await self._service.lookup(address)
            except BeaconLookupError:
                _logger.debug("Geo service lookup failed for %s", address, exc_info=True)
            except Exception:
                _logger.warning("Unexpected geo service failure for %s", address, exc_info=True)
            else:
                if info is not None and _is_complete(info):
                    return info

        _logger.debug("No location for %s; using placeholder", address)
        return None

    def sweep(self, now: datetime | None = None) -> int:
        """Drop expired cache entries. Returns the number removed."""
        now = now or self._clock()
        with self._lock:
            expired = [key for key, entry in self._cache.items() if not entry.is_fresh(now, self._cache_ttl)]
            for key in expired:
                del self._cache[key]
        return len(expired)
