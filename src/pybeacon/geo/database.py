"""Local geolocation database lookup (MaxMind GeoLite2 / GeoIP2)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

import geoip2.database
import geoip2.errors

from pybeacon._constants import UNKNOWN
from pybeacon.exceptions import BeaconConfigError, BeaconLookupError
from pybeacon.models.location import LocationInfo, LocationSource

_logger = logging.getLogger(__name__)


class GeoDatabase(Protocol):
    """Structural interface for the primary (local) lookup.

    Implementations are synchronous; the resolver runs them in a worker
    thread. Return ``None`` for an address the database does not know,
    raise :class:`BeaconLookupError` for anything else.
    """

    def lookup(self, address: str) -> LocationInfo | None:
        ...


class MaxMindGeoDatabase:
    """GeoLite2/GeoIP2 City database, optionally paired with an ASN database for the ISP."""

    def __init__(self, city_db: str | Path, asn_db: str | Path | None = None) -> None:
        self._city = self._open(city_db)
        self._asn = self._open(asn_db) if asn_db else None

    @staticmethod
    def _open(path: str | Path) -> geoip2.database.Reader:
        try:
            return geoip2.database.Reader(str(path))
        except (OSError, ValueError) as exc:
            raise BeaconConfigError(f"Cannot open GeoIP database {path}: {exc}") from exc

    def _isp(self, address: str) -> str:
        if self._asn is None:
            return UNKNOWN
        try:
            asn = self._asn.asn(address)
        except geoip2.errors.AddressNotFoundError:
            return UNKNOWN
        except ValueError:
            _logger.debug("ASN lookup rejected %s", address, exc_info=True)
            return UNKNOWN
        return asn.autonomous_system_organization or UNKNOWN

    def lookup(self, address: str) -> LocationInfo | None:
        try:
            response = self._city.city(address)
        except geoip2.errors.AddressNotFoundError:
            return None
        except ValueError as exc:
            raise BeaconLookupError(str(exc), address=address, source="database") from exc

        return LocationInfo.model_validate(
            {
                "city": response.city.name,
                "country": response.country.iso_code or response.country.name,
                "lat": response.location.latitude,
                "lon": response.location.longitude,
                "isp": self._isp(address),
                "source": LocationSource.DATABASE,
            }
        )

    def close(self) -> None:
        self._city.close()
        if self._asn is not None:
            self._asn.close()
