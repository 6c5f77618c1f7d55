"""Network geolocation lookup (ip-api.com compatible JSON endpoint)."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol
from urllib.parse import quote

import aiohttp

from pybeacon._constants import DEFAULT_GEO_SERVICE_TIMEOUT, DEFAULT_GEO_SERVICE_URL, USER_AGENT
from pybeacon.exceptions import BeaconLookupError
from pybeacon.models.location import LocationInfo, LocationSource

_logger = logging.getLogger(__name__)


class GeoService(Protocol):
    """Structural interface for the secondary (network) lookup.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`IpApiGeoService`) concrete.
    """

    async def lookup(self, address: str) -> LocationInfo | None:
        ...


class IpApiGeoService:
    """Query an ip-api.com style service with a bounded timeout.

    A response is expected to look like::

        {"status": "success", "city": "...", "countryCode": "..",
         "lat": 1.0, "lon": 2.0, "isp": "..."}
    """

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        url_template: str = DEFAULT_GEO_SERVICE_URL,
        timeout: float = DEFAULT_GEO_SERVICE_TIMEOUT,
    ) -> None:
        self._http = http_session
        self._url_template = url_template
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def lookup(self, address: str) -> LocationInfo | None:
        url = self._url_template.format(address=quote(address, safe=""))
        _logger.debug("GET %s", url)

        try:
            async with self._http.get(url, timeout=self._timeout, headers={"user-agent": USER_AGENT}) as resp:
                if resp.status != 200:
                    raise BeaconLookupError(
                        f"HTTP {resp.status} from geolocation service",
                        address=address,
                        source="service",
                    )
                payload: Any = await resp.json(content_type=None)
        except BeaconLookupError:
            raise
        except asyncio.TimeoutError as exc:
            raise BeaconLookupError("Geolocation service timed out", address=address, source="service") from exc
        except (aiohttp.ClientError, ValueError) as exc:
            raise BeaconLookupError(
                f"Geolocation service request failed: {exc}",
                address=address,
                source="service",
            ) from exc

        if not isinstance(payload, dict) or payload.get("status") != "success":
            return None

        return LocationInfo.model_validate(
            {
                "city": payload.get("city"),
                "country": payload.get("countryCode") or payload.get("country"),
                "lat": payload.get("lat"),
                "lon": payload.get("lon"),
                "isp": payload.get("isp") or payload.get("org"),
                "source": LocationSource.SERVICE,
            }
        )
