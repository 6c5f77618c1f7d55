from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from pybeacon.exceptions import BeaconConfigError, BeaconLookupError
from pybeacon.geo.database import MaxMindGeoDatabase
from pybeacon.geo.service import IpApiGeoService
from pybeacon.models.location import LocationSource

_RESPONSES = {
    "8.8.8.8": {
        "status": "success",
        "city": "Mountain View",
        "countryCode": "US",
        "lat": 37.4,
        "lon": -122.1,
        "isp": "Google LLC",
    },
    "1.1.1.1": {"status": "fail", "message": "reserved range"},
}


async def _json_handler(request: web.Request) -> web.Response:
    address = request.match_info["address"]
    if address == "9.9.9.9":
        await asyncio.sleep(1)
    if address == "4.4.4.4":
        return web.Response(status=503, text="busy")
    if address == "5.5.5.5":
        return web.Response(text="<html>not json</html>", content_type="text/html")
    return web.json_response(_RESPONSES.get(address, {"status": "fail"}))


@pytest_asyncio.fixture
async def geo_server() -> AsyncIterator[TestServer]:
    app = web.Application()
    app.router.add_get("/json/{address}", _json_handler)
    async with TestServer(app) as server:
        yield server


@pytest_asyncio.fixture
async def http_session() -> AsyncIterator[aiohttp.ClientSession]:
    async with aiohttp.ClientSession() as session:
        yield session


def _service(server: TestServer, session: aiohttp.ClientSession, timeout: float = 2.0) -> IpApiGeoService:
    return IpApiGeoService(
        session,
        url_template=f"http://{server.host}:{server.port}/json/{{address}}",
        timeout=timeout,
    )


@pytest.mark.asyncio
async def test_successful_lookup_maps_fields(geo_server, http_session) -> None:
    info = await _service(geo_server, http_session).lookup("8.8.8.8")

    assert info is not None
    assert info.city == "Mountain View"
    assert info.country == "US"
    assert info.lat_lon == (37.4, -122.1)
    assert info.isp == "Google LLC"
    assert info.source == LocationSource.SERVICE


@pytest.mark.asyncio
async def test_failed_status_is_no_answer(geo_server, http_session) -> None:
    assert await _service(geo_server, http_session).lookup("1.1.1.1") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("address", ["4.4.4.4", "5.5.5.5"])
async def test_bad_responses_raise_lookup_error(geo_server, http_session, address: str) -> None:
    with pytest.raises(BeaconLookupError) as excinfo:
        await _service(geo_server, http_session).lookup(address)

    assert excinfo.value.address == address
    assert excinfo.value.source == "service"


@pytest.mark.asyncio
async def test_timeout_raises_lookup_error(geo_server, http_session) -> None:
    with pytest.raises(BeaconLookupError, match="timed out"):
        await _service(geo_server, http_session, timeout=0.1).lookup("9.9.9.9")


def test_missing_database_is_a_config_error(tmp_path) -> None:
    with pytest.raises(BeaconConfigError):
        MaxMindGeoDatabase(tmp_path / "GeoLite2-City.mmdb")
