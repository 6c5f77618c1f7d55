"""Geolocation layer.

Maps client network addresses to :class:`pybeacon.models.LocationInfo`
through a cached, total resolver backed by a local database and a
network lookup service.
"""

from pybeacon.geo.database import GeoDatabase, MaxMindGeoDatabase
from pybeacon.geo.resolver import GeoResolver, local_placeholder, unknown_placeholder
from pybeacon.geo.service import GeoService, IpApiGeoService

__all__ = [
    "GeoDatabase",
    "GeoResolver",
    "GeoService",
    "IpApiGeoService",
    "MaxMindGeoDatabase",
    "local_placeholder",
    "unknown_placeholder",
]
