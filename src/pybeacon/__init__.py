"""pybeacon - Device telemetry beacon collector with geolocation and a per-day event log."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pybeacon")
except PackageNotFoundError:
    __version__ = "0+local"
from pybeacon.auth import Authorizer, BasicAuthorizer
from pybeacon.config import BeaconConfig
from pybeacon.exceptions import (
    BeaconCaptureError,
    BeaconConfigError,
    BeaconError,
    BeaconLookupError,
    BeaconPersistenceError,
)
from pybeacon.geo import GeoResolver, IpApiGeoService, MaxMindGeoDatabase
from pybeacon.ingestion.pipeline import TelemetryPipeline
from pybeacon.models import (
    BeaconBody,
    DeviceInfo,
    DeviceRecord,
    Location,
    LocationInfo,
    LogEntry,
    LogKind,
)
from pybeacon.service import BeaconService
from pybeacon.state.policy import CoordinatePolicy
from pybeacon.state.store import DeviceSessionStore
from pybeacon.storage import CaptureStore, EventLogWriter

__all__ = [
    "__version__",
    "Authorizer",
    "BasicAuthorizer",
    "BeaconBody",
    "BeaconCaptureError",
    "BeaconConfig",
    "BeaconConfigError",
    "BeaconError",
    "BeaconLookupError",
    "BeaconPersistenceError",
    "BeaconService",
    "CaptureStore",
    "CoordinatePolicy",
    "DeviceInfo",
    "DeviceRecord",
    "DeviceSessionStore",
    "EventLogWriter",
    "GeoResolver",
    "IpApiGeoService",
    "Location",
    "LocationInfo",
    "LogEntry",
    "LogKind",
    "MaxMindGeoDatabase",
    "TelemetryPipeline",
]
