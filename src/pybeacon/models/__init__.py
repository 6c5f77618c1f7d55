"""Data models for beacons, device records and log entries."""

from pybeacon.models._base import BeaconBaseModel
from pybeacon.models.beacon import BeaconBody, ClientCoordinates
from pybeacon.models.device import DeviceInfo, DeviceRecord, Location
from pybeacon.models.location import LocationInfo, LocationSource
from pybeacon.models.log_entry import LogEntry, LogKind
from pybeacon.models.telemetry import BatteryStatus, MemoryStatus, NetworkStatus, SystemMetrics

__all__ = [
    "BatteryStatus",
    "BeaconBaseModel",
    "BeaconBody",
    "ClientCoordinates",
    "DeviceInfo",
    "DeviceRecord",
    "Location",
    "LocationInfo",
    "LocationSource",
    "LogEntry",
    "LogKind",
    "MemoryStatus",
    "NetworkStatus",
    "SystemMetrics",
]
