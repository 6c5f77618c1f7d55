"""Device record model.

A :class:`DeviceRecord` is the merged view of the latest beacon from one
client identity. It is produced fully populated by the ingestion
pipeline; nothing downstream needs to re-derive defaults.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from pybeacon._constants import UNKNOWN
from pybeacon.models._base import BeaconBaseModel, UtcDatetime, utcnow
from pybeacon.models.telemetry import BatteryStatus, MemoryStatus, NetworkStatus, SystemMetrics


class DeviceInfo(BeaconBaseModel):
    """Fingerprint and hardware state of a device."""

    model: str = UNKNOWN
    """Device model from the user agent (e.g. ``"iPhone"``)."""
    os: str = UNKNOWN
    """``"<name> <version>"``."""
    browser: str = UNKNOWN
    """``"<name> <version>"``."""
    battery: BatteryStatus = Field(default_factory=BatteryStatus)
    network: NetworkStatus = Field(default_factory=NetworkStatus)
    memory: MemoryStatus = Field(default_factory=MemoryStatus)


class Location(BeaconBaseModel):
    """Location attached to a device record."""

    lat: float = 0.0
    lon: float = 0.0
    city: str = UNKNOWN
    country: str = UNKNOWN
    isp: str = UNKNOWN
    ip: str = ""


class DeviceRecord(BeaconBaseModel):
    """Latest known state of one device identity."""

    identity: str
    device: DeviceInfo = Field(default_factory=DeviceInfo)
    location: Location = Field(default_factory=Location)
    system: SystemMetrics = Field(default_factory=SystemMetrics)
    timestamp: UtcDatetime = Field(default_factory=utcnow)
    """When the beacon was accepted (UTC)."""
    last_image_ref: str | None = None
    """Filename of the most recent capture for this identity."""

    def to_json_dict(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys and an ISO-8601 timestamp."""
        return self.model_dump(mode="json", by_alias=True)
