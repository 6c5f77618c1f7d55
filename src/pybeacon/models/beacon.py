"""Inbound beacon body."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import Field, field_validator

from pybeacon.ingestion.normalize import safe_float
from pybeacon.models._base import BeaconBaseModel
from pybeacon.models.telemetry import BatteryStatus, MemoryStatus, NetworkStatus, SystemMetrics


class ClientCoordinates(BeaconBaseModel):
    """Coordinates the client obtained itself (e.g. Geolocation API)."""

    lat: float | None = None
    lon: float | None = None

    @field_validator("lat", "lon", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @property
    def pair(self) -> tuple[float, float] | None:
        """Both coordinates, or ``None`` if either is missing."""
        if self.lat is None or self.lon is None:
            return None
        return (self.lat, self.lon)


class BeaconBody(BeaconBaseModel):
    """A parsed telemetry beacon.

    All sections are optional; malformed or missing sections fall back
    to fully defaulted values, so validating any JSON object never fails.
    """

    battery: BatteryStatus = Field(default_factory=BatteryStatus)
    network: NetworkStatus = Field(default_factory=NetworkStatus)
    memory: MemoryStatus = Field(default_factory=MemoryStatus)
    system: SystemMetrics = Field(default_factory=SystemMetrics)
    data: ClientCoordinates = Field(default_factory=ClientCoordinates)

    @field_validator("memory", mode="before")
    @classmethod
    def _memory_scalar(cls, value: Any) -> Any:
        # ``navigator.deviceMemory`` is a bare number of gigabytes.
        scalar = safe_float(value) if not isinstance(value, dict) else None
        if scalar is not None:
            return {"total": scalar}
        return value

    @classmethod
    def parse(cls, payload: Any) -> BeaconBody:
        """Validate an arbitrary decoded JSON payload into a beacon body."""
        if isinstance(payload, BeaconBody):
            return payload
        return cls.model_validate(dict(payload) if isinstance(payload, Mapping) else {})
