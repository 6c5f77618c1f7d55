"""Telemetry sections reported by a beacon.

Every numeric field defaults to ``0`` and every label to ``"Unknown"``
so that a record assembled from a partial beacon is always fully
populated.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import AliasChoices, Field, field_validator

from pybeacon._constants import UNKNOWN
from pybeacon.ingestion.normalize import safe_bool, safe_float, safe_str
from pybeacon.models._base import BeaconBaseModel, is_negative


class BatteryStatus(BeaconBaseModel):
    """Battery state from the browser Battery Status API."""

    _SENTINEL_RULES: ClassVar = {"level": is_negative}

    level: float = 0.0
    """Charge level, ``0.0``-``1.0`` as reported by the client."""
    charging: bool = False

    @field_validator("level", mode="before")
    @classmethod
    def _coerce_level(cls, value: Any) -> float:
        return safe_float(value) or 0.0

    @field_validator("charging", mode="before")
    @classmethod
    def _coerce_charging(cls, value: Any) -> bool:
        return bool(safe_bool(value))


class NetworkStatus(BeaconBaseModel):
    """Network information (``navigator.connection``)."""

    _SENTINEL_RULES: ClassVar = {"downlink": is_negative}

    type: str = Field(default=UNKNOWN, validation_alias=AliasChoices("type", "effectiveType", "effective_type"))
    downlink: float = 0.0
    """Estimated bandwidth in Mbit/s."""

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> str:
        return safe_str(value) or UNKNOWN

    @field_validator("downlink", mode="before")
    @classmethod
    def _coerce_downlink(cls, value: Any) -> float:
        return safe_float(value) or 0.0


class MemoryStatus(BeaconBaseModel):
    """Memory figures reported by the client."""

    _SENTINEL_RULES: ClassVar = {"total": is_negative, "used": is_negative, "free": is_negative}

    total: float = 0.0
    used: float = 0.0
    free: float = 0.0

    @field_validator("total", "used", "free", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float:
        return safe_float(value) or 0.0


class SystemMetrics(BeaconBaseModel):
    """Host metrics supplied alongside the beacon."""

    _SENTINEL_RULES: ClassVar = {"cpu_usage": is_negative, "memory_usage": is_negative, "uptime": is_negative}

    cpu_usage: float = 0.0
    memory_usage: float = 0.0
    uptime: float = 0.0

    @field_validator("cpu_usage", "memory_usage", "uptime", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float:
        return safe_float(value) or 0.0
