"""Geolocation result model."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any

from pydantic import Field, field_validator

from pybeacon._constants import UNKNOWN
from pybeacon.ingestion.normalize import safe_float
from pybeacon.models._base import BeaconBaseModel, UtcDatetime, utcnow


class LocationSource(StrEnum):
    """Where a :class:`LocationInfo` came from."""

    LOCAL = "local"
    DATABASE = "database"
    SERVICE = "service"
    PLACEHOLDER = "placeholder"


class LocationInfo(BeaconBaseModel):
    """Location metadata for one network address.

    Immutable; cached by the resolver under the raw address until
    ``cached_at + ttl``.
    """

    city: str = UNKNOWN
    country: str = UNKNOWN
    lat: float = 0.0
    lon: float = 0.0
    isp: str = UNKNOWN
    cached_at: UtcDatetime = Field(default_factory=utcnow)
    source: LocationSource = LocationSource.PLACEHOLDER

    @property
    def lat_lon(self) -> tuple[float, float]:
        return (self.lat, self.lon)

    def is_fresh(self, now: datetime, ttl: timedelta) -> bool:
        """Whether the entry is younger than *ttl* at *now*."""
        return now - self.cached_at < ttl

    @field_validator("lat", "lon", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float:
        return safe_float(value) or 0.0
