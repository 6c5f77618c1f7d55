"""Event log entry model."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import Field

from pybeacon.models._base import BeaconBaseModel, UtcDatetime


class LogKind(StrEnum):
    """Which part of a logged record a history query returns."""

    RECORD = "record"
    DEVICE = "device"
    LOCATION = "location"
    SYSTEM = "system"


class LogEntry(BeaconBaseModel):
    """One accepted beacon, as read back from a day partition."""

    timestamp: UtcDatetime
    identity: str
    kind: LogKind = LogKind.RECORD
    data: dict[str, Any] = Field(default_factory=dict)
