"""Deterministic session and merge policy.

This module intentionally contains *no* payload parsing or defaulting.
The ingestion/Pydantic boundary is responsible for producing fully
populated records before any policy is applied.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import StrEnum


class CoordinatePolicy(StrEnum):
    """Precedence between beacon-supplied and resolver-derived coordinates."""

    RESOLVER_FIRST = "resolver_first"
    """Beacon coordinates are used only when the resolver produced ``(0, 0)``."""
    CLIENT_FIRST = "client_first"
    """Beacon coordinates win whenever the client supplied them."""


def choose_coordinates(
    *,
    resolved: tuple[float, float],
    client: tuple[float, float] | None,
    policy: CoordinatePolicy,
) -> tuple[float, float]:
    """Pick the coordinates for a device record.

    Client coordinates are a fallback-breaker: they are never silently
    discarded when the resolver has nothing better than ``(0, 0)``.
    """
    if client is None:
        return resolved
    if policy == CoordinatePolicy.CLIENT_FIRST:
        return client
    if resolved == (0.0, 0.0):
        return client
    return resolved


def is_expired(now: datetime, timestamp: datetime, retention: timedelta) -> bool:
    """A record is expired once it is strictly older than the retention window."""
    return now - timestamp > retention


def is_stale(current: datetime, incoming: datetime) -> bool:
    """Incoming updates must never move a record's timestamp backwards."""
    return incoming < current
