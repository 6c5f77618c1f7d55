"""Custom exception hierarchy for pybeacon."""

from __future__ import annotations


class BeaconError(Exception):
    """Base exception for all pybeacon errors."""


class BeaconConfigError(BeaconError):
    """Invalid or missing configuration."""


class BeaconPersistenceError(BeaconError):
    """The event log partition could not be read or written.

    Raised by :meth:`pybeacon.storage.event_log.EventLogWriter.append`.
    The ingest pipeline treats it as recoverable: the in-memory session
    has already been updated when it is raised.
    """

    def __init__(self, message: str, *, path: str = "") -> None:
        self.path = path
        super().__init__(message)


class BeaconLookupError(BeaconError):
    """A geolocation lookup failed (database miss, network error, timeout).

    Only raised inside lookup adapters; :class:`pybeacon.geo.resolver.GeoResolver`
    converts it into the ``Unknown`` placeholder.
    """

    def __init__(self, message: str, *, address: str = "", source: str = "") -> None:
        self.address = address
        self.source = source
        super().__init__(message)


class BeaconCaptureError(BeaconError):
    """A captured image could not be stored or read."""
