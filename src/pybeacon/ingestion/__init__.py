"""Ingestion layer.

This package turns raw beacons (client address, user agent, JSON body)
into fully populated device records and hands them to the store and
the event log.
"""

__all__: list[str] = []
