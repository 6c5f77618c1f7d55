"""Durable storage: the per-day event log and captured images."""

from pybeacon.storage.captures import CaptureStore
from pybeacon.storage.event_log import EventLogWriter

__all__ = ["CaptureStore", "EventLogWriter"]
